"""
Application Repository
Converts between application rows and lifecycle snapshots
"""
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from placement_api.core.exceptions import DuplicateApplicationError
from placement_api.models.application import Application
from placement_api.models.drive import Drive
from placement_api.models.student import Student
from placement_api.schemas.application import ApplicationSnapshot
from placement_api.utils.constants import APPLICATION_PENDING, APPLICATION_STATUSES
from placement_api.utils.helpers import utcnow

UNIQUE_CONSTRAINT = "unique_student_drive_application"


def to_snapshot(
    application: Application,
    student_branch: Optional[str] = None,
    drive_title: Optional[str] = None,
) -> ApplicationSnapshot:
    return ApplicationSnapshot(
        id=application.id,
        student_id=application.student_id,
        drive_id=application.drive_id,
        status=application.status,
        current_round=application.current_round,
        status_history=application.status_history,
        round_status=application.round_status,
        student_branch=student_branch,
        drive_title=drive_title,
    )


class ApplicationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    def _joined(self):
        return (
            select(Application, Student.branch, Drive.title)
            .join(Student, Student.id == Application.student_id)
            .join(Drive, Drive.id == Application.drive_id)
        )

    async def get(self, application_id: UUID) -> Optional[ApplicationSnapshot]:
        result = await self.session.execute(self._joined().where(Application.id == application_id))
        row = result.first()
        if row is None:
            return None
        return to_snapshot(*row)

    async def get_many(self, application_ids: Sequence[UUID]) -> List[ApplicationSnapshot]:
        if not application_ids:
            return []
        result = await self.session.execute(self._joined().where(Application.id.in_(application_ids)))
        return [to_snapshot(*row) for row in result.all()]

    async def exists(self, student_id: UUID, drive_id: UUID) -> bool:
        result = await self.session.execute(
            select(Application.id).where(
                Application.student_id == student_id, Application.drive_id == drive_id
            )
        )
        return result.first() is not None

    async def create(self, student_id: UUID, drive_id: UUID) -> ApplicationSnapshot:
        """
        Insert a pending application with empty histories.

        Raises DuplicateApplicationError when the (student, drive) pair
        already exists, including when a concurrent request won the insert.
        """
        application = Application(
            student_id=student_id,
            drive_id=drive_id,
            status=APPLICATION_PENDING,
            status_history=[],
            current_round=1,
            round_status=[],
            applied_at=utcnow(),
        )
        try:
            async with self.session.begin_nested():
                self.session.add(application)
                await self.session.flush()
        except IntegrityError as exc:
            if UNIQUE_CONSTRAINT in str(exc.orig):
                raise DuplicateApplicationError(f"{student_id} already applied to {drive_id}") from exc
            raise
        await self.session.refresh(application)
        return to_snapshot(application)

    async def save(self, snapshot: ApplicationSnapshot) -> bool:
        """Write the mutable lifecycle fields of ``snapshot`` back to its row."""
        result = await self.session.execute(
            update(Application)
            .where(Application.id == snapshot.id)
            .values(
                status=snapshot.status,
                status_history=snapshot.history_for_storage(),
                current_round=snapshot.current_round,
                round_status=snapshot.rounds_for_storage(),
            )
        )
        return result.rowcount > 0

    async def save_isolated(self, snapshot: ApplicationSnapshot) -> bool:
        """``save`` inside a savepoint so a failure leaves the outer transaction usable."""
        async with self.session.begin_nested():
            return await self.save(snapshot)

    async def delete(self, application_id: UUID) -> bool:
        result = await self.session.execute(delete(Application).where(Application.id == application_id))
        return result.rowcount > 0

    async def list(
        self,
        *,
        student_id: Optional[UUID] = None,
        drive_id: Optional[UUID] = None,
        status: Optional[str] = None,
        branch: Optional[str] = None,
        offset: int = 0,
        limit: int = 100,
    ) -> List[Tuple[Application, Student, Drive]]:
        query = (
            select(Application, Student, Drive)
            .join(Student, Student.id == Application.student_id)
            .join(Drive, Drive.id == Application.drive_id)
        )
        if student_id:
            query = query.where(Application.student_id == student_id)
        if drive_id:
            query = query.where(Application.drive_id == drive_id)
        if status:
            query = query.where(Application.status == status)
        if branch:
            query = query.where(Student.branch == branch)

        query = query.order_by(Application.applied_at.desc()).offset(offset).limit(limit)
        result = await self.session.execute(query)
        return [tuple(row) for row in result.all()]

    async def status_counts(self, student_id: Optional[UUID] = None) -> Dict[str, int]:
        query = select(Application.status, func.count(Application.id)).group_by(Application.status)
        if student_id:
            query = query.where(Application.student_id == student_id)
        result = await self.session.execute(query)

        counts = {status: 0 for status in APPLICATION_STATUSES}
        for status, count in result.all():
            if status in counts:
                counts[status] = count
        counts["total"] = sum(counts.values())
        return counts

    async def count_for_drive(self, drive_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count(Application.id)).where(Application.drive_id == drive_id)
        )
        return result.scalar() or 0

    async def student_ids_for_drive(self, drive_id: UUID, status: Optional[str] = None) -> List[UUID]:
        query = select(Application.student_id).where(Application.drive_id == drive_id)
        if status:
            query = query.where(Application.status == status)
        result = await self.session.execute(query)
        return list(result.scalars().all())
