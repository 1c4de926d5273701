"""
Student Repository
Student rows, their sub-records and credentials
"""
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from placement_api.models.application import Application
from placement_api.models.notification import Notification
from placement_api.models.student import Address, DeviceToken, EducationRecord, Student, StudentAuth
from placement_api.schemas.drive import EligibilityCriteria
from placement_api.schemas.student import StudentSnapshot

SORTABLE_COLUMNS = {
    "created_at": Student.created_at,
    "name": Student.first_name,
    "first_name": Student.first_name,
    "last_name": Student.last_name,
    "email": Student.email,
    "regd_id": Student.regd_id,
    "cgpa": Student.cgpa,
    "branch": Student.branch,
}


def _search_clause(search: str):
    term = f"%{search.strip()}%"
    return or_(
        Student.first_name.ilike(term),
        Student.last_name.ilike(term),
        Student.regd_id.ilike(term),
        Student.email.ilike(term),
    )


class StudentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    # ==================== Reads ====================

    async def get(self, student_id: UUID) -> Optional[Student]:
        result = await self.session.execute(
            select(Student)
            .options(selectinload(Student.addresses), selectinload(Student.education_records))
            .where(Student.id == student_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_snapshot(self, student_id: UUID) -> Optional[StudentSnapshot]:
        result = await self.session.execute(select(Student).where(Student.id == student_id))
        student = result.scalar_one_or_none()
        return StudentSnapshot.model_validate(student) if student else None

    async def get_by_regd_id(self, regd_id: str) -> Optional[Student]:
        result = await self.session.execute(select(Student).where(Student.regd_id == regd_id))
        return result.scalar_one_or_none()

    async def list(
        self,
        *,
        branch: Optional[str] = None,
        year: Optional[str] = None,
        min_cgpa: Optional[float] = None,
        max_cgpa: Optional[float] = None,
        has_backlogs: Optional[bool] = None,
        search: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        exclude_ids: Optional[Sequence[UUID]] = None,
        only_ids: Optional[Sequence[UUID]] = None,
        offset: int = 0,
        limit: Optional[int] = 200,
    ) -> List[Student]:
        query = select(Student)

        if branch:
            query = query.where(Student.branch == branch)
        if year:
            query = query.where(Student.year == year)
        if min_cgpa is not None:
            query = query.where(Student.cgpa >= min_cgpa)
        if max_cgpa is not None:
            query = query.where(Student.cgpa <= max_cgpa)
        if has_backlogs is not None:
            query = query.where(Student.has_backlogs == has_backlogs)
        if search:
            query = query.where(_search_clause(search))
        if exclude_ids:
            query = query.where(Student.id.notin_(exclude_ids))
        if only_ids is not None:
            query = query.where(Student.id.in_(only_ids))

        column = SORTABLE_COLUMNS.get(sort_by, Student.created_at)
        query = query.order_by(column.asc() if sort_order == "asc" else column.desc())
        query = query.offset(offset)
        if limit:
            query = query.limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def candidates_for(self, criteria: EligibilityCriteria) -> List[StudentSnapshot]:
        """
        Snapshots of students that may match ``criteria``.

        Branch and CGPA floors are pushed into SQL; callers still run the
        evaluator for the profile and backlog flags.
        """
        query = select(Student)
        if criteria.branches:
            query = query.where(Student.branch.in_(criteria.branches))
        if criteria.min_cgpa > 0:
            query = query.where(Student.cgpa >= criteria.min_cgpa)
        result = await self.session.execute(query)
        return [StudentSnapshot.model_validate(s) for s in result.scalars().all()]

    async def ids_matching(
        self,
        *,
        branches: Optional[Sequence[str]] = None,
        regd_ids: Optional[Sequence[str]] = None,
        within: Optional[Sequence[UUID]] = None,
    ) -> List[UUID]:
        query = select(Student.id)
        if branches:
            query = query.where(Student.branch.in_(branches))
        if regd_ids:
            query = query.where(Student.regd_id.in_(regd_ids))
        if within is not None:
            query = query.where(Student.id.in_(within))
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count(
        self,
        *,
        branch: Optional[str] = None,
        placed: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> int:
        query = select(func.count(Student.id))
        if search:
            query = query.where(_search_clause(search))
        if branch:
            query = query.where(Student.branch == branch)
        if placed is not None:
            query = query.where(Student.placed == placed)
        result = await self.session.execute(query)
        return result.scalar() or 0

    async def branch_counts(self) -> List[Dict[str, Any]]:
        """Students and placed students per branch."""
        placed = func.count(Student.id).filter(Student.placed.is_(True))
        result = await self.session.execute(
            select(Student.branch, func.count(Student.id), placed)
            .where(Student.branch.isnot(None))
            .group_by(Student.branch)
            .order_by(Student.branch)
        )
        return [
            {"branch": branch, "students": total, "placed": placed_count}
            for branch, total, placed_count in result.all()
        ]

    # ==================== Writes ====================

    async def create(self, **values: Any) -> Student:
        student = Student(**values)
        self.session.add(student)
        await self.session.flush()
        return student

    async def update_columns(self, student_id: UUID, values: Dict[str, Any]) -> None:
        if not values:
            return
        await self.session.execute(
            update(Student)
            .where(Student.id == student_id)
            .values(**values)
        )

    async def update_cgpa(self, regd_id: str, cgpa: float, branch: Optional[str] = None) -> int:
        query = update(Student).where(Student.regd_id == regd_id)
        if branch:
            query = query.where(Student.branch == branch)
        result = await self.session.execute(query.values(cgpa=cgpa))
        return result.rowcount

    async def replace_address(self, student_id: UUID, kind: str, values: Dict[str, Any]) -> None:
        await self.session.execute(
            delete(Address).where(Address.student_id == student_id, Address.type == kind)
        )
        self.session.add(Address(student_id=student_id, type=kind, **values))
        await self.session.flush()

    async def replace_education(self, student_id: UUID, level: str, values: Dict[str, Any]) -> None:
        await self.session.execute(
            delete(EducationRecord).where(
                EducationRecord.student_id == student_id, EducationRecord.level == level
            )
        )
        self.session.add(EducationRecord(student_id=student_id, level=level, **values))
        await self.session.flush()

    async def get_password_hash(self, student_id: UUID) -> Optional[str]:
        result = await self.session.execute(
            select(StudentAuth.password_hash).where(StudentAuth.student_id == student_id)
        )
        return result.scalar_one_or_none()

    async def set_password_hash(self, student_id: UUID, password_hash: str) -> bool:
        """Upsert the password row. Returns True when a new row was created."""
        result = await self.session.execute(
            select(StudentAuth).where(StudentAuth.student_id == student_id)
        )
        auth = result.scalar_one_or_none()
        if auth:
            auth.password_hash = password_hash
            await self.session.flush()
            return False
        self.session.add(StudentAuth(student_id=student_id, password_hash=password_hash))
        await self.session.flush()
        return True

    async def delete_cascade(self, student_id: UUID) -> None:
        """Remove the student and every record that hangs off it."""
        for model in (Address, EducationRecord, Application, Notification, DeviceToken, StudentAuth):
            await self.session.execute(delete(model).where(model.student_id == student_id))
        await self.session.execute(delete(Student).where(Student.id == student_id))
