"""
Application Workflow

Loads applications, applies lifecycle transitions, persists the result and
hands the produced notifications to the dispatcher. Expected failures come
back as ``Failure`` values; routes turn them into HTTP errors.
"""

from typing import Dict, List, Optional, Sequence, Tuple, Union
from uuid import UUID

import structlog
from fastapi import BackgroundTasks
from sqlalchemy.exc import SQLAlchemyError

from placement_api.core.exceptions import DuplicateApplicationError, ErrorKind, Failure
from placement_api.core.security import ActorContext
from placement_api.models.application import Application
from placement_api.models.drive import Drive
from placement_api.models.student import Student
from placement_api.repositories.application import ApplicationRepository
from placement_api.repositories.drive import DriveRepository
from placement_api.repositories.student import StudentRepository
from placement_api.schemas.application import (
    ApplicationSnapshot,
    BulkItemResult,
    BulkStatusUpdateResponse,
)
from placement_api.services import lifecycle
from placement_api.services.eligibility import evaluate
from placement_api.services.notification_dispatcher import NotificationDispatcher
from placement_api.utils.constants import APPLICATION_STATUSES, DRIVE_PUBLISHED

logger = structlog.get_logger(__name__)


class ApplicationWorkflow:
    def __init__(
        self,
        applications: ApplicationRepository,
        drives: DriveRepository,
        students: StudentRepository,
        dispatcher: NotificationDispatcher,
    ):
        self.applications = applications
        self.drives = drives
        self.students = students
        self.dispatcher = dispatcher

    async def _load_scoped(
        self, actor: ActorContext, application_id: UUID
    ) -> Union[ApplicationSnapshot, Failure]:
        application = await self.applications.get(application_id)
        if application is None:
            return Failure(ErrorKind.NOT_FOUND, "Application not found")
        if not actor.can_access_branch(application.student_branch):
            return Failure(ErrorKind.FORBIDDEN, "Forbidden: Application belongs to another branch")
        return application

    # ==================== Create ====================

    async def apply(
        self,
        actor: ActorContext,
        drive_id: UUID,
        student_id: Optional[UUID] = None,
    ) -> Union[ApplicationSnapshot, Failure]:
        """
        Create a pending application after the eligibility gate.

        Students always apply for themselves and only to published drives.
        Admins name the student and may enrol them into any drive state.
        """
        if actor.is_student:
            student_id = UUID(actor.subject_id)
        elif student_id is None:
            return Failure(ErrorKind.VALIDATION, "Missing student_id")

        drive = await self.drives.get_snapshot(drive_id)
        if drive is None:
            return Failure(ErrorKind.NOT_FOUND, "Drive not found")
        if actor.is_student and drive.status != DRIVE_PUBLISHED:
            return Failure(ErrorKind.INVALID_STATE, "Drive is not open for applications")

        student = await self.students.get_snapshot(student_id)
        if student is None:
            return Failure(ErrorKind.NOT_FOUND, "Student not found")
        if not actor.can_access_branch(student.branch):
            return Failure(ErrorKind.FORBIDDEN, "Forbidden: Student belongs to another branch")

        verdict = evaluate(drive.eligibility, student)
        if not verdict.eligible:
            return Failure(ErrorKind.FORBIDDEN, verdict.message)

        try:
            created = await self.applications.create(student_id, drive.id)
        except DuplicateApplicationError:
            logger.info("application_duplicate", student_id=str(student_id), drive_id=str(drive.id))
            return Failure(ErrorKind.DUPLICATE_APPLICATION, "Already applied")

        logger.info(
            "application_created",
            application_id=str(created.id),
            student_id=str(student_id),
            drive_id=str(drive.id),
        )
        return created

    # ==================== Transitions ====================

    async def change_status(
        self,
        actor: ActorContext,
        application_id: UUID,
        status: str,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> lifecycle.Outcome:
        application = await self._load_scoped(actor, application_id)
        if isinstance(application, Failure):
            return application

        outcome = lifecycle.apply_simple_status_change(
            application, status, actor.subject_id, application.drive_title
        )
        if isinstance(outcome, Failure):
            return outcome

        if not await self.applications.save(outcome.application):
            return Failure(ErrorKind.NOT_FOUND, "Application not found")
        await self.dispatcher.dispatch(outcome.notifications, background_tasks)

        logger.info(
            "application_status_updated",
            application_id=str(application_id),
            status=status,
            actor=actor.subject_id,
        )
        return outcome

    async def change_round_status(
        self,
        actor: ActorContext,
        application_id: UUID,
        round_number: int,
        round_status: str,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> lifecycle.Outcome:
        application = await self._load_scoped(actor, application_id)
        if isinstance(application, Failure):
            return application

        drive = await self.drives.get_snapshot(application.drive_id)
        outcome = lifecycle.apply_round_status_change(
            application, drive, round_number, round_status, actor.subject_id
        )
        if isinstance(outcome, Failure):
            return outcome

        if not await self.applications.save(outcome.application):
            return Failure(ErrorKind.NOT_FOUND, "Application not found")
        await self.dispatcher.dispatch(outcome.notifications, background_tasks)

        logger.info(
            "application_round_updated",
            application_id=str(application_id),
            round=round_number,
            round_status=round_status,
            overall_status=outcome.application.status,
            current_round=outcome.application.current_round,
        )
        return outcome

    async def bulk_change_status(
        self,
        actor: ActorContext,
        application_ids: Sequence[UUID],
        status: str,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> Union[BulkStatusUpdateResponse, Failure]:
        """
        Set one status on many applications.

        Each row is decided and saved on its own; a row that is missing,
        out of branch, or fails to save is reported and the rest carry on.
        """
        ids = list(dict.fromkeys(application_ids))
        if not ids or not status:
            return Failure(ErrorKind.VALIDATION, "Missing ids/status")
        if status not in APPLICATION_STATUSES:
            return Failure(ErrorKind.VALIDATION, "Invalid status")

        found = {a.id: a for a in await self.applications.get_many(ids)}
        results: Dict[UUID, BulkItemResult] = {}
        permitted: List[ApplicationSnapshot] = []
        for application_id in ids:
            application = found.get(application_id)
            if application is None:
                results[application_id] = BulkItemResult(id=application_id, ok=False, error="Not found")
            elif not actor.can_access_branch(application.student_branch):
                results[application_id] = BulkItemResult(id=application_id, ok=False, error="Forbidden")
            else:
                permitted.append(application)

        bulk = lifecycle.bulk_apply_simple_status_change(permitted, status, actor.subject_id)

        delivered = []
        for application_id, outcome in bulk.outcomes:
            if isinstance(outcome, Failure):
                results[application_id] = BulkItemResult(id=application_id, ok=False, error=outcome.reason)
                continue
            try:
                saved = await self.applications.save_isolated(outcome.application)
            except SQLAlchemyError as e:
                logger.warning("bulk_status_row_failed", application_id=str(application_id), error=str(e))
                results[application_id] = BulkItemResult(id=application_id, ok=False, error="Update failed")
                continue
            if not saved:
                results[application_id] = BulkItemResult(id=application_id, ok=False, error="Not found")
                continue
            delivered.extend(outcome.notifications)
            results[application_id] = BulkItemResult(id=application_id, ok=True)

        await self.dispatcher.dispatch(delivered, background_tasks)

        ordered = [results[application_id] for application_id in ids]
        modified = sum(1 for r in ordered if r.ok)
        logger.info("bulk_status_updated", status=status, requested=len(ids), modified=modified)
        return BulkStatusUpdateResponse(
            modified=modified, failed=len(ordered) - modified, results=ordered
        )

    # ==================== Delete ====================

    async def withdraw(
        self, actor: ActorContext, application_id: UUID
    ) -> Union[lifecycle.Withdrawal, Failure]:
        application = await self.applications.get(application_id)
        if application is None:
            return Failure(ErrorKind.NOT_FOUND, "Not found")

        decision = lifecycle.withdraw(application, actor)
        if isinstance(decision, Failure):
            return decision
        if not actor.can_access_branch(application.student_branch):
            return Failure(ErrorKind.FORBIDDEN, "Forbidden: Cannot delete application from another branch")

        await self.applications.delete(application_id)
        logger.info(
            "application_deleted",
            application_id=str(application_id),
            actor_role=actor.role,
            status=application.status,
        )
        return decision

    # ==================== Reads ====================

    async def list(
        self,
        actor: ActorContext,
        *,
        drive_id: Optional[UUID] = None,
        status: Optional[str] = None,
        branch: Optional[str] = None,
        offset: int = 0,
        limit: int = 100,
    ) -> List[Tuple[Application, Student, Drive]]:
        """Students see only their own rows; branch admins only their branch."""
        student_id = UUID(actor.subject_id) if actor.is_student else None
        if actor.is_student:
            branch = None
        elif actor.branch_scope:
            branch = actor.branch_scope
        return await self.applications.list(
            student_id=student_id,
            drive_id=drive_id,
            status=status,
            branch=branch,
            offset=offset,
            limit=limit,
        )

    async def stats(self, actor: ActorContext) -> Dict[str, int]:
        return await self.applications.status_counts(UUID(actor.subject_id))
