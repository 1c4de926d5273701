"""
Drive Service
Visibility, status progression and publication fan-out of drives
"""

from typing import Any, Dict, Optional, Union
from uuid import UUID

import structlog
from fastapi import BackgroundTasks

from placement_api.core.exceptions import ErrorKind, Failure
from placement_api.core.security import ActorContext
from placement_api.models.drive import Drive
from placement_api.repositories.application import ApplicationRepository
from placement_api.repositories.drive import DriveRepository
from placement_api.repositories.student import StudentRepository
from placement_api.schemas.drive import DriveCreate, DriveResponse, DriveUpdate, EligibilityCriteria
from placement_api.schemas.notification import NotificationDescriptor
from placement_api.services.eligibility import filter_eligible
from placement_api.services.notification_dispatcher import NotificationDispatcher
from placement_api.utils.constants import (
    DRIVE_CLOSED,
    DRIVE_DRAFT,
    DRIVE_PUBLISHED,
    DRIVE_STATUS_TRANSITIONS,
    DRIVE_STATUSES,
    NOTIFICATION_DRIVE_PUBLISHED,
)
from placement_api.utils.helpers import utcnow

logger = structlog.get_logger(__name__)


def expand_drive(drive: Drive) -> DriveResponse:
    """Drive plus the flattened display fields the dashboard reads."""
    criteria = EligibilityCriteria.from_raw(drive.eligibility)
    company_info = (drive.company.info or {}) if drive.company else {}
    return DriveResponse(
        id=drive.id,
        company_id=drive.company_id,
        title=drive.title,
        description=drive.description,
        status=drive.status,
        publish_date=drive.publish_date,
        eligibility=drive.eligibility or {},
        total_rounds=drive.total_rounds or 1,
        round_names=drive.round_names or [],
        created_at=drive.created_at,
        updated_at=drive.updated_at,
        company=drive.company.name if drive.company else None,
        location=company_info.get("location") or criteria.extra_field("location"),
        salary=company_info.get("salary") or criteria.extra_field("salary"),
        experience_required=criteria.extra_field("experience_required"),
        cgpa_required=criteria.min_cgpa or None,
        branch=", ".join(criteria.branches) if criteria.branches else "Any",
        deadline=criteria.extra_field("deadline"),
        drive_date=criteria.extra_field("drive_date"),
    )


def is_visible(actor: ActorContext, drive: Drive) -> bool:
    """Branch admins and students only see drives open to their branch."""
    scope = actor.branch_scope
    if not scope:
        return True
    return EligibilityCriteria.from_raw(drive.eligibility).allows_branch(scope)


def check_status_change(current: str, requested: str) -> Optional[Failure]:
    """Drives only move draft -> published -> closed; same-status writes are no-ops."""
    if requested not in DRIVE_STATUSES:
        return Failure(ErrorKind.VALIDATION, "Invalid status value")
    if requested == current:
        return None
    if requested not in DRIVE_STATUS_TRANSITIONS.get(current, set()):
        return Failure(ErrorKind.INVALID_STATE, f"Cannot change drive status from {current} to {requested}")
    return None


class DriveService:
    def __init__(
        self,
        drives: DriveRepository,
        students: StudentRepository,
        applications: ApplicationRepository,
        dispatcher: NotificationDispatcher,
    ):
        self.drives = drives
        self.students = students
        self.applications = applications
        self.dispatcher = dispatcher

    async def get_visible(self, actor: ActorContext, drive_id: UUID) -> Union[Drive, Failure]:
        drive = await self.drives.get(drive_id)
        if drive is None:
            return Failure(ErrorKind.NOT_FOUND, "Drive not found")
        if not is_visible(actor, drive):
            return Failure(ErrorKind.FORBIDDEN, "Forbidden: Drive not available for your branch")
        return drive

    async def create(self, actor: ActorContext, payload: DriveCreate) -> Drive:
        """New drives start as drafts; branch admins always include their branch."""
        criteria = payload.eligibility
        if actor.branch_scope and actor.branch_scope not in criteria.branches:
            criteria = criteria.model_copy(update={"branches": [*criteria.branches, actor.branch_scope]})

        drive = await self.drives.create(
            company_id=payload.company_id,
            title=(payload.title or "").strip() or "Untitled Drive",
            description=(payload.description or "").strip() or None,
            status=DRIVE_DRAFT,
            eligibility=criteria.to_storage(),
            total_rounds=payload.total_rounds,
            round_names=payload.round_names[: payload.total_rounds],
        )
        logger.info("drive_created", drive_id=str(drive.id), actor=actor.subject_id)
        return drive

    async def update(self, actor: ActorContext, drive_id: UUID, payload: DriveUpdate) -> Union[Drive, Failure]:
        drive = await self.get_visible(actor, drive_id)
        if isinstance(drive, Failure):
            return drive

        values: Dict[str, Any] = payload.model_dump(exclude_unset=True, exclude={"eligibility"})
        if payload.eligibility is not None:
            values["eligibility"] = payload.eligibility.to_storage()

        if "status" in values:
            failure = check_status_change(drive.status, values["status"])
            if failure:
                return failure
            if values["status"] == DRIVE_PUBLISHED and drive.status != DRIVE_PUBLISHED:
                values["publish_date"] = utcnow()

        total_rounds = values.get("total_rounds", drive.total_rounds or 1)
        round_names = values.get("round_names", drive.round_names or [])
        if len(round_names) > total_rounds:
            return Failure(ErrorKind.VALIDATION, "round_names cannot be longer than total_rounds")

        drive = await self.drives.update(drive, values)
        logger.info("drive_updated", drive_id=str(drive_id), fields=sorted(values))
        return drive

    async def publish(
        self,
        actor: ActorContext,
        drive_id: UUID,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> Union[int, Failure]:
        """
        Publish a draft and notify every eligible student.

        Returns the number of students notified.
        """
        drive = await self.get_visible(actor, drive_id)
        if isinstance(drive, Failure):
            return drive
        if drive.status != DRIVE_DRAFT:
            return Failure(ErrorKind.INVALID_STATE, f"Only draft drives can be published (drive is {drive.status})")

        await self.drives.update(drive, {"status": DRIVE_PUBLISHED, "publish_date": utcnow()})

        criteria = EligibilityCriteria.from_raw(drive.eligibility)
        recipients = filter_eligible(criteria, await self.students.candidates_for(criteria))
        descriptors = [
            NotificationDescriptor(
                student_id=student.id,
                type=NOTIFICATION_DRIVE_PUBLISHED,
                title="New Drive Published",
                message=f"{drive.title} has been published. Check it out!",
                payload={"drive_id": str(drive.id)},
            )
            for student in recipients
        ]
        await self.dispatcher.dispatch(descriptors, background_tasks)

        logger.info("drive_published", drive_id=str(drive_id), notified=len(recipients))
        return len(recipients)

    async def close(self, actor: ActorContext, drive_id: UUID) -> Union[Drive, Failure]:
        return await self.update(actor, drive_id, DriveUpdate(status=DRIVE_CLOSED))

    async def delete(self, actor: ActorContext, drive_id: UUID) -> Optional[Failure]:
        drive = await self.get_visible(actor, drive_id)
        if isinstance(drive, Failure):
            return drive

        count = await self.applications.count_for_drive(drive_id)
        if count:
            return Failure(ErrorKind.INVALID_STATE, f"Cannot delete drive with {count} existing applications")

        await self.drives.delete(drive)
        logger.info("drive_deleted", drive_id=str(drive_id))
        return None
