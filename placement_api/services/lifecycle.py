"""
Application Lifecycle Engine

Decides the next state of an application for a requested transition and the
notifications that transition produces. Functions here never touch the
database or the network: callers persist ``Transition.application`` and hand
``Transition.notifications`` to the dispatcher.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Tuple, Union
from uuid import UUID

from placement_api.core.exceptions import ErrorKind, Failure
from placement_api.core.security import ActorContext
from placement_api.schemas.application import ApplicationSnapshot, RoundEntry, StatusHistoryEntry
from placement_api.schemas.drive import DriveSnapshot
from placement_api.schemas.notification import NotificationDescriptor
from placement_api.utils.constants import (
    APPLICATION_ACCEPTED,
    APPLICATION_PENDING,
    APPLICATION_REJECTED,
    APPLICATION_STATUSES,
    NOTIFICATION_APPLICATION_STATUS,
    NOTIFICATION_ROUND_UPDATE,
    ROUND_STATUSES,
)
from placement_api.utils.helpers import utcnow


@dataclass(frozen=True)
class Transition:
    """New application state plus the notifications to deliver for it."""

    application: ApplicationSnapshot
    notifications: Tuple[NotificationDescriptor, ...] = ()


@dataclass(frozen=True)
class Withdrawal:
    """Permission to hard-delete an application."""

    application_id: Optional[UUID]


Outcome = Union[Transition, Failure]


@dataclass
class BulkResult:
    """Per-row outcomes of a bulk status change, in input order."""

    outcomes: List[Tuple[Optional[UUID], Outcome]] = field(default_factory=list)

    @property
    def transitions(self) -> List[Transition]:
        return [outcome for _, outcome in self.outcomes if isinstance(outcome, Transition)]

    @property
    def success_count(self) -> int:
        return len(self.transitions)

    @property
    def notifications(self) -> List[NotificationDescriptor]:
        return [n for transition in self.transitions for n in transition.notifications]


def _actor(actor_id) -> Optional[str]:
    return None if actor_id is None else str(actor_id)


def apply_simple_status_change(
    application: ApplicationSnapshot,
    requested_status: str,
    actor_id,
    drive_title: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Outcome:
    """
    Set the overall status directly.

    Appends one ``status_history`` entry; ``current_round`` and
    ``round_status`` are left alone.
    """
    if requested_status not in APPLICATION_STATUSES:
        return Failure(ErrorKind.VALIDATION, "Invalid status")

    now = now or utcnow()
    title = drive_title or application.drive_title or "the drive"

    entry = StatusHistoryEntry(status=requested_status, changed_at=now, changed_by=_actor(actor_id))
    updated = application.model_copy(
        update={
            "status": requested_status,
            "status_history": [*application.status_history, entry],
        }
    )

    notification = NotificationDescriptor(
        student_id=application.student_id,
        type=NOTIFICATION_APPLICATION_STATUS,
        title="Application Status Updated",
        message=f"Your application for {title} is now {requested_status}",
        payload={
            "application_id": str(application.id) if application.id else None,
            "drive_id": str(application.drive_id),
            "status": requested_status,
        },
    )
    return Transition(application=updated, notifications=(notification,))


def apply_round_status_change(
    application: ApplicationSnapshot,
    drive: Optional[DriveSnapshot],
    round_number: int,
    round_status: str,
    actor_id,
    now: Optional[datetime] = None,
) -> Outcome:
    """
    Record a verdict for one interview round.

    A rejection at any round rejects the application and keeps
    ``current_round`` where it was. An acceptance advances to the next round,
    or accepts the application at the final round. Re-judging a round appends
    another entry; the latest verdict decides the overall status.
    ``status_history`` is never touched here.
    """
    if round_status not in ROUND_STATUSES:
        return Failure(ErrorKind.VALIDATION, "Invalid round status. Use 'accepted' or 'rejected'")
    if drive is None:
        return Failure(ErrorKind.NOT_FOUND, "Drive not found")

    total_rounds = drive.total_rounds
    if isinstance(round_number, bool) or not isinstance(round_number, int) or not 1 <= round_number <= total_rounds:
        return Failure(ErrorKind.INVALID_ROUND, f"Invalid round number. Drive has {total_rounds} rounds")

    now = now or utcnow()
    round_name = drive.round_name(round_number)

    if round_status == APPLICATION_REJECTED:
        overall_status = APPLICATION_REJECTED
        current_round = application.current_round
    elif round_number < total_rounds:
        overall_status = APPLICATION_PENDING
        current_round = round_number + 1
    else:
        overall_status = APPLICATION_ACCEPTED
        current_round = application.current_round

    entry = RoundEntry(
        round=round_number,
        status=round_status,
        round_name=round_name,
        updated_at=now,
        updated_by=_actor(actor_id),
    )
    updated = application.model_copy(
        update={
            "status": overall_status,
            "current_round": current_round,
            "round_status": [*application.round_status, entry],
        }
    )

    notification = NotificationDescriptor(
        student_id=application.student_id,
        type=NOTIFICATION_ROUND_UPDATE,
        title=f"{round_name} {round_status.capitalize()}",
        message=f"You have been {round_status} in {round_name} for {drive.title}",
        payload={
            "application_id": str(application.id) if application.id else None,
            "drive_id": str(application.drive_id),
            "round": round_number,
            "round_status": round_status,
            "overall_status": overall_status,
        },
    )
    return Transition(application=updated, notifications=(notification,))


def bulk_apply_simple_status_change(
    applications: Iterable[ApplicationSnapshot],
    requested_status: str,
    actor_id,
    now: Optional[datetime] = None,
) -> BulkResult:
    """Apply ``apply_simple_status_change`` to each row independently."""
    now = now or utcnow()
    result = BulkResult()
    for application in applications:
        outcome = apply_simple_status_change(application, requested_status, actor_id, now=now)
        result.outcomes.append((application.id, outcome))
    return result


def withdraw(application: ApplicationSnapshot, actor: ActorContext) -> Union[Withdrawal, Failure]:
    """
    Decide whether ``actor`` may delete ``application``.

    Students may only withdraw their own pending applications. Admins always
    may; branch scoping of admins is the caller's job.
    """
    if actor.is_student:
        if str(application.student_id) != str(actor.subject_id):
            return Failure(ErrorKind.FORBIDDEN, "Forbidden")
        if application.status != APPLICATION_PENDING:
            return Failure(ErrorKind.INVALID_STATE, "Only pending applications can be withdrawn")
        return Withdrawal(application.id)

    if actor.is_admin:
        return Withdrawal(application.id)

    return Failure(ErrorKind.FORBIDDEN, "Forbidden")
