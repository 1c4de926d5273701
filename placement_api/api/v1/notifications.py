"""
Notifications API
- Students: read and acknowledge their own notifications
- Admins: browse, broadcast announcements, edit and delete
"""

from typing import List, Optional, Set
from uuid import UUID

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from placement_api.api.deps import get_actor, get_notification_dispatcher, require_admin
from placement_api.core.security import ActorContext
from placement_api.db.session import get_db
from placement_api.repositories.application import ApplicationRepository
from placement_api.repositories.notification import NotificationRepository
from placement_api.repositories.student import StudentRepository
from placement_api.schemas.notification import (
    BroadcastRequest,
    BroadcastResponse,
    BulkDeleteRequest,
    NotificationDescriptor,
    NotificationResponse,
    NotificationUpdate,
)
from placement_api.services.notification_dispatcher import NotificationDispatcher
from placement_api.utils.constants import NOTIFICATION_ANNOUNCEMENT

logger = structlog.get_logger(__name__)

router = APIRouter()


# ==================== Reads ====================

@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    student_id: Optional[UUID] = Query(None, alias="studentId"),
    unread_only: bool = Query(False, alias="unreadOnly"),
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    """
    List notifications, newest first

    **RBAC**: Student (own only), Admins (optionally filtered by `studentId`)
    """
    if actor.is_student:
        student_id = UUID(actor.subject_id)
    return await NotificationRepository(db).list(
        student_id=student_id, unread_only=unread_only, offset=offset, limit=limit
    )


@router.post("/{notification_id}/read")
async def mark_notification_read(
    notification_id: UUID,
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    """
    Mark a notification as read

    **RBAC**: Student (own only), Admins
    """
    owner = UUID(actor.subject_id) if actor.is_student else None
    if not await NotificationRepository(db).mark_read(notification_id, student_id=owner):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return {"ok": True}


# ==================== Broadcast (Admin) ====================

@router.post("/broadcast", response_model=BroadcastResponse)
async def broadcast(
    payload: BroadcastRequest,
    background_tasks: BackgroundTasks,
    actor: ActorContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """
    Send an announcement to a set of students

    The audience is the union of: everyone (`all`), `branches`, `regdIds`
    and the applicants of `driveId` (optionally only those with `status`).
    Branch admins only ever reach students of their own branch.

    **RBAC**: Branch admin, Main admin
    """
    students = StudentRepository(db)
    audience = payload.audience
    forced_branch = actor.branch_scope
    targets: Set[UUID] = set()

    if audience.all:
        targets.update(await students.ids_matching(branches=[forced_branch] if forced_branch else None))

    if audience.branches:
        branches = [forced_branch] if forced_branch else audience.branches
        targets.update(await students.ids_matching(branches=branches))

    if audience.regd_ids:
        targets.update(
            await students.ids_matching(
                regd_ids=audience.regd_ids,
                branches=[forced_branch] if forced_branch else None,
            )
        )

    if payload.drive_id:
        applicants = await ApplicationRepository(db).student_ids_for_drive(payload.drive_id, audience.status)
        if forced_branch and applicants:
            applicants = await students.ids_matching(branches=[forced_branch], within=applicants)
        targets.update(applicants)

    if not targets:
        return BroadcastResponse(targeted=0, inserted=0)

    title = (payload.title or "").strip() or "Announcement"
    notification_payload = {"drive_id": str(payload.drive_id)} if payload.drive_id else {}
    descriptors = [
        NotificationDescriptor(
            student_id=student_id,
            type=NOTIFICATION_ANNOUNCEMENT,
            title=title,
            message=payload.message,
            payload=notification_payload,
        )
        for student_id in sorted(targets, key=str)
    ]
    inserted = await dispatcher.dispatch(descriptors, background_tasks)

    logger.info("announcement_broadcast", targeted=len(targets), inserted=inserted, actor=actor.subject_id)
    return BroadcastResponse(targeted=len(targets), inserted=inserted)


# ==================== Edit / Delete (Admin) ====================

@router.delete("/bulk")
async def bulk_delete_notifications(
    payload: BulkDeleteRequest,
    actor: ActorContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete many notifications

    **RBAC**: Branch admin, Main admin
    """
    ids = list(dict.fromkeys(payload.ids))
    if not ids:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid IDs provided")
    count = await NotificationRepository(db).delete_many(ids)
    return {"ok": True, "message": f"{count} notifications deleted", "count": count}


@router.put("/{notification_id}", response_model=NotificationResponse)
async def update_notification(
    notification_id: UUID,
    payload: NotificationUpdate,
    actor: ActorContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Edit a notification's title, message or payload

    **RBAC**: Branch admin, Main admin
    """
    notification = await NotificationRepository(db).get(notification_id)
    if notification is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")

    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(notification, key, value)
    await db.flush()
    await db.refresh(notification)
    return notification


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: UUID,
    actor: ActorContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete a notification

    **RBAC**: Branch admin, Main admin
    """
    if not await NotificationRepository(db).delete(notification_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return {"ok": True, "message": "Notification deleted successfully"}
