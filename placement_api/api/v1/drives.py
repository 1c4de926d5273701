"""
Drives API
- Admins: create, update, publish, close, delete
- Students: browse drives open to their branch
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from placement_api.api.deps import get_actor, get_drive_service, require_admin
from placement_api.core.exceptions import raise_for_failure
from placement_api.core.security import ActorContext
from placement_api.db.session import get_db
from placement_api.repositories.drive import DriveRepository
from placement_api.schemas.drive import DriveCreate, DrivePublishResponse, DriveResponse, DriveUpdate
from placement_api.services.drive_service import DriveService, expand_drive, is_visible

router = APIRouter()


# ==================== Reads ====================

@router.get("", response_model=List[DriveResponse])
async def list_drives(
    status_filter: Optional[str] = Query(None, alias="status", regex="^(draft|published|closed)$"),
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    """
    List drives, newest first

    Branch admins and students only get drives whose eligibility allows
    their branch. Filtering happens on the fetched page.

    **RBAC**: Any authenticated user
    """
    drives = await DriveRepository(db).list(status=status_filter, offset=offset, limit=limit)
    return [expand_drive(drive) for drive in drives if is_visible(actor, drive)]


@router.get("/{drive_id}", response_model=DriveResponse)
async def get_drive(
    drive_id: UUID,
    actor: ActorContext = Depends(get_actor),
    service: DriveService = Depends(get_drive_service),
):
    """
    Get one drive

    **RBAC**: Any authenticated user (branch visibility applies)
    """
    drive = await service.get_visible(actor, drive_id)
    raise_for_failure(drive)
    return expand_drive(drive)


# ==================== Writes (Admin) ====================

@router.post("", response_model=DriveResponse, status_code=status.HTTP_201_CREATED)
async def create_drive(
    payload: DriveCreate,
    actor: ActorContext = Depends(require_admin),
    service: DriveService = Depends(get_drive_service),
):
    """
    Create a draft drive

    **RBAC**: Branch admin (own branch added to eligibility), Main admin
    """
    drive = await service.create(actor, payload)
    return expand_drive(await service.drives.get(drive.id))


@router.put("/{drive_id}", response_model=DriveResponse)
async def update_drive(
    drive_id: UUID,
    payload: DriveUpdate,
    actor: ActorContext = Depends(require_admin),
    service: DriveService = Depends(get_drive_service),
):
    """
    Update a drive

    Status may only move forward: draft -> published -> closed.

    **RBAC**: Branch admin (drives open to own branch), Main admin
    """
    drive = await service.update(actor, drive_id, payload)
    raise_for_failure(drive)
    return expand_drive(await service.drives.get(drive_id))


@router.post("/{drive_id}/publish", response_model=DrivePublishResponse)
async def publish_drive(
    drive_id: UUID,
    background_tasks: BackgroundTasks,
    actor: ActorContext = Depends(require_admin),
    service: DriveService = Depends(get_drive_service),
):
    """
    Publish a draft drive and notify eligible students

    **RBAC**: Branch admin (drives open to own branch), Main admin
    """
    notified = await service.publish(actor, drive_id, background_tasks)
    raise_for_failure(notified)
    return DrivePublishResponse(notified=notified)


@router.post("/{drive_id}/close", response_model=DriveResponse)
async def close_drive(
    drive_id: UUID,
    actor: ActorContext = Depends(require_admin),
    service: DriveService = Depends(get_drive_service),
):
    """
    Close a published drive

    **RBAC**: Branch admin (drives open to own branch), Main admin
    """
    drive = await service.close(actor, drive_id)
    raise_for_failure(drive)
    return expand_drive(await service.drives.get(drive_id))


@router.delete("/{drive_id}")
async def delete_drive(
    drive_id: UUID,
    actor: ActorContext = Depends(require_admin),
    service: DriveService = Depends(get_drive_service),
):
    """
    Delete a drive without applications

    **RBAC**: Branch admin (drives open to own branch), Main admin
    """
    raise_for_failure(await service.delete(actor, drive_id))
    return {"ok": True}
