"""
Admin Accounts API
Main admins manage main and branch admin accounts
"""

from typing import List
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from placement_api.api.deps import require_main_admin
from placement_api.core.security import ActorContext, get_password_hash
from placement_api.db.session import get_db
from placement_api.models.admin import Admin
from placement_api.schemas.admin import (
    AdminCreate,
    AdminPasswordReset,
    AdminResponse,
    AdminStatusUpdate,
    AdminUpdate,
)
from placement_api.utils.constants import ADMIN_STATUSES, BRANCH_ADMIN

logger = structlog.get_logger(__name__)

router = APIRouter()


async def _get_admin(db: AsyncSession, admin_id: UUID) -> Admin:
    admin = await db.get(Admin, admin_id)
    if admin is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Admin not found")
    return admin


async def _email_taken(db: AsyncSession, email: str) -> bool:
    result = await db.execute(select(Admin.id).where(func.lower(Admin.email) == email.lower()))
    return result.first() is not None


@router.get("", response_model=List[AdminResponse])
async def list_admins(
    actor: ActorContext = Depends(require_main_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    List admin accounts

    **RBAC**: Main admin
    """
    result = await db.execute(select(Admin).order_by(Admin.created_at.desc()))
    return result.scalars().all()


@router.post("", response_model=AdminResponse, status_code=status.HTTP_201_CREATED)
async def create_admin(
    payload: AdminCreate,
    actor: ActorContext = Depends(require_main_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Create an admin account

    Branch admins must name their branch.

    **RBAC**: Main admin
    """
    name = payload.name.strip()
    if not name or not payload.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing fields")
    branch = (payload.branch or "").strip() or None
    if payload.role == BRANCH_ADMIN and not branch:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Branch required")

    email = payload.email.lower()
    if await _email_taken(db, email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")

    admin = Admin(
        name=name,
        email=email,
        password_hash=get_password_hash(payload.password),
        role=payload.role,
        branch=branch if payload.role == BRANCH_ADMIN else None,
        status="active",
    )
    db.add(admin)
    await db.flush()
    await db.refresh(admin)

    logger.info("admin_created", admin_id=str(admin.id), role=admin.role, by=actor.subject_id)
    return admin


@router.put("/{admin_id}", response_model=AdminResponse)
async def update_admin(
    admin_id: UUID,
    payload: AdminUpdate,
    actor: ActorContext = Depends(require_main_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Update an admin's name, email, role or branch

    **RBAC**: Main admin (cannot change own role)
    """
    admin = await _get_admin(db, admin_id)

    if payload.role is not None and payload.role != admin.role and str(admin.id) == actor.subject_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot change your own role")

    if payload.email is not None:
        email = payload.email.lower()
        if email != admin.email.lower() and await _email_taken(db, email):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")
        admin.email = email
    if payload.name:
        admin.name = payload.name.strip()
    if payload.role is not None:
        admin.role = payload.role
    if payload.branch is not None:
        admin.branch = payload.branch.strip() or None

    if admin.role == BRANCH_ADMIN and not admin.branch:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Branch required")
    if admin.role != BRANCH_ADMIN:
        admin.branch = None

    await db.flush()
    await db.refresh(admin)
    logger.info("admin_updated", admin_id=str(admin.id), by=actor.subject_id)
    return admin


@router.patch("/{admin_id}/password")
async def reset_admin_password(
    admin_id: UUID,
    payload: AdminPasswordReset,
    actor: ActorContext = Depends(require_main_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Set a new password for an admin

    **RBAC**: Main admin
    """
    admin = await _get_admin(db, admin_id)
    admin.password_hash = get_password_hash(payload.password)
    await db.flush()
    logger.info("admin_password_reset", admin_id=str(admin.id), by=actor.subject_id)
    return {"ok": True}


@router.patch("/{admin_id}/status", response_model=AdminResponse)
async def set_admin_status(
    admin_id: UUID,
    payload: AdminStatusUpdate,
    actor: ActorContext = Depends(require_main_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Activate or deactivate an admin

    **RBAC**: Main admin (not on self)
    """
    if payload.status not in ADMIN_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid status. Must be 'active' or 'inactive'",
        )
    admin = await _get_admin(db, admin_id)
    if str(admin.id) == actor.subject_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot change your own status")

    admin.status = payload.status
    await db.flush()
    await db.refresh(admin)
    logger.info("admin_status_changed", admin_id=str(admin.id), status=admin.status)
    return admin


@router.delete("/{admin_id}")
async def delete_admin(
    admin_id: UUID,
    actor: ActorContext = Depends(require_main_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete an admin account

    **RBAC**: Main admin (not on self)
    """
    admin = await _get_admin(db, admin_id)
    if str(admin.id) == actor.subject_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete your own account")
    await db.delete(admin)
    logger.info("admin_deleted", admin_id=str(admin_id), by=actor.subject_id)
    return {"ok": True}
