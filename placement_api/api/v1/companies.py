"""
Companies API
Recruiting companies referenced by drives
"""

from typing import List
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from placement_api.api.deps import get_actor, require_admin
from placement_api.core.security import ActorContext
from placement_api.db.session import get_db
from placement_api.models.company import Company
from placement_api.repositories.drive import DriveRepository
from placement_api.schemas.company import CompanyResponse, CompanyUpdate, CompanyUpsert

logger = structlog.get_logger(__name__)

router = APIRouter()


async def _get_company(db: AsyncSession, company_id: UUID) -> Company:
    company = await db.get(Company, company_id)
    if company is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    return company


@router.get("", response_model=List[CompanyResponse])
async def list_companies(
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    """
    List companies by name

    **RBAC**: Any authenticated user
    """
    result = await db.execute(select(Company).order_by(Company.name))
    return result.scalars().all()


@router.post("", response_model=CompanyResponse, status_code=status.HTTP_201_CREATED)
async def upsert_company(
    payload: CompanyUpsert,
    actor: ActorContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a company, or replace the info of the one with the same name

    **RBAC**: Branch admin, Main admin
    """
    name = payload.name.strip()
    result = await db.execute(select(Company).where(Company.name == name))
    company = result.scalar_one_or_none()

    if company is None:
        company = Company(name=name, info=payload.info)
        db.add(company)
        logger.info("company_created", name=name)
    else:
        company.info = payload.info

    await db.flush()
    await db.refresh(company)
    return company


@router.put("/{company_id}", response_model=CompanyResponse)
async def update_company(
    company_id: UUID,
    payload: CompanyUpdate,
    actor: ActorContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Rename a company or change its info

    **RBAC**: Branch admin, Main admin
    """
    company = await _get_company(db, company_id)

    if payload.name is not None:
        name = payload.name.strip()
        if name != company.name:
            clash = await db.execute(select(Company.id).where(Company.name == name))
            if clash.scalar_one_or_none():
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Company name already exists")
            company.name = name
    if payload.info is not None:
        company.info = payload.info

    await db.flush()
    await db.refresh(company)
    return company


@router.delete("/{company_id}")
async def delete_company(
    company_id: UUID,
    actor: ActorContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete a company without drives

    **RBAC**: Branch admin, Main admin
    """
    company = await _get_company(db, company_id)
    if await DriveRepository(db).count_for_company(company_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete company with existing drives",
        )
    await db.delete(company)
    logger.info("company_deleted", company_id=str(company_id))
    return {"ok": True}
