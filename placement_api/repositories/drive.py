"""
Drive Repository
"""
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from placement_api.models.drive import Drive
from placement_api.schemas.drive import DriveSnapshot


class DriveRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, drive_id: UUID) -> Optional[Drive]:
        result = await self.session.execute(
            select(Drive).options(selectinload(Drive.company)).where(Drive.id == drive_id)
        )
        return result.scalar_one_or_none()

    async def get_snapshot(self, drive_id: UUID) -> Optional[DriveSnapshot]:
        drive = await self.get(drive_id)
        return DriveSnapshot.model_validate(drive) if drive else None

    async def list(self, *, status: Optional[str] = None, offset: int = 0, limit: int = 50) -> List[Drive]:
        query = select(Drive).options(selectinload(Drive.company))
        if status:
            query = query.where(Drive.status == status)
        query = query.order_by(Drive.created_at.desc()).offset(offset).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def create(self, **values: Any) -> Drive:
        drive = Drive(**values)
        self.session.add(drive)
        await self.session.flush()
        await self.session.refresh(drive, attribute_names=["company"])
        return drive

    async def update(self, drive: Drive, values: Dict[str, Any]) -> Drive:
        for key, value in values.items():
            setattr(drive, key, value)
        await self.session.flush()
        await self.session.refresh(drive, attribute_names=["company", "updated_at"])
        return drive

    async def delete(self, drive: Drive) -> None:
        await self.session.delete(drive)
        await self.session.flush()

    async def count(self, status: Optional[str] = None) -> int:
        query = select(func.count(Drive.id))
        if status:
            query = query.where(Drive.status == status)
        result = await self.session.execute(query)
        return result.scalar() or 0

    async def count_for_company(self, company_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count(Drive.id)).where(Drive.company_id == company_id)
        )
        return result.scalar() or 0
