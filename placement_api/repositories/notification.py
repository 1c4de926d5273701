"""
Notification Repository
"""
from typing import Iterable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from placement_api.models.notification import Notification
from placement_api.schemas.notification import NotificationDescriptor


class NotificationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add_many(self, descriptors: Iterable[NotificationDescriptor]) -> int:
        rows = [
            Notification(
                student_id=d.student_id,
                type=d.type,
                title=d.title,
                message=d.message,
                payload=d.payload,
                read=False,
            )
            for d in descriptors
        ]
        if not rows:
            return 0
        async with self.session.begin_nested():
            self.session.add_all(rows)
            await self.session.flush()
        return len(rows)

    async def get(self, notification_id: UUID) -> Optional[Notification]:
        result = await self.session.execute(select(Notification).where(Notification.id == notification_id))
        return result.scalar_one_or_none()

    async def list(
        self,
        *,
        student_id: Optional[UUID] = None,
        unread_only: bool = False,
        offset: int = 0,
        limit: int = 100,
    ) -> List[Notification]:
        query = select(Notification)
        if student_id:
            query = query.where(Notification.student_id == student_id)
        if unread_only:
            query = query.where(Notification.read.is_(False))
        query = query.order_by(Notification.created_at.desc()).offset(offset).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def mark_read(self, notification_id: UUID, student_id: Optional[UUID] = None) -> bool:
        query = update(Notification).where(Notification.id == notification_id)
        if student_id:
            query = query.where(Notification.student_id == student_id)
        result = await self.session.execute(query.values(read=True))
        return result.rowcount > 0

    async def delete(self, notification_id: UUID) -> bool:
        result = await self.session.execute(delete(Notification).where(Notification.id == notification_id))
        return result.rowcount > 0

    async def delete_many(self, notification_ids: Sequence[UUID]) -> int:
        if not notification_ids:
            return 0
        result = await self.session.execute(delete(Notification).where(Notification.id.in_(notification_ids)))
        return result.rowcount
