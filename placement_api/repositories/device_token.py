"""
Device Token Repository
FCM registration tokens per student
"""
from typing import List, Sequence, Tuple
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from placement_api.models.student import DeviceToken
from placement_api.utils.helpers import utcnow


class DeviceTokenRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def upsert(self, student_id: UUID, token: str, platform: str) -> None:
        now = utcnow()
        stmt = insert(DeviceToken).values(
            student_id=student_id,
            device_token=token,
            platform=platform,
            last_used_at=now,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[DeviceToken.student_id, DeviceToken.device_token],
            set_={"platform": platform, "last_used_at": now, "updated_at": now},
        )
        await self.session.execute(stmt)

    async def tokens_for(self, student_ids: Sequence[UUID]) -> List[Tuple[UUID, str]]:
        if not student_ids:
            return []
        result = await self.session.execute(
            select(DeviceToken.student_id, DeviceToken.device_token).where(
                DeviceToken.student_id.in_(student_ids)
            )
        )
        return [(student_id, token) for student_id, token in result.all()]

    async def touch(self, tokens: Sequence[str]) -> None:
        if not tokens:
            return
        await self.session.execute(
            update(DeviceToken)
            .where(DeviceToken.device_token.in_(tokens))
            .values(last_used_at=utcnow())
        )

    async def remove(self, tokens: Sequence[str]) -> int:
        if not tokens:
            return 0
        result = await self.session.execute(delete(DeviceToken).where(DeviceToken.device_token.in_(tokens)))
        return result.rowcount
