"""
Notification Dispatcher

Persists notification rows produced by lifecycle transitions and broadcasts,
then schedules push delivery. Neither step may fail the caller.
"""

from collections import OrderedDict
from typing import Iterable, List, Optional

import structlog
from fastapi import BackgroundTasks
from sqlalchemy.exc import SQLAlchemyError

from placement_api.repositories.notification import NotificationRepository
from placement_api.schemas.notification import NotificationDescriptor
from placement_api.services.push_service import PushService

logger = structlog.get_logger(__name__)


class NotificationDispatcher:
    def __init__(self, notifications: NotificationRepository, push: PushService):
        self.notifications = notifications
        self.push = push

    async def dispatch(
        self,
        descriptors: Iterable[NotificationDescriptor],
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> int:
        """
        Store ``descriptors`` and queue their push delivery.

        Returns the number of rows stored (0 when storing failed). Push is only
        scheduled when ``background_tasks`` is given, so it runs after the
        response is sent.
        """
        descriptors = list(descriptors)
        if not descriptors:
            return 0

        try:
            inserted = await self.notifications.add_many(descriptors)
        except SQLAlchemyError as e:
            logger.error("notification_persist_failed", count=len(descriptors), error=str(e))
            inserted = 0

        if background_tasks is not None:
            for batch in self.group_for_push(descriptors):
                background_tasks.add_task(
                    self.push.safe_send_to_students,
                    [d.student_id for d in batch],
                    batch[0].title,
                    batch[0].message,
                    batch[0].push_data(),
                )

        logger.info("notifications_dispatched", count=len(descriptors), inserted=inserted)
        return inserted

    @staticmethod
    def group_for_push(descriptors: List[NotificationDescriptor]) -> List[List[NotificationDescriptor]]:
        """Batch descriptors whose title, message and push data are identical."""
        groups: "OrderedDict[tuple, List[NotificationDescriptor]]" = OrderedDict()
        for descriptor in descriptors:
            key = (descriptor.title, descriptor.message, tuple(sorted(descriptor.push_data().items())))
            groups.setdefault(key, []).append(descriptor)
        return list(groups.values())
