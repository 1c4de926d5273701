"""Push notification delivery through Firebase Cloud Messaging."""

import asyncio
import os
from enum import Enum
from typing import Dict, Optional, Sequence
from uuid import UUID

import firebase_admin
import structlog
from firebase_admin import credentials, exceptions as firebase_exceptions, messaging

from placement_api.config import settings
from placement_api.db.session import AsyncSessionLocal
from placement_api.repositories.device_token import DeviceTokenRepository

logger = structlog.get_logger(__name__)


class PushOutcome(str, Enum):
    SENT = "sent"
    INVALID_TOKEN = "invalid_token"
    FAILED = "failed"


class PushService:
    """Best-effort FCM delivery to every registered device of a set of students."""

    def __init__(
        self,
        service_account_path: Optional[str] = None,
        enabled: Optional[bool] = None,
        android_channel_id: Optional[str] = None,
        session_factory=AsyncSessionLocal,
    ):
        self.service_account_path = service_account_path or settings.FIREBASE_SERVICE_ACCOUNT_PATH
        self.enabled = settings.PUSH_ENABLED if enabled is None else enabled
        self.android_channel_id = android_channel_id or settings.PUSH_ANDROID_CHANNEL_ID
        self.session_factory = session_factory
        self._app = None

    def _initialize(self) -> bool:
        """Initialise the Firebase app once; disables the service if it cannot."""
        if self._app is not None:
            return True
        if not self.enabled:
            return False

        path = os.path.abspath(self.service_account_path)
        if not os.path.exists(path):
            logger.info("push_disabled_no_service_account", path=path)
            self.enabled = False
            return False

        try:
            self._app = firebase_admin.initialize_app(
                credentials.Certificate(path), name="placement-push"
            )
        except (ValueError, IOError) as e:
            logger.error("push_initialization_failed", error=str(e))
            self.enabled = False
            return False

        logger.info("push_service_initialized")
        return True

    def _build_message(self, token: str, title: str, body: str, data: Dict[str, str]) -> messaging.Message:
        return messaging.Message(
            token=token,
            notification=messaging.Notification(title=title, body=body),
            data=data,
            android=messaging.AndroidConfig(
                priority="high",
                notification=messaging.AndroidNotification(
                    channel_id=self.android_channel_id, sound="default"
                ),
            ),
            apns=messaging.APNSConfig(
                payload=messaging.APNSPayload(aps=messaging.Aps(sound="default", badge=1))
            ),
        )

    def send(self, token: str, title: str, body: str, data: Optional[Dict[str, str]] = None) -> PushOutcome:
        """Send one message; blocking, so callers run it in a thread."""
        if not self._initialize():
            return PushOutcome.FAILED

        try:
            messaging.send(self._build_message(token, title, body, data or {}), app=self._app)
            return PushOutcome.SENT
        except (messaging.UnregisteredError, firebase_exceptions.InvalidArgumentError):
            logger.info("push_token_invalid")
            return PushOutcome.INVALID_TOKEN
        except firebase_exceptions.FirebaseError as e:
            logger.warning("push_send_failed", error=str(e))
            return PushOutcome.FAILED

    async def send_to_students(
        self,
        student_ids: Sequence[UUID],
        title: str,
        body: str,
        data: Optional[Dict[str, str]] = None,
    ) -> Dict[str, int]:
        """
        Push to all devices of ``student_ids`` using a dedicated session.

        Successful tokens get ``last_used_at`` refreshed; tokens FCM reports
        as unregistered or malformed are deleted.
        """
        summary = {"sent": 0, "failed": 0, "pruned": 0}
        if not student_ids or not self._initialize():
            return summary

        async with self.session_factory() as session:
            repo = DeviceTokenRepository(session)
            tokens = await repo.tokens_for(list(student_ids))
            if not tokens:
                logger.debug("push_no_device_tokens", students=len(student_ids))
                return summary

            delivered, invalid = [], []
            for _, token in tokens:
                outcome = await asyncio.to_thread(self.send, token, title, body, data)
                if outcome == PushOutcome.SENT:
                    delivered.append(token)
                elif outcome == PushOutcome.INVALID_TOKEN:
                    invalid.append(token)
                else:
                    summary["failed"] += 1

            await repo.touch(delivered)
            summary["pruned"] = await repo.remove(invalid)
            await session.commit()

        summary["sent"] = len(delivered)
        summary["failed"] += len(invalid)
        logger.info("push_batch_completed", title=title, **summary)
        return summary

    async def safe_send_to_students(self, *args, **kwargs) -> Dict[str, int]:
        """``send_to_students`` for background tasks: never raises."""
        try:
            return await self.send_to_students(*args, **kwargs)
        except Exception as e:
            logger.error("push_background_failed", error=str(e), exc_info=True)
            return {"sent": 0, "failed": 0, "pruned": 0}


push_service = PushService()


def get_push_service() -> PushService:
    return push_service
