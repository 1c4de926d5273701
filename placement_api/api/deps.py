"""
API Dependencies
Authentication, role checks and service wiring for API endpoints
"""

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from placement_api.core.security import ActorContext, actor_from_claims, decode_token
from placement_api.db.session import get_db
from placement_api.repositories.application import ApplicationRepository
from placement_api.repositories.drive import DriveRepository
from placement_api.repositories.notification import NotificationRepository
from placement_api.repositories.student import StudentRepository
from placement_api.services.application_workflow import ApplicationWorkflow
from placement_api.services.drive_service import DriveService
from placement_api.services.notification_dispatcher import NotificationDispatcher
from placement_api.services.push_service import get_push_service
from placement_api.services.student_service import StudentService

# HTTPBearer so Swagger accepts a pasted token; auto_error off to return our own 401
bearer_scheme = HTTPBearer(auto_error=False)


async def get_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> ActorContext:
    """Decode the bearer token into an ActorContext."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return actor_from_claims(decode_token(credentials.credentials))


async def require_admin(actor: ActorContext = Depends(get_actor)) -> ActorContext:
    """Require main-admin or branch-admin role."""
    if not actor.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: Admin access required",
        )
    return actor


async def require_main_admin(actor: ActorContext = Depends(get_actor)) -> ActorContext:
    """Require main-admin role."""
    if not actor.is_main_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return actor


async def require_student(actor: ActorContext = Depends(get_actor)) -> ActorContext:
    """Require student role."""
    if not actor.is_student:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Student access only")
    return actor


def get_notification_dispatcher(db: AsyncSession = Depends(get_db)) -> NotificationDispatcher:
    return NotificationDispatcher(NotificationRepository(db), get_push_service())


def get_application_workflow(
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> ApplicationWorkflow:
    return ApplicationWorkflow(
        applications=ApplicationRepository(db),
        drives=DriveRepository(db),
        students=StudentRepository(db),
        dispatcher=dispatcher,
    )


def get_drive_service(
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> DriveService:
    return DriveService(
        drives=DriveRepository(db),
        students=StudentRepository(db),
        applications=ApplicationRepository(db),
        dispatcher=dispatcher,
    )


def get_student_service(db: AsyncSession = Depends(get_db)) -> StudentService:
    return StudentService(StudentRepository(db))
