"""
Authentication API
Admin and student login, student self-registration, token introspection
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from placement_api.api.deps import bearer_scheme, get_student_service
from placement_api.config import settings
from placement_api.core.exceptions import raise_for_failure
from placement_api.core.security import (
    create_admin_token,
    create_student_token,
    get_password_hash,
    verify_password,
)
from placement_api.db.session import get_db
from placement_api.models.admin import Admin
from placement_api.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    StudentLoginRequest,
    StudentTokenResponse,
)
from placement_api.schemas.student import StudentRegister
from placement_api.services.student_service import StudentService
from placement_api.utils.constants import MAIN_ADMIN

logger = structlog.get_logger(__name__)

router = APIRouter()


# ==================== Admin ====================

@router.post("/login", response_model=LoginResponse)
async def admin_login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    """
    Admin login with email and password

    On a fresh install with no admins, the first login creates a main admin
    with the supplied credentials.
    """
    email = payload.email.strip().lower()

    result = await db.execute(select(Admin).where(func.lower(Admin.email) == email))
    admin = result.scalar_one_or_none()

    if admin is None:
        count = (await db.execute(select(func.count(Admin.id)))).scalar() or 0
        if count == 0:
            admin = Admin(
                email=email,
                name="Main Admin",
                password_hash=get_password_hash(payload.password),
                role=MAIN_ADMIN,
                branch=None,
                status="active",
            )
            db.add(admin)
            await db.flush()
            logger.warning("main_admin_bootstrapped", email=email)

    if admin is None or admin.status != "active" or not verify_password(payload.password, admin.password_hash):
        logger.info("admin_login_failed", email=email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password, or account inactive",
        )

    token = create_admin_token(str(admin.id), admin.role, admin.email, admin.branch)
    logger.info("admin_logged_in", admin_id=str(admin.id), role=admin.role)
    return LoginResponse(token=token, role=admin.role, name=admin.name, email=admin.email, branch=admin.branch)


# ==================== Student ====================

@router.post("/student/login", response_model=StudentTokenResponse)
async def student_login(
    payload: StudentLoginRequest,
    service: StudentService = Depends(get_student_service),
):
    """
    Student login with registration id and password

    Students who never set a password sign in with their date of birth
    as DDMMYYYY.
    """
    student = await service.authenticate(payload.regd_id, payload.password)
    raise_for_failure(student)
    return StudentTokenResponse(
        token=create_student_token(str(student.id), student.branch),
        student_id=str(student.id),
        branch=student.branch,
    )


@router.post("/student/register", response_model=StudentTokenResponse, status_code=status.HTTP_201_CREATED)
async def student_register(
    payload: StudentRegister,
    service: StudentService = Depends(get_student_service),
):
    """
    Student self-registration

    Creates the student (or completes an admin-created record) and sets the
    password. Without a password of at least six characters the date of
    birth as DDMMYYYY is used.
    """
    student = await service.register(payload)
    raise_for_failure(student)
    return StudentTokenResponse(
        token=create_student_token(str(student.id), student.branch),
        student_id=str(student.id),
        branch=student.branch,
    )


# ==================== Token ====================

@router.get("/me", response_model=MeResponse)
async def me(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)):
    """Decoded claims of the bearer token, or ok=false."""
    if credentials is None or not credentials.credentials:
        return MeResponse(ok=False)
    try:
        claims = jwt.decode(credentials.credentials, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return MeResponse(ok=False)
    return MeResponse(ok=True, user=claims)
