"""Security utilities: JWT, password hashing, actor context."""

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import bcrypt
from fastapi import HTTPException, status
from jose import JWTError, jwt

from placement_api.config import settings
from placement_api.utils.constants import ADMIN_ROLES, BRANCH_ADMIN, MAIN_ADMIN, STUDENT
from placement_api.utils.helpers import utcnow


@dataclass(frozen=True)
class ActorContext:
    """Who is making the request, decoded once from the bearer token.

    ``subject_id`` is the admin id for admins and the student id for students.
    """

    role: str
    subject_id: str
    branch: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def is_main_admin(self) -> bool:
        return self.role == MAIN_ADMIN

    @property
    def is_student(self) -> bool:
        return self.role == STUDENT

    @property
    def branch_scope(self) -> Optional[str]:
        """Branch this actor is restricted to, or None when unrestricted."""
        if self.role in (BRANCH_ADMIN, STUDENT) and self.branch:
            return self.branch
        return None

    def can_access_branch(self, branch: Optional[str]) -> bool:
        """Branch admins may only touch records of their own branch.

        Records with no branch recorded stay visible, as before the branch
        column was mandatory.
        """
        if self.role != BRANCH_ADMIN or not self.branch or not branch:
            return True
        return branch == self.branch


def get_password_hash(password: str) -> str:
    """Hash password with bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed hash stored in the database
        return False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    to_encode = data.copy()
    if expires_delta:
        expire = utcnow() + expires_delta
    else:
        expire = utcnow() + timedelta(minutes=settings.ADMIN_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_admin_token(admin_id: str, role: str, email: str, branch: Optional[str]) -> str:
    return create_access_token(
        {"sub": str(admin_id), "role": role, "email": email, "branch": branch},
        timedelta(minutes=settings.ADMIN_TOKEN_EXPIRE_MINUTES),
    )


def create_student_token(student_id: str, branch: Optional[str]) -> str:
    return create_access_token(
        {"sub": str(student_id), "role": STUDENT, "branch": branch},
        timedelta(days=settings.STUDENT_TOKEN_EXPIRE_DAYS),
    )


def decode_token(token: str) -> dict:
    """Decode and verify JWT token."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def actor_from_claims(payload: dict) -> ActorContext:
    """Build an ActorContext from decoded token claims."""
    subject = payload.get("sub")
    role = payload.get("role")
    if not subject or role not in (MAIN_ADMIN, BRANCH_ADMIN, STUDENT):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return ActorContext(
        role=role,
        subject_id=str(subject),
        branch=payload.get("branch") or None,
        email=payload.get("email"),
    )
