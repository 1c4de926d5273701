"""Authentication schemas."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class LoginRequest(BaseModel):
    """Admin login request schema."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """Admin login response schema."""

    token: str
    role: str
    name: str
    email: str
    branch: Optional[str] = None


class StudentLoginRequest(BaseModel):
    """Student login by registration id; accepts ``regdId`` or ``regd_id``."""

    model_config = ConfigDict(populate_by_name=True)

    regd_id: str = Field("", alias="regdId")
    password: str = ""

    @field_validator("regd_id", "password", mode="before")
    @classmethod
    def strip(cls, v):
        return str(v).strip() if v is not None else ""


class StudentTokenResponse(BaseModel):
    """Returned by student login and registration."""

    token: str
    role: str = "student"
    student_id: str
    branch: Optional[str] = None


class MeResponse(BaseModel):
    ok: bool
    user: Optional[Dict[str, Any]] = None
