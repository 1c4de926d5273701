"""Admin account and dashboard schemas."""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


# Admin accounts
class AdminCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: str = Field(..., pattern="^(main-admin|branch-admin)$")
    branch: Optional[str] = Field(None, max_length=40)


class AdminUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(None, max_length=150)
    email: Optional[EmailStr] = None
    role: Optional[str] = Field(None, pattern="^(main-admin|branch-admin)$")
    branch: Optional[str] = Field(None, max_length=40)


class AdminPasswordReset(BaseModel):
    password: str = Field(..., min_length=1)


class AdminStatusUpdate(BaseModel):
    status: str


class AdminResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    role: str
    branch: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None


# Dashboard
class BranchStats(BaseModel):
    branch: str
    students: int = 0
    placed: int = 0
    is_main: bool = False
    admins: List[Dict] = Field(default_factory=list)


class DashboardStats(BaseModel):
    total_students: int = 0
    placed_students: int = 0
    total_drives: int = 0
    active_drives: int = 0
    total_applications: int = 0
    pending_applications: int = 0
    total_companies: int = 0
    branches: Optional[List[str]] = None


class DriveStudentList(BaseModel):
    """Students listed against one drive (available or applied)."""

    drive_id: UUID
    total: int
    students: List[Dict]
