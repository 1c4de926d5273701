"""
Pydantic schemas for notifications
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class NotificationDescriptor(BaseModel):
    """A notification a core operation wants delivered to one student."""

    model_config = ConfigDict(frozen=True)

    student_id: UUID
    type: str
    title: str
    message: str
    payload: Dict[str, Any] = Field(default_factory=dict)

    def push_data(self) -> Dict[str, str]:
        """FCM data messages only carry string values."""
        data = {key: str(value) for key, value in self.payload.items() if value is not None}
        data["type"] = self.type
        return data


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: UUID
    type: str
    title: str
    message: str
    payload: Optional[Any] = None
    read: bool
    created_at: datetime


class BroadcastAudience(BaseModel):
    all: Optional[bool] = None
    branches: Optional[List[str]] = None
    regd_ids: Optional[List[str]] = Field(None, alias="regdIds")
    status: Optional[str] = Field(None, pattern="^(pending|accepted|rejected)$")

    model_config = ConfigDict(populate_by_name=True)


class BroadcastRequest(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    message: str = Field(..., min_length=1, max_length=2000)
    audience: BroadcastAudience = Field(default_factory=BroadcastAudience)
    drive_id: Optional[UUID] = Field(None, alias="driveId")

    model_config = ConfigDict(populate_by_name=True)


class BroadcastResponse(BaseModel):
    ok: bool = True
    targeted: int
    inserted: int


class NotificationUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    message: Optional[str] = None
    payload: Optional[Any] = None


class BulkDeleteRequest(BaseModel):
    ids: List[UUID] = Field(default_factory=list)
