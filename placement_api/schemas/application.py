"""
Pydantic schemas for applications and their audit trails
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StatusHistoryEntry(BaseModel):
    """One overall-status change."""

    status: str
    changed_at: datetime
    changed_by: Optional[str] = None

    @field_validator("changed_by", mode="before")
    @classmethod
    def stringify_actor(cls, v):
        return None if v is None else str(v)


class RoundEntry(BaseModel):
    """One verdict on one interview round."""

    round: int
    status: str
    round_name: str
    updated_at: datetime
    updated_by: Optional[str] = None

    @field_validator("updated_by", mode="before")
    @classmethod
    def stringify_actor(cls, v):
        return None if v is None else str(v)


class ApplicationSnapshot(BaseModel):
    """State of an application as the lifecycle engine sees it."""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[UUID] = None
    student_id: UUID
    drive_id: UUID
    status: str = "pending"
    current_round: int = 1
    status_history: List[StatusHistoryEntry] = Field(default_factory=list)
    round_status: List[RoundEntry] = Field(default_factory=list)

    # Filled in by the repository from the joined rows when available
    student_branch: Optional[str] = None
    drive_title: Optional[str] = None

    @field_validator("status_history", "round_status", mode="before")
    @classmethod
    def default_list(cls, v):
        return v if isinstance(v, list) else []

    @field_validator("current_round", mode="before")
    @classmethod
    def default_round(cls, v):
        return v or 1

    def history_for_storage(self) -> List[dict]:
        return [entry.model_dump(mode="json") for entry in self.status_history]

    def rounds_for_storage(self) -> List[dict]:
        return [entry.model_dump(mode="json") for entry in self.round_status]


# ==================== Requests ====================

class ApplicationCreate(BaseModel):
    drive_id: UUID
    student_id: Optional[UUID] = None


class StatusUpdateRequest(BaseModel):
    status: str = ""

    @field_validator("status", mode="before")
    @classmethod
    def strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class RoundStatusUpdateRequest(BaseModel):
    round: int
    status: str = ""

    @field_validator("status", mode="before")
    @classmethod
    def strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class BulkStatusUpdateRequest(BaseModel):
    ids: List[UUID] = Field(default_factory=list)
    status: str = ""

    @field_validator("status", mode="before")
    @classmethod
    def strip(cls, v):
        return v.strip() if isinstance(v, str) else v


# ==================== Responses ====================

class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: UUID
    drive_id: UUID
    status: str
    status_history: List[Dict[str, Any]]
    current_round: int
    round_status: List[Dict[str, Any]]
    applied_at: datetime
    updated_at: Optional[datetime] = None

    student: Optional[Dict[str, Any]] = None
    drive: Optional[Dict[str, Any]] = None


class StatusUpdateResponse(BaseModel):
    ok: bool = True
    status: str


class RoundStatusUpdateResponse(BaseModel):
    ok: bool = True
    current_round: int
    overall_status: str


class BulkItemResult(BaseModel):
    id: UUID
    ok: bool
    error: Optional[str] = None


class BulkStatusUpdateResponse(BaseModel):
    ok: bool = True
    modified: int
    failed: int
    results: List[BulkItemResult]


class ApplicationStats(BaseModel):
    total: int = 0
    pending: int = 0
    accepted: int = 0
    rejected: int = 0
