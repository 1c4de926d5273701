"""Company schemas."""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CompanyUpsert(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    info: Dict[str, Any] = Field(default_factory=dict)


class CompanyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    info: Optional[Dict[str, Any]] = None


class CompanyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    info: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
