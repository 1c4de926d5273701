"""
Pydantic schemas for drives and their eligibility criteria
"""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EligibilityCriteria(BaseModel):
    """Who may apply to a drive.

    Stored as JSON on the drive row using the camelCase flag names the
    dashboard sends; unknown keys (deadline, location, salary, ...) are kept.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    min_cgpa: float = 0
    branches: List[str] = Field(default_factory=list)
    profile_complete_required: bool = Field(False, alias="profileCompleteRequired")
    no_backlogs_required: bool = Field(False, alias="noBacklogsRequired")

    @field_validator("min_cgpa", mode="before")
    @classmethod
    def coerce_min_cgpa(cls, v):
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            return 0
        return v

    @field_validator("branches", mode="before")
    @classmethod
    def coerce_branches(cls, v):
        if not isinstance(v, list):
            return []
        return [str(b).strip() for b in v if b is not None and str(b).strip()]

    @field_validator("profile_complete_required", "no_backlogs_required", mode="before")
    @classmethod
    def coerce_flag(cls, v):
        return v is True

    @classmethod
    def from_raw(cls, raw: Any) -> "EligibilityCriteria":
        """Parse whatever is stored in the JSON column (None, {}, partial dicts)."""
        return cls.model_validate(raw if isinstance(raw, dict) else {})

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")

    def allows_branch(self, branch: Optional[str]) -> bool:
        return not self.branches or branch in self.branches

    def extra_field(self, name: str) -> Any:
        return (self.model_extra or {}).get(name)


class DriveSnapshot(BaseModel):
    """The parts of a drive the lifecycle engine and evaluator read."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    status: str = "draft"
    eligibility: EligibilityCriteria = Field(default_factory=EligibilityCriteria)
    total_rounds: int = 1
    round_names: List[str] = Field(default_factory=list)

    @field_validator("eligibility", mode="before")
    @classmethod
    def parse_eligibility(cls, v):
        if isinstance(v, EligibilityCriteria):
            return v
        return EligibilityCriteria.from_raw(v)

    @field_validator("total_rounds", mode="before")
    @classmethod
    def default_rounds(cls, v):
        return v or 1

    @field_validator("round_names", mode="before")
    @classmethod
    def parse_round_names(cls, v):
        return [str(n) for n in v] if isinstance(v, list) else []

    def round_name(self, round_number: int) -> str:
        """Configured name of a round, or ``Round <n>``."""
        if 1 <= round_number <= len(self.round_names) and self.round_names[round_number - 1]:
            return self.round_names[round_number - 1]
        return f"Round {round_number}"


class DriveCreate(BaseModel):
    company_id: Optional[UUID] = None
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    eligibility: EligibilityCriteria = Field(default_factory=EligibilityCriteria)
    total_rounds: int = Field(1, ge=1, le=20)
    round_names: List[str] = Field(default_factory=list)

    @field_validator("round_names")
    @classmethod
    def strip_round_names(cls, v):
        return [name.strip() for name in v]


class DriveUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    company_id: Optional[UUID] = None
    status: Optional[str] = None
    eligibility: Optional[EligibilityCriteria] = None
    total_rounds: Optional[int] = Field(None, ge=1, le=20)
    round_names: Optional[List[str]] = None


class DriveResponse(BaseModel):
    """Drive as returned to the dashboard, with display fields flattened."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    company_id: Optional[UUID] = None
    title: str
    description: Optional[str] = None
    status: str
    publish_date: Optional[datetime] = None
    eligibility: dict
    total_rounds: int
    round_names: List[str]
    created_at: datetime
    updated_at: Optional[datetime] = None

    company: Optional[str] = None
    location: Optional[str] = None
    salary: Optional[Any] = None
    experience_required: Optional[Any] = None
    cgpa_required: Optional[float] = None
    branch: str = "Any"
    deadline: Optional[str] = None
    drive_date: Optional[str] = None


class DrivePublishResponse(BaseModel):
    ok: bool = True
    notified: int
