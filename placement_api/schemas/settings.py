"""Settings schemas."""

from typing import Dict

from pydantic import BaseModel, Field


class BranchThresholds(BaseModel):
    """Minimum CGPA per branch shown on the dashboard."""

    type: str = "branch_thresholds"
    thresholds: Dict[str, float] = Field(default_factory=dict)


class BranchThresholdsUpdate(BaseModel):
    thresholds: Dict[str, float] = Field(default_factory=dict)
