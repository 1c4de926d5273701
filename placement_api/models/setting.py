"""Key/value settings model."""

from sqlalchemy import Column, String
from sqlalchemy.dialects.postgresql import JSONB

from placement_api.db.base import Base


class Setting(Base):
    """Application-wide setting stored as JSON (e.g. ``branch_thresholds``)."""

    __tablename__ = "settings"

    key = Column(String(100), unique=True, nullable=False, index=True)
    value = Column(JSONB, nullable=False, default=dict)

    def __repr__(self):
        return f"<Setting {self.key}>"
