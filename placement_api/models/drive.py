"""Recruitment drive model."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import relationship

from placement_api.db.base import Base


class Drive(Base):
    """Recruitment drive posted by an admin."""

    __tablename__ = "drives"

    company_id = Column(UUID(as_uuid=True), ForeignKey("companies.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)

    status = Column(String(20), nullable=False, default="draft", index=True)  # draft, published, closed
    publish_date = Column(DateTime, nullable=True)

    # {"min_cgpa": 7.0, "branches": ["CSE"], "profileCompleteRequired": true, ...}
    eligibility = Column(JSONB, nullable=False, default=dict)

    # Multi-round recruitment
    total_rounds = Column(Integer, nullable=False, default=1)
    round_names = Column(JSONB, nullable=False, default=list)

    # Relationships
    company = relationship("Company", back_populates="drives")
    applications = relationship("Application", back_populates="drive")

    def __repr__(self):
        return f"<Drive {self.title} ({self.status})>"
