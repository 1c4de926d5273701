"""Application model."""


from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import relationship

from placement_api.db.base import Base
from placement_api.utils.helpers import utcnow


class Application(Base):
    """A student's application to a drive."""

    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("student_id", "drive_id", name="unique_student_drive_application"),
    )

    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    drive_id = Column(UUID(as_uuid=True), ForeignKey("drives.id", ondelete="CASCADE"), nullable=False, index=True)

    # Overall outcome: pending, accepted, rejected
    status = Column(String(20), nullable=False, default="pending", index=True)
    status_history = Column(JSONB, nullable=False, default=list)

    # Multi-round tracking
    current_round = Column(Integer, nullable=False, default=1)
    round_status = Column(JSONB, nullable=False, default=list)

    applied_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    student = relationship("Student", back_populates="applications")
    drive = relationship("Drive", back_populates="applications")

    def __repr__(self):
        return f"<Application {self.student_id} -> {self.drive_id} ({self.status})>"
