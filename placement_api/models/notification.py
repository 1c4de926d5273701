"""Notification model."""

from sqlalchemy import Boolean, Column, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import relationship

from placement_api.db.base import Base


class Notification(Base):
    """
    In-app notification for a student
    (status changes, round results, new drives, announcements, data requests)
    """

    __tablename__ = "notifications"

    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False)

    # application_status, round_update, drive_published, announcement, data_request
    type = Column(String(50), nullable=False)

    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    payload = Column(JSONB, nullable=True)

    read = Column(Boolean, default=False, nullable=False)

    # Relationships
    student = relationship("Student", back_populates="notifications")

    __table_args__ = (
        Index("idx_notifications_student", "student_id"),
        Index("idx_notifications_student_unread", "student_id", "read"),
        Index("idx_notifications_type", "type"),
        Index("idx_notifications_created_at", "created_at"),
    )

    def __repr__(self):
        return f"<Notification(student_id={self.student_id}, type={self.type}, read={self.read})>"
