"""Student model and its dependent records."""


from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from placement_api.db.base import Base
from placement_api.utils.helpers import utcnow


class Student(Base):
    """Student identity and academic profile."""

    __tablename__ = "students"

    regd_id = Column(String(50), unique=True, index=True, nullable=False)

    # Personal
    first_name = Column(String(60))
    last_name = Column(String(60))
    father_name = Column(String(120))
    email = Column(String(200))
    alt_email = Column(String(200))
    phone = Column(String(20))
    alt_phone = Column(String(20))
    gender = Column(String(20))
    nationality = Column(String(100))
    dob = Column(Date)
    aadhar_number = Column(String(12))
    pan_card = Column(String(10))

    # Academic
    college = Column(String(200))
    branch = Column(String(40), index=True)
    cgpa = Column(Float, nullable=True)
    year = Column(String(10))
    section = Column(String(10))
    current_year = Column(String(20))
    resume_url = Column(String(500))
    break_in_studies = Column(Boolean, default=False, nullable=False)
    has_backlogs = Column(Boolean, default=False, nullable=False)

    # Status
    profile_completed = Column(Boolean, default=False, nullable=False)
    placed = Column(Boolean, default=False, nullable=False)

    # Relationships
    addresses = relationship("Address", back_populates="student", cascade="all, delete-orphan", passive_deletes=True)
    education_records = relationship("EducationRecord", back_populates="student", cascade="all, delete-orphan", passive_deletes=True)
    applications = relationship("Application", back_populates="student", cascade="all, delete-orphan", passive_deletes=True)
    notifications = relationship("Notification", back_populates="student", cascade="all, delete-orphan", passive_deletes=True)
    device_tokens = relationship("DeviceToken", back_populates="student", cascade="all, delete-orphan", passive_deletes=True)
    auth = relationship("StudentAuth", back_populates="student", uselist=False, cascade="all, delete-orphan", passive_deletes=True)

    @property
    def full_name(self) -> str:
        first = self.first_name or ""
        return f"{first} {self.last_name}".strip() if self.last_name else first.strip()

    def __repr__(self):
        return f"<Student {self.regd_id}>"


class Address(Base):
    """Permanent or present address of a student."""

    __tablename__ = "addresses"

    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(20), nullable=False)  # permanent, present

    house = Column(String(200))
    street = Column(String(200))
    area = Column(String(200))
    city = Column(String(120))
    state = Column(String(120))
    postal_code = Column(String(20))
    country = Column(String(120))

    student = relationship("Student", back_populates="addresses")

    __table_args__ = (
        UniqueConstraint("student_id", "type", name="unique_student_address_type"),
    )


class EducationRecord(Base):
    """Degree / intermediate / SSC education record."""

    __tablename__ = "education_records"

    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    level = Column(String(20), nullable=False)  # degree, inter, ssc

    course_name = Column(String(200))
    duration_from = Column(Date)
    duration_to = Column(Date)
    course_type = Column(String(50))
    institute = Column(String(200))
    board = Column(String(200))
    specialization = Column(String(200))
    marks_obtained = Column(String(50))
    total_marks = Column(String(50))
    percentage = Column(Float)

    student = relationship("Student", back_populates="education_records")

    __table_args__ = (
        UniqueConstraint("student_id", "level", name="unique_student_education_level"),
    )


class StudentAuth(Base):
    """Password hash for student login, one row per student."""

    __tablename__ = "student_auth"

    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)

    student = relationship("Student", back_populates="auth")


class DeviceToken(Base):
    """FCM registration token of a student device."""

    __tablename__ = "device_tokens"

    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    device_token = Column(String(500), nullable=False)
    platform = Column(String(20), nullable=False)  # android, ios, web
    last_used_at = Column(DateTime, default=utcnow)

    student = relationship("Student", back_populates="device_tokens")

    __table_args__ = (
        Index("idx_device_tokens_student_token", "student_id", "device_token", unique=True),
        Index("idx_device_tokens_token", "device_token"),
    )
