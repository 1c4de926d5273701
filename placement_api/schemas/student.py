"""
Student Profile Schemas
Self-service and admin update variants share one normalisation path
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from placement_api.utils.student_data import (
    clean_text,
    format_resume_url,
    parse_cgpa,
    parse_flexible_date,
    parse_percentage,
)


# ==================== Nested Object Schemas ====================

class AddressIn(BaseModel):
    """Address as submitted by the dashboard or the mobile app"""
    model_config = ConfigDict(populate_by_name=True)

    house: Optional[str] = Field(None, max_length=200)
    street: Optional[str] = Field(None, max_length=200)
    area: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, max_length=120)
    state: Optional[str] = Field(None, max_length=120)
    postal_code: Optional[str] = Field(None, max_length=20, alias="postalCode")
    country: Optional[str] = Field(None, max_length=120)

    def to_columns(self) -> Optional[Dict[str, Any]]:
        """Cleaned column values, or None when every field is blank."""
        values = {
            "house": clean_text(self.house),
            "street": clean_text(self.street),
            "area": clean_text(self.area),
            "city": clean_text(self.city),
            "state": clean_text(self.state),
            "postal_code": clean_text(self.postal_code),
            "country": clean_text(self.country),
        }
        if not any(values.values()):
            return None
        return values


class EducationIn(BaseModel):
    """Degree / intermediate / SSC record"""
    model_config = ConfigDict(populate_by_name=True)

    course_name: Optional[str] = Field(None, max_length=200, alias="courseName")
    duration_from: Optional[str] = Field(None, max_length=40, alias="durationFrom")
    duration_to: Optional[str] = Field(None, max_length=40, alias="durationTo")
    course_type: Optional[str] = Field(None, max_length=50, alias="courseType")
    institute: Optional[str] = Field(None, max_length=200)
    board: Optional[str] = Field(None, max_length=200)
    specialization: Optional[str] = Field(None, max_length=200)
    marks_obtained: Optional[str] = Field(None, max_length=50, alias="marksObtained")
    total_marks: Optional[str] = Field(None, max_length=50, alias="totalMarks")
    percentage: Optional[str] = Field(None, max_length=50)

    def to_columns(self) -> Optional[Dict[str, Any]]:
        values = {
            "course_name": clean_text(self.course_name),
            "duration_from": parse_flexible_date(self.duration_from),
            "duration_to": parse_flexible_date(self.duration_to),
            "course_type": clean_text(self.course_type),
            "institute": clean_text(self.institute),
            "board": clean_text(self.board),
            "specialization": clean_text(self.specialization),
            "marks_obtained": clean_text(self.marks_obtained),
            "total_marks": clean_text(self.total_marks),
            "percentage": parse_percentage(self.percentage),
        }
        if all(value is None for value in values.values()):
            return None
        return values


def _blank_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


# ==================== Profile Updates ====================

class StudentSelfUpdate(BaseModel):
    """
    Fields a student may change on their own profile.
    All fields optional; blank strings are treated as absent.
    """
    model_config = ConfigDict(populate_by_name=True)

    first_name: Optional[str] = Field(None, min_length=1, max_length=60)
    last_name: Optional[str] = Field(None, max_length=60)
    email: Optional[EmailStr] = None
    alt_email: Optional[EmailStr] = Field(None, alias="altEmail")
    phone: Optional[str] = Field(None, min_length=7, max_length=20)
    alt_phone: Optional[str] = Field(None, min_length=7, max_length=20, alias="altPhone")
    resume_url: Optional[str] = Field(None, max_length=500)
    aadhar_number: Optional[str] = Field(None, pattern=r"^\d{12}$")
    pan_card: Optional[str] = Field(None, pattern=r"^[A-Za-z]{5}[0-9]{4}[A-Za-z]$")
    permanent_address: Optional[AddressIn] = Field(None, alias="permanentAddress")
    present_address: Optional[AddressIn] = Field(None, alias="presentAddress")
    degree: Optional[EducationIn] = None
    inter: Optional[EducationIn] = None
    ssc: Optional[EducationIn] = None
    break_in_studies: Optional[bool] = Field(None, alias="breakInStudies")
    has_backlogs: Optional[bool] = Field(None, alias="hasBacklogs")

    @field_validator("alt_email", "alt_phone", "resume_url", "aadhar_number", "pan_card", mode="before")
    @classmethod
    def blank_is_absent(cls, v):
        return _blank_to_none(v)

    def _column_values(self) -> Dict[str, Any]:
        return {
            "first_name": clean_text(self.first_name),
            "last_name": clean_text(self.last_name),
            "email": clean_text(self.email),
            "alt_email": clean_text(self.alt_email),
            "phone": clean_text(self.phone),
            "alt_phone": clean_text(self.alt_phone),
            "resume_url": format_resume_url(self.resume_url),
            "aadhar_number": clean_text(self.aadhar_number),
            "pan_card": (clean_text(self.pan_card) or "").upper() or None,
            "break_in_studies": self.break_in_studies,
            "has_backlogs": self.has_backlogs,
        }

    def to_columns(self) -> Dict[str, Any]:
        """Student column updates; absent or blank values are dropped."""
        return {key: value for key, value in self._column_values().items() if value is not None}

    def addresses(self) -> Dict[str, AddressIn]:
        found = {"permanent": self.permanent_address, "present": self.present_address}
        return {kind: value for kind, value in found.items() if value is not None}

    def education(self) -> Dict[str, EducationIn]:
        found = {"degree": self.degree, "inter": self.inter, "ssc": self.ssc}
        return {level: value for level, value in found.items() if value is not None}


class StudentAdminUpdate(StudentSelfUpdate):
    """Admin edits additionally cover academic and identity fields."""

    father_name: Optional[str] = Field(None, max_length=120, alias="fatherName")
    branch: Optional[str] = Field(None, max_length=40)
    cgpa: Optional[Any] = None
    year: Optional[str] = Field(None, max_length=10)
    section: Optional[str] = Field(None, max_length=10)
    current_year: Optional[str] = Field(None, max_length=20)
    gender: Optional[str] = Field(None, max_length=20)
    nationality: Optional[str] = Field(None, max_length=100)
    college: Optional[str] = Field(None, max_length=200)
    dob: Optional[str] = None

    @field_validator("cgpa")
    @classmethod
    def cgpa_in_range(cls, v):
        parsed = parse_cgpa(v)
        if parsed is not None and not 0 <= parsed <= 10:
            raise ValueError("CGPA must be between 0 and 10")
        return v

    def _column_values(self) -> Dict[str, Any]:
        values = super()._column_values()
        values.update(
            {
                "father_name": clean_text(self.father_name),
                "branch": clean_text(self.branch),
                "cgpa": parse_cgpa(self.cgpa),
                "year": clean_text(self.year),
                "section": clean_text(self.section),
                "current_year": clean_text(self.current_year),
                "gender": clean_text(self.gender),
                "nationality": clean_text(self.nationality),
                "college": clean_text(self.college),
                "dob": parse_flexible_date(self.dob),
            }
        )
        return values


class StudentCreate(StudentAdminUpdate):
    """Admin create-or-update keyed by registration id."""

    regd_id: str = Field(..., min_length=3, alias="regdId")


class StudentRegister(StudentAdminUpdate):
    """Self-registration from the mobile app."""

    regd_id: str = Field(..., min_length=3, alias="regdId")
    first_name: str = Field(..., min_length=1, max_length=60)
    email: EmailStr
    phone: str = Field(..., min_length=7, max_length=20)
    branch: str = Field(..., min_length=2, max_length=40)
    cgpa: Optional[float] = Field(None, ge=0, le=10)
    dob: str = Field(..., min_length=4)
    password: Optional[str] = Field(None, max_length=100)


# ==================== Engine View ====================

class StudentSnapshot(BaseModel):
    """The student attributes eligibility rules read."""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[UUID] = None
    branch: Optional[str] = None
    cgpa: Optional[float] = None
    has_backlogs: bool = False
    profile_completed: bool = False

    @field_validator("has_backlogs", "profile_completed", mode="before")
    @classmethod
    def none_is_false(cls, v):
        return bool(v)


# ==================== Responses ====================

class AddressResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type: str
    house: Optional[str] = None
    street: Optional[str] = None
    area: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


class EducationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    level: str
    course_name: Optional[str] = None
    duration_from: Optional[date] = None
    duration_to: Optional[date] = None
    course_type: Optional[str] = None
    institute: Optional[str] = None
    board: Optional[str] = None
    specialization: Optional[str] = None
    marks_obtained: Optional[str] = None
    total_marks: Optional[str] = None
    percentage: Optional[float] = None


class StudentListItem(BaseModel):
    """Row of the admin student table"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    regd_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    branch: Optional[str] = None
    cgpa: Optional[float] = None
    year: Optional[str] = None
    resume_url: Optional[str] = None
    has_backlogs: bool = False
    placed: bool = False
    created_at: datetime


class StudentDetail(StudentListItem):
    """Full profile including addresses and education"""

    father_name: Optional[str] = None
    alt_email: Optional[str] = None
    alt_phone: Optional[str] = None
    gender: Optional[str] = None
    nationality: Optional[str] = None
    dob: Optional[date] = None
    aadhar_number: Optional[str] = None
    pan_card: Optional[str] = None
    college: Optional[str] = None
    section: Optional[str] = None
    current_year: Optional[str] = None
    break_in_studies: bool = False
    profile_completed: bool = False
    updated_at: Optional[datetime] = None

    permanent_address: Optional[AddressResponse] = None
    present_address: Optional[AddressResponse] = None
    education: Dict[str, Optional[EducationResponse]] = Field(default_factory=dict)


# ==================== Misc Requests ====================

class DeviceTokenIn(BaseModel):
    token: str = Field(..., min_length=1, max_length=500)
    platform: str = Field(..., pattern="^(android|ios|web)$")


class CgpaRow(BaseModel):
    """One row of a CGPA import; accepts the column spellings seen in exports."""
    model_config = ConfigDict(extra="ignore")

    regd: Optional[str] = None
    regd_id: Optional[str] = None
    registration: Optional[str] = None
    cgpa: Optional[Any] = None
    cpga: Optional[Any] = None

    def normalized(self) -> Optional[Dict[str, Any]]:
        regd = clean_text(str(self.regd or self.regd_id or self.registration or ""))
        cgpa = parse_cgpa(self.cgpa if self.cgpa is not None else self.cpga)
        if not regd or cgpa is None:
            return None
        return {"regd_id": regd, "cgpa": cgpa}


class CgpaImportRequest(BaseModel):
    rows: Optional[List[CgpaRow]] = None
    csv: Optional[str] = None


class CgpaImportResponse(BaseModel):
    ok: bool = True
    received: int
    updated: int


class DataRequest(BaseModel):
    fields: List[str] = Field(default_factory=list)


class BulkUploadError(BaseModel):
    row: int
    username: str
    error: str


class BulkUploadSummary(BaseModel):
    total: int = 0
    created: int = 0
    updated: int = 0
    failed: int = 0


class BulkUploadResponse(BaseModel):
    ok: bool = True
    summary: BulkUploadSummary
    errors: List[BulkUploadError] = Field(default_factory=list)
