"""
Student Service
Profile updates, registration, credentials and removal of students
"""

import io
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
from uuid import UUID

import pandas as pd
import structlog

from placement_api.core.exceptions import ErrorKind, Failure
from placement_api.core.security import get_password_hash, verify_password
from placement_api.models.student import Student
from placement_api.repositories.student import StudentRepository
from placement_api.schemas.student import (
    AddressResponse,
    CgpaRow,
    EducationResponse,
    StudentCreate,
    StudentDetail,
    StudentRegister,
    StudentSelfUpdate,
)
from placement_api.utils.constants import EDUCATION_LEVELS
from placement_api.utils.student_data import dob_password, parse_flexible_date

logger = structlog.get_logger(__name__)

# Columns that must be filled for a profile to count as complete
PROFILE_REQUIRED_COLUMNS = ("first_name", "email", "phone", "branch", "dob")


def is_profile_complete(student: Student) -> bool:
    """Required columns set, CGPA recorded, permanent address and degree on file."""
    if any(not getattr(student, column) for column in PROFILE_REQUIRED_COLUMNS):
        return False
    if student.cgpa is None:
        return False
    has_address = any(a.type == "permanent" for a in student.addresses)
    has_degree = any(e.level == "degree" for e in student.education_records)
    return has_address and has_degree


def to_detail(student: Student) -> StudentDetail:
    addresses = {a.type: a for a in student.addresses}
    education = {e.level: e for e in student.education_records}
    return StudentDetail.model_validate(
        {
            **{column.name: getattr(student, column.name) for column in Student.__table__.columns},
            "full_name": student.full_name,
            "permanent_address": AddressResponse.model_validate(addresses["permanent"]) if "permanent" in addresses else None,
            "present_address": AddressResponse.model_validate(addresses["present"]) if "present" in addresses else None,
            "education": {
                level: EducationResponse.model_validate(education[level]) if level in education else None
                for level in EDUCATION_LEVELS
            },
        }
    )


def parse_simple_csv(text: str) -> List[Dict[str, Optional[str]]]:
    """
    Header row plus data rows into dicts keyed by lower-cased header.

    Quoted cells are unquoted and blank cells come back as None. Raises
    ``ValueError`` (pandas' ParserError) when a row has more cells than the header.
    """
    if not text.strip():
        return []
    frame = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False, skipinitialspace=True).fillna("")
    frame.columns = [str(c).strip().lower() for c in frame.columns]
    return [
        {column: (str(value).strip() or None) for column, value in record.items()}
        for record in frame.to_dict(orient="records")
    ]


class StudentService:
    def __init__(self, students: StudentRepository):
        self.students = students

    async def detail(self, student_id: UUID) -> Optional[StudentDetail]:
        student = await self.students.get(student_id)
        return to_detail(student) if student else None

    async def apply_update(
        self,
        student_id: UUID,
        payload: StudentSelfUpdate,
        branch_lock: Optional[str] = None,
    ) -> None:
        """
        Write a self or admin update.

        ``branch_lock`` pins the branch for branch admins regardless of the
        payload. Addresses and education records are replaced only when the
        payload carries at least one non-blank value for them.
        """
        columns = payload.to_columns()
        if branch_lock:
            columns["branch"] = branch_lock
        await self.students.update_columns(student_id, columns)

        for kind, address in payload.addresses().items():
            values = address.to_columns()
            if values:
                await self.students.replace_address(student_id, kind, values)
        for level, record in payload.education().items():
            values = record.to_columns()
            if values:
                await self.students.replace_education(student_id, level, values)

        await self.refresh_profile_completed(student_id)
        logger.info("student_profile_updated", student_id=str(student_id), fields=sorted(columns))

    async def refresh_profile_completed(self, student_id: UUID) -> bool:
        student = await self.students.get(student_id)
        if student is None:
            return False
        complete = is_profile_complete(student)
        if complete != student.profile_completed:
            await self.students.update_columns(student_id, {"profile_completed": complete})
        return complete

    async def create_or_update(
        self, payload: StudentCreate, branch_lock: Optional[str] = None
    ) -> Tuple[StudentDetail, bool]:
        """Upsert by registration id. Returns the detail and whether it was created."""
        existing = await self.students.get_by_regd_id(payload.regd_id)
        if existing:
            student_id = existing.id
        else:
            created = await self.students.create(regd_id=payload.regd_id)
            student_id = created.id

        await self.apply_update(student_id, payload, branch_lock=branch_lock)
        return await self.detail(student_id), existing is None

    async def register(self, payload: StudentRegister) -> Union[Student, Failure]:
        """Self-registration; upserts the profile and sets the password."""
        dob = parse_flexible_date(payload.dob)
        if dob is None:
            return Failure(ErrorKind.VALIDATION, "Invalid date of birth format")

        password = (payload.password or "").strip()
        if len(password) < 6:
            password = dob_password(dob)

        existing = await self.students.get_by_regd_id(payload.regd_id)
        if existing:
            student_id = existing.id
        else:
            student_id = (await self.students.create(regd_id=payload.regd_id)).id

        await self.apply_update(student_id, payload)
        await self.students.set_password_hash(student_id, get_password_hash(password))
        logger.info("student_registered", student_id=str(student_id), new=existing is None)
        return await self.students.get(student_id)

    async def authenticate(self, regd_id: str, password: str) -> Union[Student, Failure]:
        """
        Check student credentials.

        Accounts without a password row fall back to the date of birth in
        DDMMYYYY form, which is then stored as their password.
        """
        if not regd_id or not password:
            return Failure(ErrorKind.VALIDATION, "Please provide both registration ID and password")

        student = await self.students.get_by_regd_id(regd_id)
        if student is None:
            return Failure(ErrorKind.UNAUTHORIZED, "Invalid registration ID or password")

        password_hash = await self.students.get_password_hash(student.id)
        if not password_hash:
            dob = parse_flexible_date(student.dob)
            if dob is None:
                return Failure(ErrorKind.VALIDATION, "This account is missing a password. Please re-register.")
            password_hash = get_password_hash(dob_password(dob))
            await self.students.set_password_hash(student.id, password_hash)
            logger.info("student_password_seeded_from_dob", student_id=str(student.id))

        if not verify_password(password, password_hash):
            return Failure(ErrorKind.UNAUTHORIZED, "Invalid registration ID or password")
        return student

    async def import_cgpa(
        self, rows: Iterable[Dict[str, Any]], branch_lock: Optional[str] = None
    ) -> Union[Tuple[int, int], Failure]:
        """Update CGPA by registration id. Returns (rows received, rows updated)."""
        updates = [
            normalized
            for normalized in (CgpaRow.model_validate(row).normalized() for row in rows)
            if normalized
        ]
        if not updates:
            return Failure(ErrorKind.VALIDATION, "No valid rows")

        updated = 0
        for row in updates:
            updated += await self.students.update_cgpa(row["regd_id"], row["cgpa"], branch_lock)

        logger.info("cgpa_imported", received=len(updates), updated=updated)
        return len(updates), updated

    async def delete(self, student_id: UUID) -> None:
        await self.students.delete_cascade(student_id)
        logger.info("student_deleted", student_id=str(student_id))
