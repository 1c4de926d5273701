"""
Bulk Student Credential Upload
Reads CSV / XLSX sheets of registration ids and passwords with pandas
"""

import io
import zipfile
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pandas as pd
import structlog
from sqlalchemy.exc import SQLAlchemyError

from placement_api.core.security import get_password_hash
from placement_api.repositories.student import StudentRepository
from placement_api.schemas.student import BulkUploadError, BulkUploadResponse, BulkUploadSummary

logger = structlog.get_logger(__name__)

USERNAME_COLUMNS = (
    "username", "user name", "user_name",
    "regdid", "regd_id", "regd id",
    "registration id", "registration_id", "registrationid",
    "student id", "student_id", "studentid",
    "roll number", "roll_number", "rollnumber",
    "university reg no", "reg no",
)
PASSWORD_COLUMNS = ("password", "pass", "pwd", "student password", "student_password")

# Returned error details are capped
MAX_REPORTED_ERRORS = 50


@dataclass
class CredentialRow:
    row: int
    username: str
    password: str


@dataclass
class ParseResult:
    rows: List[CredentialRow] = field(default_factory=list)
    errors: List[Dict] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _find_column(columns: List[str], candidates) -> Optional[str]:
    lowered = {c.strip().lower(): c for c in columns}
    for candidate in candidates:
        if candidate in lowered:
            return lowered[candidate]
    return None


def read_sheet(content: bytes, filename: str) -> pd.DataFrame:
    """First sheet of an .xlsx, or a .csv, as strings with blanks for empty cells."""
    buffer = io.BytesIO(content)
    if filename.lower().endswith(".csv"):
        frame = pd.read_csv(buffer, dtype=str, keep_default_na=False)
    else:
        frame = pd.read_excel(buffer, dtype=str, engine="openpyxl")
    return frame.fillna("")


def parse_credentials(content: bytes, filename: str) -> ParseResult:
    """
    Extract (username, password) pairs.

    Column names are matched case-insensitively against the usual spellings
    of registration id and password. Row numbers count the header as row 1.
    """
    result = ParseResult()
    try:
        frame = read_sheet(content, filename)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, zipfile.BadZipFile, ValueError, KeyError) as e:
        result.errors.append({"row": 0, "field": "file", "message": str(e) or "File parse failed"})
        return result

    columns = [str(c) for c in frame.columns]
    frame.columns = columns
    username_col = _find_column(columns, USERNAME_COLUMNS)
    password_col = _find_column(columns, PASSWORD_COLUMNS)
    if username_col is None or password_col is None:
        missing = "username" if username_col is None else "password"
        result.errors.append({"row": 1, "field": missing, "message": f"No {missing} column found"})
        return result

    for index, record in enumerate(frame[[username_col, password_col]].itertuples(index=False), start=2):
        username = str(record[0]).strip()
        password = str(record[1]).strip()
        if not username or not password:
            result.errors.append(
                {
                    "row": index,
                    "field": "username" if not username else "password",
                    "message": "Both Username and Password are required",
                }
            )
            continue
        result.rows.append(CredentialRow(row=index, username=username, password=password))

    return result


async def import_credentials(students: StudentRepository, rows: List[CredentialRow]) -> BulkUploadResponse:
    """
    Create missing students and set their passwords.

    Each row runs in its own savepoint; a failing row is reported and the
    rest continue.
    """
    summary = BulkUploadSummary(total=len(rows))
    errors: List[BulkUploadError] = []

    for row in rows:
        try:
            async with students.session.begin_nested():
                student = await students.get_by_regd_id(row.username)
                if student is None:
                    student = await students.create(regd_id=row.username)
                created = await students.set_password_hash(student.id, get_password_hash(row.password))
        except SQLAlchemyError as e:
            summary.failed += 1
            errors.append(BulkUploadError(row=row.row, username=row.username, error=str(e.__cause__ or e)))
            continue

        if created:
            summary.created += 1
        else:
            summary.updated += 1

    logger.info("bulk_credentials_imported", **summary.model_dump())
    return BulkUploadResponse(summary=summary, errors=errors[:MAX_REPORTED_ERRORS])
