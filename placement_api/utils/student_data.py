"""Normalisation helpers for student-supplied data."""

import re
import secrets
import string
from datetime import date, datetime
from typing import Any, Optional


def clean_text(value: Optional[str]) -> Optional[str]:
    """Strip a string; empty strings become None."""
    if value is None:
        return None
    trimmed = str(value).strip()
    return trimmed or None


def parse_flexible_date(value: Any) -> Optional[date]:
    """Parse ``YYYY-MM-DD``, ``DD-MM-YYYY`` and the ``/`` or ``.`` variants.

    Falls back to ISO datetime parsing. Returns None for anything unparseable.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    cleaned = value.strip()
    if not cleaned:
        return None

    parts = [p.strip() for p in re.split(r"[-/.]", cleaned) if p.strip()]
    if len(parts) == 3 and all(p.isdigit() for p in parts):
        if len(parts[0]) == 4:
            year, month, day = int(parts[0]), int(parts[1]), int(parts[2])
        elif len(parts[2]) == 4:
            day, month, year = int(parts[0]), int(parts[1]), int(parts[2])
        else:
            return None
        try:
            return date(year, month, day)
        except ValueError:
            return None

    try:
        return datetime.fromisoformat(cleaned.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def format_date_iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def dob_password(dob: date) -> str:
    """Default student password: date of birth as DDMMYYYY."""
    return f"{dob.day:02d}{dob.month:02d}{dob.year:04d}"


def generate_random_password(length: int = 8) -> str:
    alphabet = string.ascii_letters + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_student_password(dob: Any = None) -> str:
    """DOB-derived password when a DOB parses, otherwise a random one."""
    parsed = parse_flexible_date(dob)
    if parsed:
        return dob_password(parsed)
    return generate_random_password(8)


def parse_cgpa(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def parse_percentage(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return float(value.replace("%", "").strip())
    except ValueError:
        return None


def format_resume_url(value: Optional[str]) -> Optional[str]:
    cleaned = clean_text(value)
    if not cleaned:
        return None
    if re.match(r"^https?://", cleaned, re.IGNORECASE):
        return cleaned
    return f"https://{cleaned}"
