"""Error taxonomy shared by the lifecycle engine, workflows and routes."""

from dataclasses import dataclass
from enum import Enum

from fastapi import HTTPException, status


class ErrorKind(str, Enum):
    """Kinds of expected failure a core operation can report."""

    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    INVALID_ROUND = "invalid_round"
    INVALID_STATE = "invalid_state"
    NOT_FOUND = "not_found"
    DUPLICATE_APPLICATION = "duplicate_application"
    DEPENDENCY_UNAVAILABLE = "dependency_unavailable"


HTTP_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_ROUND: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_STATE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.DUPLICATE_APPLICATION: status.HTTP_409_CONFLICT,
    ErrorKind.DEPENDENCY_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@dataclass(frozen=True)
class Failure:
    """An expected, non-exceptional outcome: the request cannot be honoured."""

    kind: ErrorKind
    reason: str

    def to_http(self) -> HTTPException:
        return HTTPException(status_code=HTTP_STATUS_BY_KIND[self.kind], detail=self.reason)


class DuplicateApplicationError(Exception):
    """Raised by the persistence layer when (student_id, drive_id) already exists."""


def raise_for_failure(outcome) -> None:
    """Raise the HTTPException matching ``outcome`` if it is a Failure."""
    if isinstance(outcome, Failure):
        raise outcome.to_http()
