"""
Eligibility Evaluator
Decides whether a student satisfies a drive's eligibility criteria
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from placement_api.schemas.drive import EligibilityCriteria
from placement_api.schemas.student import StudentSnapshot

# Failure reasons, in the order they are checked
REASON_BRANCH = "branch"
REASON_CGPA = "cgpa"
REASON_PROFILE = "profile"
REASON_BACKLOGS = "backlogs"

REASON_MESSAGES = {
    REASON_BRANCH: "Not eligible: branch",
    REASON_CGPA: "Not eligible: CGPA",
    REASON_PROFILE: "Not eligible: profile incomplete",
    REASON_BACKLOGS: "Not eligible: backlogs",
}


@dataclass(frozen=True)
class EligibilityVerdict:
    eligible: bool
    reason: Optional[str] = None

    @property
    def message(self) -> Optional[str]:
        return REASON_MESSAGES.get(self.reason) if self.reason else None


def evaluate(criteria: EligibilityCriteria, student: StudentSnapshot) -> EligibilityVerdict:
    """
    Check every predicate the criteria define and report the first that fails.

    Absent predicates pass: no branches means any branch, ``min_cgpa`` of 0
    means no CGPA floor. A student without a CGPA fails any positive floor.
    """
    if criteria.branches and student.branch not in criteria.branches:
        return EligibilityVerdict(False, REASON_BRANCH)

    if criteria.min_cgpa > 0:
        if student.cgpa is None or student.cgpa < criteria.min_cgpa:
            return EligibilityVerdict(False, REASON_CGPA)

    if criteria.profile_complete_required and not student.profile_completed:
        return EligibilityVerdict(False, REASON_PROFILE)

    if criteria.no_backlogs_required and student.has_backlogs:
        return EligibilityVerdict(False, REASON_BACKLOGS)

    return EligibilityVerdict(True)


def matches(criteria: EligibilityCriteria, student: StudentSnapshot) -> bool:
    return evaluate(criteria, student).eligible


def filter_eligible(
    criteria: EligibilityCriteria, students: Iterable[StudentSnapshot]
) -> List[StudentSnapshot]:
    """Students from ``students`` that match, preserving order."""
    return [student for student in students if matches(criteria, student)]
