"""
Tests for the eligibility evaluator and criteria parsing
"""
import pytest

from placement_api.schemas.drive import EligibilityCriteria
from placement_api.schemas.student import StudentSnapshot
from placement_api.services.eligibility import evaluate, filter_eligible, matches


def student(**values):
    defaults = {"branch": "CSE", "cgpa": 8.0, "has_backlogs": False, "profile_completed": True}
    defaults.update(values)
    return StudentSnapshot(**defaults)


class TestEvaluate:

    def test_empty_criteria_admit_everyone(self):
        verdict = evaluate(EligibilityCriteria(), student(branch=None, cgpa=None, profile_completed=False))
        assert verdict.eligible
        assert verdict.reason is None
        assert verdict.message is None

    def test_branch_mismatch(self):
        criteria = EligibilityCriteria(branches=["ECE", "EEE"])
        verdict = evaluate(criteria, student(branch="CSE"))
        assert not verdict.eligible
        assert verdict.message == "Not eligible: branch"

    def test_cgpa_floor_is_inclusive(self):
        criteria = EligibilityCriteria(min_cgpa=7.5)
        assert matches(criteria, student(cgpa=7.5))
        assert not matches(criteria, student(cgpa=7.49))

    def test_missing_cgpa_fails_positive_floor(self):
        verdict = evaluate(EligibilityCriteria(min_cgpa=6), student(cgpa=None))
        assert verdict.message == "Not eligible: CGPA"

    def test_profile_required(self):
        criteria = EligibilityCriteria(profileCompleteRequired=True)
        verdict = evaluate(criteria, student(profile_completed=False))
        assert verdict.message == "Not eligible: profile incomplete"

    def test_backlogs_forbidden(self):
        criteria = EligibilityCriteria(noBacklogsRequired=True)
        verdict = evaluate(criteria, student(has_backlogs=True))
        assert verdict.message == "Not eligible: backlogs"

    def test_first_failing_predicate_is_reported(self):
        criteria = EligibilityCriteria(
            branches=["ECE"], min_cgpa=9, profileCompleteRequired=True, noBacklogsRequired=True
        )
        failing_everything = student(branch="CSE", cgpa=5, profile_completed=False, has_backlogs=True)
        assert evaluate(criteria, failing_everything).reason == "branch"

        in_branch = failing_everything.model_copy(update={"branch": "ECE"})
        assert evaluate(criteria, in_branch).reason == "cgpa"

        good_cgpa = in_branch.model_copy(update={"cgpa": 9.5})
        assert evaluate(criteria, good_cgpa).reason == "profile"

        complete = good_cgpa.model_copy(update={"profile_completed": True})
        assert evaluate(criteria, complete).reason == "backlogs"


class TestFilterEligible:

    def test_preserves_order(self):
        criteria = EligibilityCriteria(min_cgpa=7)
        pool = [student(cgpa=9.1), student(cgpa=6.0), student(cgpa=7.0), student(cgpa=None)]
        assert [s.cgpa for s in filter_eligible(criteria, pool)] == [9.1, 7.0]

    def test_empty_pool(self):
        assert filter_eligible(EligibilityCriteria(), []) == []


class TestEligibilityCriteria:

    @pytest.mark.parametrize("raw", [None, {}, [], "nope"])
    def test_malformed_storage_parses_to_defaults(self, raw):
        criteria = EligibilityCriteria.from_raw(raw)
        assert criteria.min_cgpa == 0
        assert criteria.branches == []
        assert criteria.profile_complete_required is False
        assert criteria.no_backlogs_required is False

    def test_flags_must_be_literal_true(self):
        criteria = EligibilityCriteria.from_raw({"profileCompleteRequired": "yes", "noBacklogsRequired": 1})
        assert criteria.profile_complete_required is False
        assert criteria.no_backlogs_required is False

    def test_non_numeric_min_cgpa_means_no_floor(self):
        assert EligibilityCriteria.from_raw({"min_cgpa": "7.5"}).min_cgpa == 0
        assert EligibilityCriteria.from_raw({"min_cgpa": True}).min_cgpa == 0

    def test_branches_are_cleaned(self):
        criteria = EligibilityCriteria.from_raw({"branches": [" CSE ", "", None, "ECE"]})
        assert criteria.branches == ["CSE", "ECE"]

    def test_extra_keys_survive_storage(self):
        criteria = EligibilityCriteria.from_raw({"min_cgpa": 7, "deadline": "2026-04-01", "location": "Pune"})
        stored = criteria.to_storage()
        assert stored["deadline"] == "2026-04-01"
        assert stored["location"] == "Pune"
        assert stored["profileCompleteRequired"] is False
        assert criteria.extra_field("location") == "Pune"

    def test_allows_branch(self):
        assert EligibilityCriteria().allows_branch("MECH")
        assert EligibilityCriteria(branches=["CSE"]).allows_branch("CSE")
        assert not EligibilityCriteria(branches=["CSE"]).allows_branch("ECE")
