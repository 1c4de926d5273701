"""
Tests for the application lifecycle engine
"""
from uuid import uuid4

import pytest

from placement_api.core.exceptions import ErrorKind, Failure
from placement_api.core.security import ActorContext
from placement_api.schemas.application import ApplicationSnapshot
from placement_api.schemas.drive import DriveSnapshot
from placement_api.services import lifecycle
from placement_api.utils.constants import BRANCH_ADMIN, STUDENT


@pytest.fixture
def drive():
    return DriveSnapshot(id=uuid4(), title="Acme SDE", total_rounds=3, round_names=["Aptitude", "Technical", ""])


@pytest.fixture
def application(drive):
    return ApplicationSnapshot(id=uuid4(), student_id=uuid4(), drive_id=drive.id, drive_title=drive.title)


class TestSimpleStatusChange:

    def test_sets_status_and_appends_history(self, application, fixed_now):
        outcome = lifecycle.apply_simple_status_change(application, "accepted", "admin-1", now=fixed_now)

        assert isinstance(outcome, lifecycle.Transition)
        assert outcome.application.status == "accepted"
        assert len(outcome.application.status_history) == 1
        entry = outcome.application.status_history[0]
        assert entry.status == "accepted"
        assert entry.changed_by == "admin-1"
        assert entry.changed_at == fixed_now

    def test_leaves_rounds_alone(self, application):
        outcome = lifecycle.apply_simple_status_change(application, "rejected", "admin-1")
        assert outcome.application.current_round == application.current_round
        assert outcome.application.round_status == application.round_status

    def test_input_snapshot_is_not_mutated(self, application):
        lifecycle.apply_simple_status_change(application, "accepted", "admin-1")
        assert application.status == "pending"
        assert application.status_history == []

    def test_history_grows_by_one_per_change(self, application):
        first = lifecycle.apply_simple_status_change(application, "accepted", "a").application
        second = lifecycle.apply_simple_status_change(first, "rejected", "a").application
        assert [e.status for e in second.status_history] == ["accepted", "rejected"]

    def test_invalid_status_fails(self, application):
        outcome = lifecycle.apply_simple_status_change(application, "shortlisted", "admin-1")
        assert outcome == Failure(ErrorKind.VALIDATION, "Invalid status")

    def test_notification(self, application):
        outcome = lifecycle.apply_simple_status_change(application, "accepted", "admin-1")

        (notification,) = outcome.notifications
        assert notification.student_id == application.student_id
        assert notification.type == "application_status"
        assert notification.title == "Application Status Updated"
        assert notification.message == "Your application for Acme SDE is now accepted"
        assert notification.payload == {
            "application_id": str(application.id),
            "drive_id": str(application.drive_id),
            "status": "accepted",
        }


class TestRoundStatusChange:

    def test_accepting_a_middle_round_advances(self, application, drive):
        outcome = lifecycle.apply_round_status_change(application, drive, 1, "accepted", "admin-1")

        assert outcome.application.status == "pending"
        assert outcome.application.current_round == 2
        entry = outcome.application.round_status[-1]
        assert (entry.round, entry.status, entry.round_name) == (1, "accepted", "Aptitude")

    def test_accepting_the_final_round_accepts(self, application, drive):
        outcome = lifecycle.apply_round_status_change(application, drive, 3, "accepted", "admin-1")

        assert outcome.application.status == "accepted"
        assert outcome.application.current_round == application.current_round

    def test_rejection_keeps_current_round(self, application, drive):
        advanced = lifecycle.apply_round_status_change(application, drive, 1, "accepted", "a").application
        outcome = lifecycle.apply_round_status_change(advanced, drive, 2, "rejected", "a")

        assert outcome.application.status == "rejected"
        assert outcome.application.current_round == 2
        assert len(outcome.application.round_status) == 2

    def test_does_not_touch_status_history(self, application, drive):
        outcome = lifecycle.apply_round_status_change(application, drive, 1, "accepted", "a")
        assert outcome.application.status_history == []

    def test_unnamed_round_falls_back_to_number(self, application, drive):
        outcome = lifecycle.apply_round_status_change(application, drive, 3, "rejected", "a")
        assert outcome.application.round_status[-1].round_name == "Round 3"
        assert outcome.notifications[0].title == "Round 3 Rejected"

    def test_rejudging_a_round_appends_and_latest_wins(self, application, drive):
        rejected = lifecycle.apply_round_status_change(application, drive, 1, "rejected", "a").application
        outcome = lifecycle.apply_round_status_change(rejected, drive, 1, "accepted", "a")

        assert [e.status for e in outcome.application.round_status] == ["rejected", "accepted"]
        assert outcome.application.status == "pending"
        assert outcome.application.current_round == 2

    @pytest.mark.parametrize("round_number", [0, 4, -1])
    def test_round_out_of_range(self, application, drive, round_number):
        outcome = lifecycle.apply_round_status_change(application, drive, round_number, "accepted", "a")
        assert outcome == Failure(ErrorKind.INVALID_ROUND, "Invalid round number. Drive has 3 rounds")

    def test_invalid_round_status_is_checked_first(self, application):
        outcome = lifecycle.apply_round_status_change(application, None, 1, "pending", "a")
        assert outcome.kind == ErrorKind.VALIDATION

    def test_missing_drive(self, application):
        outcome = lifecycle.apply_round_status_change(application, None, 1, "accepted", "a")
        assert outcome == Failure(ErrorKind.NOT_FOUND, "Drive not found")

    def test_single_round_drive_accepts_immediately(self, application):
        drive = DriveSnapshot(id=application.drive_id, title="One Shot", total_rounds=None)
        outcome = lifecycle.apply_round_status_change(application, drive, 1, "accepted", "a")
        assert outcome.application.status == "accepted"
        assert outcome.application.round_status[0].round_name == "Round 1"

    def test_notification(self, application, drive):
        outcome = lifecycle.apply_round_status_change(application, drive, 2, "accepted", "a")

        (notification,) = outcome.notifications
        assert notification.type == "round_update"
        assert notification.title == "Technical Accepted"
        assert notification.message == "You have been accepted in Technical for Acme SDE"
        assert notification.payload["round"] == 2
        assert notification.payload["round_status"] == "accepted"
        assert notification.payload["overall_status"] == "pending"


class TestBulkStatusChange:

    def test_each_row_is_independent(self, drive):
        rows = [ApplicationSnapshot(id=uuid4(), student_id=uuid4(), drive_id=drive.id) for _ in range(3)]
        result = lifecycle.bulk_apply_simple_status_change(rows, "rejected", "admin-1")

        assert result.success_count == 3
        assert [row_id for row_id, _ in result.outcomes] == [r.id for r in rows]
        assert len(result.notifications) == 3

    def test_invalid_status_fails_every_row(self, drive):
        rows = [ApplicationSnapshot(id=uuid4(), student_id=uuid4(), drive_id=drive.id) for _ in range(2)]
        result = lifecycle.bulk_apply_simple_status_change(rows, "maybe", "admin-1")

        assert result.success_count == 0
        assert all(isinstance(outcome, Failure) for _, outcome in result.outcomes)


class TestWithdraw:

    def test_student_withdraws_own_pending(self, application):
        actor = ActorContext(role=STUDENT, subject_id=str(application.student_id))
        assert lifecycle.withdraw(application, actor) == lifecycle.Withdrawal(application.id)

    def test_student_cannot_withdraw_decided_application(self, application):
        decided = application.model_copy(update={"status": "accepted"})
        actor = ActorContext(role=STUDENT, subject_id=str(application.student_id))

        outcome = lifecycle.withdraw(decided, actor)
        assert outcome == Failure(ErrorKind.INVALID_STATE, "Only pending applications can be withdrawn")

    def test_student_cannot_withdraw_someone_elses(self, application):
        actor = ActorContext(role=STUDENT, subject_id=str(uuid4()))
        assert lifecycle.withdraw(application, actor).kind == ErrorKind.FORBIDDEN

    def test_admin_may_delete_any_status(self, application):
        decided = application.model_copy(update={"status": "rejected"})
        actor = ActorContext(role=BRANCH_ADMIN, subject_id="admin-2", branch="ECE")
        assert isinstance(lifecycle.withdraw(decided, actor), lifecycle.Withdrawal)


class TestRoundProgressionProperties:

    @pytest.mark.parametrize("total_rounds", [1, 2, 3, 5])
    def test_accepting_every_round_in_order(self, total_rounds):
        drive = DriveSnapshot(id=uuid4(), title="Acme SDE", total_rounds=total_rounds)
        application = ApplicationSnapshot(id=uuid4(), student_id=uuid4(), drive_id=drive.id)

        for round_number in range(1, total_rounds + 1):
            application = lifecycle.apply_round_status_change(
                application, drive, round_number, "accepted", "a"
            ).application

        assert application.status == "accepted"
        assert application.current_round == total_rounds
        assert len(application.round_status) == total_rounds
        assert application.status_history == []

    @pytest.mark.parametrize("reject_at", [1, 2, 3])
    def test_rejection_at_any_round(self, reject_at):
        drive = DriveSnapshot(id=uuid4(), title="Acme SDE", total_rounds=3)
        application = ApplicationSnapshot(id=uuid4(), student_id=uuid4(), drive_id=drive.id)
        for round_number in range(1, reject_at):
            application = lifecycle.apply_round_status_change(
                application, drive, round_number, "accepted", "a"
            ).application
        before = application.current_round

        application = lifecycle.apply_round_status_change(application, drive, reject_at, "rejected", "a").application

        assert application.status == "rejected"
        assert application.current_round == before
