"""
Tests for ApplicationWorkflow against in-memory repositories
"""
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi import BackgroundTasks

from placement_api.core.exceptions import ErrorKind, Failure
from placement_api.schemas.application import ApplicationSnapshot, BulkStatusUpdateResponse
from placement_api.services.lifecycle import Transition, Withdrawal
from tests.conftest import student_actor


@pytest.fixture
def published_drive(drives):
    return drives.add(
        title="Acme SDE",
        status="published",
        total_rounds=2,
        round_names=["Online Test", "Interview"],
        eligibility={"branches": ["CSE", "ECE"], "min_cgpa": 7},
    )


@pytest.fixture
def cse_student(students):
    return students.add(branch="CSE", cgpa=8.2, profile_completed=True)


@pytest.fixture
def ece_student(students):
    return students.add(branch="ECE", cgpa=9.0, profile_completed=True)


def pending_for(applications, student, drive):
    return applications.add(
        ApplicationSnapshot(
            id=uuid4(),
            student_id=student.id,
            drive_id=drive.id,
            student_branch=student.branch,
            drive_title=drive.title,
        )
    )


class TestApply:

    async def test_student_applies_for_themselves(self, workflow, applications, published_drive, cse_student):
        created = await workflow.apply(student_actor(cse_student), published_drive.id, student_id=uuid4())

        assert isinstance(created, ApplicationSnapshot)
        assert created.student_id == cse_student.id
        assert created.status == "pending"
        assert created.status_history == []
        assert len(applications.rows) == 1

    async def test_second_application_is_a_duplicate(self, workflow, applications, published_drive, cse_student):
        actor = student_actor(cse_student)
        await workflow.apply(actor, published_drive.id)

        outcome = await workflow.apply(actor, published_drive.id)
        assert outcome == Failure(ErrorKind.DUPLICATE_APPLICATION, "Already applied")
        assert len(applications.rows) == 1

    async def test_ineligible_student_is_refused(self, workflow, students, published_drive):
        low = students.add(branch="CSE", cgpa=6.1)

        outcome = await workflow.apply(student_actor(low), published_drive.id)
        assert outcome == Failure(ErrorKind.FORBIDDEN, "Not eligible: CGPA")

    async def test_student_cannot_apply_to_draft(self, workflow, drives, cse_student):
        draft = drives.add(title="Hidden", status="draft")

        outcome = await workflow.apply(student_actor(cse_student), draft.id)
        assert outcome.kind == ErrorKind.INVALID_STATE

    async def test_unknown_drive(self, workflow, cse_student):
        outcome = await workflow.apply(student_actor(cse_student), uuid4())
        assert outcome == Failure(ErrorKind.NOT_FOUND, "Drive not found")

    async def test_admin_must_name_the_student(self, workflow, main_admin, published_drive):
        outcome = await workflow.apply(main_admin, published_drive.id)
        assert outcome == Failure(ErrorKind.VALIDATION, "Missing student_id")

    async def test_admin_enrols_into_draft(self, workflow, main_admin, drives, cse_student):
        draft = drives.add(title="Early", status="draft")

        created = await workflow.apply(main_admin, draft.id, student_id=cse_student.id)
        assert isinstance(created, ApplicationSnapshot)

    async def test_branch_admin_cannot_enrol_other_branch(self, workflow, cse_admin, published_drive, ece_student):
        outcome = await workflow.apply(cse_admin, published_drive.id, student_id=ece_student.id)
        assert outcome.kind == ErrorKind.FORBIDDEN


class TestChangeStatus:

    async def test_saves_and_records_notification(
        self, workflow, applications, notifications, main_admin, published_drive, cse_student
    ):
        application = pending_for(applications, cse_student, published_drive)

        outcome = await workflow.change_status(main_admin, application.id, "accepted")

        assert isinstance(outcome, Transition)
        assert applications.rows[application.id].status == "accepted"
        assert len(notifications.stored) == 1
        assert notifications.stored[0].message == "Your application for Acme SDE is now accepted"

    async def test_push_is_scheduled_only_with_background_tasks(
        self, workflow, applications, push, main_admin, published_drive, cse_student
    ):
        application = pending_for(applications, cse_student, published_drive)

        await workflow.change_status(main_admin, application.id, "rejected")
        assert push.safe_send_to_students.await_count == 0

        tasks = BackgroundTasks()
        await workflow.change_status(main_admin, application.id, "accepted", tasks)
        assert len(tasks.tasks) == 1
        await tasks()
        push.safe_send_to_students.assert_awaited_once()
        student_ids, title = push.safe_send_to_students.await_args.args[:2]
        assert student_ids == [cse_student.id]
        assert title == "Application Status Updated"

    async def test_row_gone_before_save(
        self, workflow, applications, notifications, main_admin, published_drive, cse_student
    ):
        application = pending_for(applications, cse_student, published_drive)
        applications.save = AsyncMock(return_value=False)
        tasks = BackgroundTasks()

        outcome = await workflow.change_status(main_admin, application.id, "accepted", tasks)

        assert outcome == Failure(ErrorKind.NOT_FOUND, "Application not found")
        assert notifications.stored == []
        assert tasks.tasks == []

    async def test_missing_application(self, workflow, main_admin):
        outcome = await workflow.change_status(main_admin, uuid4(), "accepted")
        assert outcome == Failure(ErrorKind.NOT_FOUND, "Application not found")

    async def test_branch_admin_out_of_scope(self, workflow, applications, cse_admin, published_drive, ece_student):
        application = pending_for(applications, ece_student, published_drive)

        outcome = await workflow.change_status(cse_admin, application.id, "accepted")
        assert outcome.kind == ErrorKind.FORBIDDEN
        assert applications.saved == []

    async def test_invalid_status_saves_nothing(
        self, workflow, applications, notifications, main_admin, published_drive, cse_student
    ):
        application = pending_for(applications, cse_student, published_drive)

        outcome = await workflow.change_status(main_admin, application.id, "on-hold")
        assert outcome == Failure(ErrorKind.VALIDATION, "Invalid status")
        assert applications.saved == []
        assert notifications.stored == []


class TestChangeRoundStatus:

    async def test_advances_through_rounds(self, workflow, applications, main_admin, published_drive, cse_student):
        application = pending_for(applications, cse_student, published_drive)

        first = await workflow.change_round_status(main_admin, application.id, 1, "accepted")
        assert first.application.current_round == 2
        assert first.application.status == "pending"

        final = await workflow.change_round_status(main_admin, application.id, 2, "accepted")
        assert final.application.status == "accepted"
        assert applications.rows[application.id].status == "accepted"

    async def test_row_gone_before_save(
        self, workflow, applications, notifications, main_admin, published_drive, cse_student
    ):
        application = pending_for(applications, cse_student, published_drive)
        applications.save = AsyncMock(return_value=False)

        outcome = await workflow.change_round_status(main_admin, application.id, 1, "accepted")
        assert outcome == Failure(ErrorKind.NOT_FOUND, "Application not found")
        assert notifications.stored == []

    async def test_invalid_round(self, workflow, applications, main_admin, published_drive, cse_student):
        application = pending_for(applications, cse_student, published_drive)

        outcome = await workflow.change_round_status(main_admin, application.id, 3, "accepted")
        assert outcome == Failure(ErrorKind.INVALID_ROUND, "Invalid round number. Drive has 2 rounds")


class TestBulkChangeStatus:

    async def test_one_failing_row_does_not_stop_the_rest(
        self, workflow, applications, notifications, main_admin, published_drive, students
    ):
        rows = [
            pending_for(applications, students.add(branch="CSE", cgpa=8), published_drive)
            for _ in range(5)
        ]
        applications.failing_ids.add(rows[2].id)

        result = await workflow.bulk_change_status(main_admin, [r.id for r in rows], "accepted")

        assert isinstance(result, BulkStatusUpdateResponse)
        assert result.modified == 4
        assert result.failed == 1
        assert [r.ok for r in result.results] == [True, True, False, True, True]
        assert result.results[2].error == "Update failed"
        assert applications.rows[rows[2].id].status == "pending"
        assert len(notifications.stored) == 4

    async def test_reports_missing_and_forbidden_rows(
        self, workflow, applications, cse_admin, published_drive, cse_student, ece_student
    ):
        mine = pending_for(applications, cse_student, published_drive)
        theirs = pending_for(applications, ece_student, published_drive)
        missing = uuid4()

        result = await workflow.bulk_change_status(cse_admin, [mine.id, theirs.id, missing], "rejected")

        assert result.modified == 1
        assert [(r.ok, r.error) for r in result.results] == [(True, None), (False, "Forbidden"), (False, "Not found")]

    async def test_duplicate_ids_are_collapsed(self, workflow, applications, main_admin, published_drive, cse_student):
        application = pending_for(applications, cse_student, published_drive)

        result = await workflow.bulk_change_status(main_admin, [application.id, application.id], "accepted")
        assert len(result.results) == 1

    @pytest.mark.parametrize(
        "ids, status, reason",
        [
            ([], "accepted", "Missing ids/status"),
            (None, "", "Missing ids/status"),
            ("one", "shortlisted", "Invalid status"),
        ],
    )
    async def test_request_validation(self, workflow, main_admin, ids, status, reason):
        if ids == "one":
            ids = [uuid4()]
        outcome = await workflow.bulk_change_status(main_admin, ids or [], status)
        assert outcome == Failure(ErrorKind.VALIDATION, reason)

    async def test_each_row_gets_its_own_push(
        self, workflow, applications, push, main_admin, published_drive, students
    ):
        rows = [pending_for(applications, students.add(branch="CSE"), published_drive) for _ in range(3)]
        tasks = BackgroundTasks()

        await workflow.bulk_change_status(main_admin, [r.id for r in rows], "rejected", tasks)

        # Each descriptor carries its own application_id, so none of them batch together
        assert len(tasks.tasks) == 3


class TestWithdraw:

    async def test_student_withdraws_pending(self, workflow, applications, published_drive, cse_student):
        application = pending_for(applications, cse_student, published_drive)

        decision = await workflow.withdraw(student_actor(cse_student), application.id)
        assert decision == Withdrawal(application.id)
        assert application.id not in applications.rows

    async def test_student_cannot_withdraw_accepted(self, workflow, applications, published_drive, cse_student):
        application = pending_for(applications, cse_student, published_drive)
        applications.rows[application.id] = application.model_copy(update={"status": "accepted"})

        decision = await workflow.withdraw(student_actor(cse_student), application.id)
        assert decision.kind == ErrorKind.INVALID_STATE
        assert applications.deleted == []

    async def test_branch_admin_scoped(self, workflow, applications, cse_admin, published_drive, ece_student):
        application = pending_for(applications, ece_student, published_drive)

        decision = await workflow.withdraw(cse_admin, application.id)
        assert decision.kind == ErrorKind.FORBIDDEN
        assert application.id in applications.rows

    async def test_missing(self, workflow, main_admin):
        assert (await workflow.withdraw(main_admin, uuid4())) == Failure(ErrorKind.NOT_FOUND, "Not found")
