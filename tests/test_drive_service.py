"""
Tests for drive visibility, status progression and publication
"""
from datetime import datetime
from types import SimpleNamespace
from uuid import uuid4

import pytest
from fastapi import BackgroundTasks

from placement_api.core.exceptions import ErrorKind, Failure
from placement_api.core.security import ActorContext
from placement_api.schemas.drive import DriveCreate, DriveUpdate
from placement_api.services.drive_service import DriveService, check_status_change, expand_drive, is_visible
from placement_api.utils.constants import STUDENT


class FakeDriveRows:
    """Drive rows as plain objects, with the DriveRepository calls DriveService makes."""

    def __init__(self):
        self.rows = {}

    def add(self, **values):
        defaults = {
            "id": uuid4(),
            "company_id": None,
            "company": None,
            "title": "Acme SDE",
            "description": None,
            "status": "draft",
            "publish_date": None,
            "eligibility": {},
            "total_rounds": 1,
            "round_names": [],
            "created_at": datetime(2026, 1, 5, 9, 0),
            "updated_at": None,
        }
        defaults.update(values)
        drive = SimpleNamespace(**defaults)
        self.rows[drive.id] = drive
        return drive

    async def get(self, drive_id):
        return self.rows.get(drive_id)

    async def create(self, **values):
        return self.add(**values)

    async def update(self, drive, values):
        for key, value in values.items():
            setattr(drive, key, value)
        return drive

    async def delete(self, drive):
        self.rows.pop(drive.id)


class FakeApplicationCounts:
    def __init__(self, counts=None):
        self.counts = counts or {}

    async def count_for_drive(self, drive_id):
        return self.counts.get(drive_id, 0)


@pytest.fixture
def drive_rows():
    return FakeDriveRows()


@pytest.fixture
def application_counts():
    return FakeApplicationCounts()


@pytest.fixture
def service(drive_rows, students, application_counts, dispatcher):
    return DriveService(drives=drive_rows, students=students, applications=application_counts, dispatcher=dispatcher)


class TestCheckStatusChange:

    @pytest.mark.parametrize("current, requested", [("draft", "published"), ("published", "closed")])
    def test_forward_moves(self, current, requested):
        assert check_status_change(current, requested) is None

    @pytest.mark.parametrize("status", ["draft", "published", "closed"])
    def test_same_status_is_a_no_op(self, status):
        assert check_status_change(status, status) is None

    @pytest.mark.parametrize(
        "current, requested", [("published", "draft"), ("closed", "published"), ("draft", "closed")]
    )
    def test_other_moves_are_refused(self, current, requested):
        failure = check_status_change(current, requested)
        assert failure == Failure(
            ErrorKind.INVALID_STATE, f"Cannot change drive status from {current} to {requested}"
        )

    def test_unknown_status(self):
        assert check_status_change("draft", "archived") == Failure(ErrorKind.VALIDATION, "Invalid status value")


class TestVisibility:

    def test_unrestricted_drive_visible_to_all(self, cse_admin, drive_rows):
        assert is_visible(cse_admin, drive_rows.add(eligibility={}))

    def test_branch_restricted(self, main_admin, cse_admin, drive_rows):
        ece_only = drive_rows.add(eligibility={"branches": ["ECE"]})
        assert is_visible(main_admin, ece_only)
        assert not is_visible(cse_admin, ece_only)

    def test_students_are_scoped_too(self, drive_rows):
        ece_only = drive_rows.add(eligibility={"branches": ["ECE"]})
        student = ActorContext(role=STUDENT, subject_id=str(uuid4()), branch="ECE")
        assert is_visible(student, ece_only)


class TestExpandDrive:

    def test_display_fields(self, drive_rows):
        company = SimpleNamespace(name="Acme", info={"location": "Hyderabad"})
        drive = drive_rows.add(
            company=company,
            company_id=uuid4(),
            eligibility={"branches": ["CSE", "IT"], "min_cgpa": 7.5, "salary": "12 LPA", "deadline": "2026-04-01"},
        )

        response = expand_drive(drive)
        assert response.company == "Acme"
        assert response.location == "Hyderabad"
        assert response.salary == "12 LPA"
        assert response.cgpa_required == 7.5
        assert response.branch == "CSE, IT"
        assert response.deadline == "2026-04-01"

    def test_defaults(self, drive_rows):
        response = expand_drive(drive_rows.add(eligibility=None, round_names=None))
        assert response.branch == "Any"
        assert response.cgpa_required is None
        assert response.company is None
        assert response.round_names == []


class TestDriveService:

    async def test_create_is_draft_and_scoped(self, service, cse_admin):
        drive = await service.create(
            cse_admin, DriveCreate(title="  ", total_rounds=2, round_names=["A", "B", "C"])
        )
        assert drive.status == "draft"
        assert drive.title == "Untitled Drive"
        assert drive.eligibility["branches"] == ["CSE"]
        assert drive.round_names == ["A", "B"]

    async def test_update_refuses_backwards_status(self, service, main_admin, drive_rows):
        drive = drive_rows.add(status="published")

        outcome = await service.update(main_admin, drive.id, DriveUpdate(status="draft"))
        assert outcome.kind == ErrorKind.INVALID_STATE
        assert drive.status == "published"

    async def test_update_to_published_sets_publish_date(self, service, main_admin, drive_rows):
        drive = drive_rows.add()

        await service.update(main_admin, drive.id, DriveUpdate(status="published"))
        assert drive.status == "published"
        assert drive.publish_date is not None

    async def test_round_names_longer_than_rounds(self, service, main_admin, drive_rows):
        drive = drive_rows.add(total_rounds=1)

        outcome = await service.update(main_admin, drive.id, DriveUpdate(round_names=["A", "B"]))
        assert outcome == Failure(ErrorKind.VALIDATION, "round_names cannot be longer than total_rounds")

    async def test_publish_notifies_eligible_students(
        self, service, main_admin, drive_rows, students, notifications, push
    ):
        drive = drive_rows.add(title="Acme SDE", eligibility={"min_cgpa": 8})
        strong = students.add(branch="CSE", cgpa=8.5)
        students.add(branch="CSE", cgpa=6.0)
        tasks = BackgroundTasks()

        notified = await service.publish(main_admin, drive.id, tasks)

        assert notified == 1
        assert drive.status == "published"
        assert [n.student_id for n in notifications.stored] == [strong.id]
        assert notifications.stored[0].message == "Acme SDE has been published. Check it out!"
        assert len(tasks.tasks) == 1

    async def test_publish_only_from_draft(self, service, main_admin, drive_rows):
        drive = drive_rows.add(status="closed")

        outcome = await service.publish(main_admin, drive.id)
        assert outcome == Failure(ErrorKind.INVALID_STATE, "Only draft drives can be published (drive is closed)")

    async def test_close(self, service, main_admin, drive_rows):
        drive = drive_rows.add(status="published")

        await service.close(main_admin, drive.id)
        assert drive.status == "closed"

    async def test_delete_with_applications_refused(self, service, main_admin, drive_rows, application_counts):
        drive = drive_rows.add()
        application_counts.counts[drive.id] = 3

        outcome = await service.delete(main_admin, drive.id)
        assert outcome == Failure(ErrorKind.INVALID_STATE, "Cannot delete drive with 3 existing applications")
        assert drive.id in drive_rows.rows

    async def test_delete(self, service, main_admin, drive_rows):
        drive = drive_rows.add()
        assert await service.delete(main_admin, drive.id) is None
        assert drive.id not in drive_rows.rows

    async def test_hidden_drive_is_forbidden(self, service, cse_admin, drive_rows):
        drive = drive_rows.add(eligibility={"branches": ["MECH"]})

        outcome = await service.get_visible(cse_admin, drive.id)
        assert outcome.kind == ErrorKind.FORBIDDEN
