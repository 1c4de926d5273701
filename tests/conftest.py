"""
Shared fixtures: in-memory repositories standing in for the SQLAlchemy ones
"""

from datetime import datetime
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest
from sqlalchemy.exc import OperationalError

from placement_api.core.exceptions import DuplicateApplicationError
from placement_api.core.security import ActorContext
from placement_api.schemas.application import ApplicationSnapshot
from placement_api.schemas.drive import DriveSnapshot, EligibilityCriteria
from placement_api.schemas.student import StudentSnapshot
from placement_api.services.application_workflow import ApplicationWorkflow
from placement_api.services.notification_dispatcher import NotificationDispatcher
from placement_api.utils.constants import BRANCH_ADMIN, MAIN_ADMIN, STUDENT


class FakeApplicationRepository:
    def __init__(self):
        self.rows: Dict[UUID, ApplicationSnapshot] = {}
        self.failing_ids = set()
        self.saved: List[ApplicationSnapshot] = []
        self.deleted: List[UUID] = []

    def add(self, snapshot: ApplicationSnapshot) -> ApplicationSnapshot:
        snapshot = snapshot.model_copy(update={"id": snapshot.id or uuid4()})
        self.rows[snapshot.id] = snapshot
        return snapshot

    async def get(self, application_id):
        return self.rows.get(application_id)

    async def get_many(self, application_ids):
        return [self.rows[i] for i in application_ids if i in self.rows]

    async def create(self, student_id, drive_id):
        if any(a.student_id == student_id and a.drive_id == drive_id for a in self.rows.values()):
            raise DuplicateApplicationError(f"{student_id}/{drive_id}")
        return self.add(ApplicationSnapshot(student_id=student_id, drive_id=drive_id))

    async def save(self, snapshot):
        if snapshot.id not in self.rows:
            return False
        self.rows[snapshot.id] = snapshot
        self.saved.append(snapshot)
        return True

    async def save_isolated(self, snapshot):
        if snapshot.id in self.failing_ids:
            raise OperationalError("UPDATE applications", {}, Exception("connection reset"))
        return await self.save(snapshot)

    async def delete(self, application_id):
        self.deleted.append(application_id)
        return self.rows.pop(application_id, None) is not None

    async def status_counts(self, student_id=None):
        counts = {"pending": 0, "accepted": 0, "rejected": 0}
        for row in self.rows.values():
            if student_id is None or row.student_id == student_id:
                counts[row.status] += 1
        counts["total"] = sum(counts.values())
        return counts


class FakeDriveRepository:
    def __init__(self):
        self.rows: Dict[UUID, DriveSnapshot] = {}

    def add(self, **values) -> DriveSnapshot:
        drive = DriveSnapshot(id=values.pop("id", uuid4()), **values)
        self.rows[drive.id] = drive
        return drive

    async def get_snapshot(self, drive_id):
        return self.rows.get(drive_id)


class FakeStudentRepository:
    def __init__(self):
        self.rows: Dict[UUID, StudentSnapshot] = {}

    def add(self, **values) -> StudentSnapshot:
        student = StudentSnapshot(id=values.pop("id", uuid4()), **values)
        self.rows[student.id] = student
        return student

    async def get_snapshot(self, student_id):
        return self.rows.get(student_id)

    async def candidates_for(self, criteria: EligibilityCriteria):
        return list(self.rows.values())


class FakeNotificationRepository:
    def __init__(self, fail: Optional[Exception] = None):
        self.stored = []
        self.fail = fail

    async def add_many(self, descriptors):
        if self.fail:
            raise self.fail
        descriptors = list(descriptors)
        self.stored.extend(descriptors)
        return len(descriptors)


# ==================== Actors ====================

@pytest.fixture
def main_admin():
    return ActorContext(role=MAIN_ADMIN, subject_id=str(uuid4()), email="tpo@college.edu")


@pytest.fixture
def cse_admin():
    return ActorContext(role=BRANCH_ADMIN, subject_id=str(uuid4()), branch="CSE", email="cse@college.edu")


def student_actor(student: StudentSnapshot) -> ActorContext:
    return ActorContext(role=STUDENT, subject_id=str(student.id), branch=student.branch)


# ==================== Repositories / services ====================

@pytest.fixture
def applications():
    return FakeApplicationRepository()


@pytest.fixture
def drives():
    return FakeDriveRepository()


@pytest.fixture
def students():
    return FakeStudentRepository()


@pytest.fixture
def notifications():
    return FakeNotificationRepository()


@pytest.fixture
def push():
    service = Mock()
    service.safe_send_to_students = AsyncMock(return_value={"sent": 0, "failed": 0, "pruned": 0})
    return service


@pytest.fixture
def dispatcher(notifications, push):
    return NotificationDispatcher(notifications, push)


@pytest.fixture
def workflow(applications, drives, students, dispatcher):
    return ApplicationWorkflow(
        applications=applications,
        drives=drives,
        students=students,
        dispatcher=dispatcher,
    )


@pytest.fixture
def fixed_now():
    return datetime(2026, 3, 1, 10, 30)
