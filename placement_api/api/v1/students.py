"""
Student Management API - profiles with RBAC
- Main admin: all branches
- Branch admin: students of own branch only
- Student: self-service profile and device registration
"""

from typing import List, Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, Query, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from placement_api.api.deps import (
    get_notification_dispatcher,
    get_student_service,
    require_admin,
    require_student,
)
from placement_api.config import settings
from placement_api.core.exceptions import raise_for_failure
from placement_api.core.security import ActorContext
from placement_api.db.session import get_db
from placement_api.repositories.device_token import DeviceTokenRepository
from placement_api.schemas.notification import NotificationDescriptor
from placement_api.schemas.student import (
    BulkUploadResponse,
    CgpaImportRequest,
    CgpaImportResponse,
    DataRequest,
    DeviceTokenIn,
    StudentAdminUpdate,
    StudentCreate,
    StudentDetail,
    StudentListItem,
    StudentSelfUpdate,
)
from placement_api.services.bulk_upload import import_credentials, parse_credentials
from placement_api.services.notification_dispatcher import NotificationDispatcher
from placement_api.services.student_service import StudentService, parse_simple_csv
from placement_api.utils.constants import NOTIFICATION_DATA_REQUEST

logger = structlog.get_logger(__name__)

router = APIRouter()


async def _load_in_scope(service: StudentService, actor: ActorContext, student_id: UUID) -> StudentDetail:
    detail = await service.detail(student_id)
    if detail is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    if not actor.can_access_branch(detail.branch):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return detail


# ==================== Self-service (Student) ====================

@router.get("/me", response_model=StudentDetail)
async def get_my_profile(
    actor: ActorContext = Depends(require_student),
    service: StudentService = Depends(get_student_service),
):
    """
    Get the signed-in student's profile

    **RBAC**: Student
    """
    detail = await service.detail(UUID(actor.subject_id))
    if detail is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    return detail


@router.put("/me", response_model=StudentDetail)
async def update_my_profile(
    payload: StudentSelfUpdate,
    actor: ActorContext = Depends(require_student),
    service: StudentService = Depends(get_student_service),
):
    """
    Update the signed-in student's profile

    Branch, CGPA and registration id are managed by admins and are not
    accepted here. Blank address and education blocks leave the stored
    records untouched.

    **RBAC**: Student
    """
    student_id = UUID(actor.subject_id)
    if await service.detail(student_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    await service.apply_update(student_id, payload)
    return await service.detail(student_id)


@router.post("/device-token")
async def register_device_token(
    payload: DeviceTokenIn,
    actor: ActorContext = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    """
    Register or refresh a push notification token

    **RBAC**: Student
    """
    await DeviceTokenRepository(db).upsert(UUID(actor.subject_id), payload.token, payload.platform)
    logger.info("device_token_registered", student_id=actor.subject_id, platform=payload.platform)
    return {"ok": True}


# ==================== Bulk operations (Admin) ====================

@router.post("/import-cgpa", response_model=CgpaImportResponse)
async def import_cgpa(
    payload: CgpaImportRequest,
    actor: ActorContext = Depends(require_admin),
    service: StudentService = Depends(get_student_service),
):
    """
    Update CGPA by registration id from JSON rows or CSV text

    CSV needs a header with `regd` (or `regd_id` / `registration`) and
    `cgpa` columns. Branch admins only update their own branch.

    **RBAC**: Branch admin, Main admin
    """
    if payload.rows:
        rows = [row.model_dump() for row in payload.rows]
    elif payload.csv:
        try:
            rows = parse_simple_csv(payload.csv)
        except ValueError as e:
            logger.info("cgpa_csv_unparseable", error=str(e))
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid CSV")
    else:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Provide rows[] or csv")

    result = await service.import_cgpa(rows, branch_lock=actor.branch_scope)
    raise_for_failure(result)
    received, updated = result
    return CgpaImportResponse(received=received, updated=updated)


@router.post("/bulk-upload", response_model=BulkUploadResponse)
async def bulk_upload_credentials(
    file: Optional[UploadFile] = File(None),
    actor: ActorContext = Depends(require_admin),
    service: StudentService = Depends(get_student_service),
):
    """
    Create students and set passwords from a CSV or XLSX sheet

    The sheet needs a username column (registration id) and a password
    column. Existing students get their password replaced.

    **RBAC**: Branch admin, Main admin
    """
    if file is None or not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")

    extension = file.filename.rsplit(".", 1)[-1].lower() if "." in file.filename else ""
    if extension not in settings.ALLOWED_UPLOAD_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Only {', '.join(settings.ALLOWED_UPLOAD_EXTENSIONS)} files are allowed",
        )

    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="File too large")

    parsed = parse_credentials(content, file.filename)
    if not parsed.ok:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "File parsing failed", "errors": parsed.errors[:50]},
        )

    logger.info("bulk_upload_started", filename=file.filename, rows=len(parsed.rows), actor=actor.subject_id)
    return await import_credentials(service.students, parsed.rows)


# ==================== Student CRUD (Admin) ====================

@router.get("", response_model=List[StudentListItem])
async def list_students(
    branch: Optional[str] = None,
    year: Optional[str] = None,
    min_cgpa: Optional[float] = Query(None, alias="minCgpa"),
    max_cgpa: Optional[float] = Query(None, alias="maxCgpa"),
    has_backlogs: Optional[bool] = Query(None, alias="hasBacklogs"),
    search: Optional[str] = None,
    offset: int = Query(0, ge=0),
    limit: int = Query(200, ge=1, le=500),
    actor: ActorContext = Depends(require_admin),
    service: StudentService = Depends(get_student_service),
):
    """
    List students with filters

    **RBAC**: Branch admin (forced to own branch), Main admin
    """
    return await service.students.list(
        branch=actor.branch_scope or branch,
        year=year,
        min_cgpa=min_cgpa,
        max_cgpa=max_cgpa,
        has_backlogs=has_backlogs,
        search=search,
        offset=offset,
        limit=limit,
    )


@router.post("", response_model=StudentDetail)
async def create_or_update_student(
    payload: StudentCreate,
    response: Response,
    actor: ActorContext = Depends(require_admin),
    service: StudentService = Depends(get_student_service),
):
    """
    Create a student, or update the one with the same registration id

    Returns 201 when created and 200 when an existing student was updated.

    **RBAC**: Branch admin (branch pinned to own), Main admin
    """
    existing = await service.students.get_by_regd_id(payload.regd_id)
    if existing is not None and not actor.can_access_branch(existing.branch):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    detail, created = await service.create_or_update(payload, branch_lock=actor.branch_scope)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return detail


@router.get("/{student_id}", response_model=StudentDetail)
async def get_student(
    student_id: UUID,
    actor: ActorContext = Depends(require_admin),
    service: StudentService = Depends(get_student_service),
):
    """
    Get a student's full profile

    **RBAC**: Branch admin (own branch), Main admin
    """
    return await _load_in_scope(service, actor, student_id)


@router.put("/{student_id}", response_model=StudentDetail)
async def update_student(
    student_id: UUID,
    payload: StudentAdminUpdate,
    actor: ActorContext = Depends(require_admin),
    service: StudentService = Depends(get_student_service),
):
    """
    Update a student's profile

    **RBAC**: Branch admin (own branch, branch cannot be changed), Main admin
    """
    await _load_in_scope(service, actor, student_id)
    await service.apply_update(student_id, payload, branch_lock=actor.branch_scope)
    return await service.detail(student_id)


@router.post("/{student_id}/request-data")
async def request_student_data(
    student_id: UUID,
    payload: DataRequest,
    background_tasks: BackgroundTasks,
    actor: ActorContext = Depends(require_admin),
    service: StudentService = Depends(get_student_service),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """
    Ask a student to fill in missing profile fields

    **RBAC**: Branch admin (own branch), Main admin
    """
    await _load_in_scope(service, actor, student_id)
    descriptor = NotificationDescriptor(
        student_id=student_id,
        type=NOTIFICATION_DATA_REQUEST,
        title="Data Request",
        message="Please provide requested information",
        payload={"fields": payload.fields},
    )
    await dispatcher.dispatch([descriptor], background_tasks)
    return {"ok": True}


@router.delete("/{student_id}")
async def delete_student(
    student_id: UUID,
    actor: ActorContext = Depends(require_admin),
    service: StudentService = Depends(get_student_service),
):
    """
    Delete a student and everything attached to them

    **RBAC**: Branch admin (own branch), Main admin
    """
    await _load_in_scope(service, actor, student_id)
    await service.delete(student_id)
    return {"ok": True, "message": "Student deleted successfully"}
