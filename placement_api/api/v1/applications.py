"""
Applications API
- Students: apply, list own, withdraw while pending
- Admins: list, status and round updates, bulk status, delete (branch scoped)
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from placement_api.api.deps import get_actor, get_application_workflow, require_admin, require_student
from placement_api.core.exceptions import raise_for_failure
from placement_api.core.security import ActorContext
from placement_api.models.application import Application
from placement_api.models.drive import Drive
from placement_api.models.student import Student
from placement_api.schemas.application import (
    ApplicationCreate,
    ApplicationResponse,
    ApplicationSnapshot,
    ApplicationStats,
    BulkStatusUpdateRequest,
    BulkStatusUpdateResponse,
    RoundStatusUpdateRequest,
    RoundStatusUpdateResponse,
    StatusUpdateRequest,
    StatusUpdateResponse,
)
from placement_api.services.application_workflow import ApplicationWorkflow

router = APIRouter()


def to_application_response(application: Application, student: Student, drive: Drive, expand: bool) -> ApplicationResponse:
    response = ApplicationResponse.model_validate(application)
    if expand:
        response.student = {
            "id": str(student.id),
            "regd_id": student.regd_id,
            "name": student.full_name,
            "email": student.email,
            "branch": student.branch,
            "cgpa": student.cgpa,
        }
        response.drive = {
            "id": str(drive.id),
            "title": drive.title,
            "status": drive.status,
            "total_rounds": drive.total_rounds,
            "round_names": drive.round_names or [],
        }
    return response


# ==================== Reads ====================

@router.get("", response_model=List[ApplicationResponse])
async def list_applications(
    drive_id: Optional[UUID] = None,
    status_filter: Optional[str] = Query(None, alias="status", regex="^(pending|accepted|rejected)$"),
    expand: bool = True,
    offset: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    actor: ActorContext = Depends(get_actor),
    workflow: ApplicationWorkflow = Depends(get_application_workflow),
):
    """
    List applications, newest first

    **RBAC**: Student (own only), Branch admin (own branch), Main admin
    """
    rows = await workflow.list(actor, drive_id=drive_id, status=status_filter, offset=offset, limit=limit)
    return [to_application_response(application, student, drive, expand) for application, student, drive in rows]


@router.get("/me/stats", response_model=ApplicationStats)
async def my_application_stats(
    actor: ActorContext = Depends(require_student),
    workflow: ApplicationWorkflow = Depends(get_application_workflow),
):
    """
    Pending / accepted / rejected counts for the signed-in student

    **RBAC**: Student
    """
    return ApplicationStats(**await workflow.stats(actor))


# ==================== Apply ====================

@router.post("", response_model=ApplicationSnapshot, status_code=status.HTTP_201_CREATED)
async def apply_to_drive(
    payload: ApplicationCreate,
    actor: ActorContext = Depends(get_actor),
    workflow: ApplicationWorkflow = Depends(get_application_workflow),
):
    """
    Apply to a drive

    Students apply for themselves; admins pass `student_id`. The drive's
    eligibility criteria are checked first and a second application to the
    same drive returns 409.

    **RBAC**: Student, Branch admin (own branch), Main admin
    """
    created = await workflow.apply(actor, payload.drive_id, payload.student_id)
    raise_for_failure(created)
    return created


# ==================== Status updates (Admin) ====================

@router.put("/bulk-status", response_model=BulkStatusUpdateResponse)
async def bulk_update_status(
    payload: BulkStatusUpdateRequest,
    background_tasks: BackgroundTasks,
    actor: ActorContext = Depends(require_admin),
    workflow: ApplicationWorkflow = Depends(get_application_workflow),
):
    """
    Set one overall status on many applications

    Rows are processed independently; `results` reports each id in request
    order and `modified` counts the rows actually written.

    **RBAC**: Branch admin (own branch), Main admin
    """
    result = await workflow.bulk_change_status(actor, payload.ids, payload.status, background_tasks)
    raise_for_failure(result)
    return result


@router.put("/{application_id}/status", response_model=StatusUpdateResponse)
async def update_status(
    application_id: UUID,
    payload: StatusUpdateRequest,
    background_tasks: BackgroundTasks,
    actor: ActorContext = Depends(require_admin),
    workflow: ApplicationWorkflow = Depends(get_application_workflow),
):
    """
    Change the overall status of an application

    **RBAC**: Branch admin (own branch), Main admin
    """
    outcome = await workflow.change_status(actor, application_id, payload.status, background_tasks)
    raise_for_failure(outcome)
    return StatusUpdateResponse(status=outcome.application.status)


@router.put("/{application_id}/round-status", response_model=RoundStatusUpdateResponse)
async def update_round_status(
    application_id: UUID,
    payload: RoundStatusUpdateRequest,
    background_tasks: BackgroundTasks,
    actor: ActorContext = Depends(require_admin),
    workflow: ApplicationWorkflow = Depends(get_application_workflow),
):
    """
    Record a round verdict

    Accepting a round advances the candidate; accepting the final round
    accepts the application; rejecting any round rejects it.

    **RBAC**: Branch admin (own branch), Main admin
    """
    outcome = await workflow.change_round_status(
        actor, application_id, payload.round, payload.status, background_tasks
    )
    raise_for_failure(outcome)
    return RoundStatusUpdateResponse(
        current_round=outcome.application.current_round,
        overall_status=outcome.application.status,
    )


# ==================== Delete ====================

@router.delete("/{application_id}")
async def delete_application(
    application_id: UUID,
    actor: ActorContext = Depends(get_actor),
    workflow: ApplicationWorkflow = Depends(get_application_workflow),
):
    """
    Withdraw (student, pending only) or delete (admin) an application

    **RBAC**: Student (own, pending), Branch admin (own branch), Main admin
    """
    result = await workflow.withdraw(actor, application_id)
    raise_for_failure(result)
    return {"ok": True}
