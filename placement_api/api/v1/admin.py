"""
Admin Dashboard API
Student browsing per drive, branch overview and dashboard counters
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from placement_api.api.deps import require_admin
from placement_api.api.v1.applications import to_application_response
from placement_api.core.security import ActorContext
from placement_api.db.session import get_db
from placement_api.models.admin import Admin
from placement_api.models.application import Application
from placement_api.models.company import Company
from placement_api.models.drive import Drive
from placement_api.models.student import Student
from placement_api.repositories.application import ApplicationRepository
from placement_api.repositories.drive import DriveRepository
from placement_api.repositories.student import StudentRepository
from placement_api.schemas.admin import BranchStats, DashboardStats
from placement_api.schemas.drive import EligibilityCriteria
from placement_api.schemas.student import StudentListItem
from placement_api.services.drive_service import is_visible
from placement_api.services.eligibility import filter_eligible
from placement_api.utils.constants import APPLICATION_PENDING, BRANCH_ADMIN, DRIVE_PUBLISHED

router = APIRouter()

# Listed first on the branch overview
MAIN_BRANCH = "CSE"


# ==================== Students ====================

@router.get("/students")
async def list_students(
    branch: Optional[str] = None,
    search: Optional[str] = None,
    sort: str = Query("first_name", regex="^(first_name|last_name|cgpa|branch|created_at|email)$"),
    order: str = Query("asc", regex="^(asc|desc)$"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    actor: ActorContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Search and sort students with a total count

    **RBAC**: Branch admin (forced to own branch), Main admin
    """
    students = StudentRepository(db)
    branch = actor.branch_scope or branch
    rows = await students.list(
        branch=branch, search=search, sort_by=sort, sort_order=order, offset=offset, limit=limit
    )
    return {
        "students": [StudentListItem.model_validate(s) for s in rows],
        "total": await students.count(branch=branch, search=search),
        "limit": limit,
        "offset": offset,
    }


@router.get("/students/available/{drive_id}")
async def available_students(
    drive_id: UUID,
    actor: ActorContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Students who meet a drive's criteria and have not applied yet

    **RBAC**: Branch admin (own branch only), Main admin
    """
    drive = await DriveRepository(db).get(drive_id)
    if drive is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Drive not found")

    students = StudentRepository(db)
    criteria = EligibilityCriteria.from_raw(drive.eligibility)
    eligible = filter_eligible(criteria, await students.candidates_for(criteria))
    if actor.branch_scope:
        eligible = [s for s in eligible if s.branch == actor.branch_scope]

    applied = await ApplicationRepository(db).student_ids_for_drive(drive_id)
    rows = await students.list(
        only_ids=[s.id for s in eligible],
        exclude_ids=applied,
        sort_by="first_name",
        sort_order="asc",
        limit=None,
    )
    return {"students": [StudentListItem.model_validate(s) for s in rows], "total": len(rows)}


@router.get("/students/applied/{drive_id}")
async def applied_students(
    drive_id: UUID,
    status_filter: Optional[str] = Query(None, alias="status", regex="^(pending|accepted|rejected)$"),
    actor: ActorContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Applications to a drive with their students

    **RBAC**: Branch admin (own branch only), Main admin
    """
    rows = await ApplicationRepository(db).list(
        drive_id=drive_id, status=status_filter, branch=actor.branch_scope, limit=10000
    )
    applications = [to_application_response(*row, expand=True) for row in rows]
    return {"applications": applications, "total": len(applications)}


# ==================== Branches ====================

@router.get("/branches")
async def list_branches(
    actor: ActorContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Branches with student counts and their active branch admins

    **RBAC**: Branch admin (own branch only), Main admin
    """
    students = StudentRepository(db)

    if actor.branch_scope:
        return {
            "branches": [
                BranchStats(
                    branch=actor.branch_scope,
                    students=await students.count(branch=actor.branch_scope),
                    placed=await students.count(branch=actor.branch_scope, placed=True),
                    is_main=actor.branch_scope == MAIN_BRANCH,
                )
            ],
            "total": 1,
        }

    result = await db.execute(
        select(Admin.branch, Admin.name, Admin.email)
        .where(Admin.role == BRANCH_ADMIN, Admin.status == "active")
        .order_by(Admin.name)
    )
    admins_by_branch = {}
    for branch, name, email in result.all():
        admins_by_branch.setdefault(branch, []).append({"name": name, "email": email})

    branches: List[BranchStats] = [
        BranchStats(
            branch=row["branch"],
            students=row["students"],
            placed=row["placed"],
            is_main=row["branch"] == MAIN_BRANCH,
            admins=admins_by_branch.get(row["branch"], []),
        )
        for row in await students.branch_counts()
    ]
    branches.sort(key=lambda b: (not b.is_main, b.branch))
    return {"branches": branches, "total": len(branches)}


# ==================== Dashboard ====================

@router.get("/dashboard/stats", response_model=DashboardStats)
async def dashboard_stats(
    actor: ActorContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Counters for the dashboard landing page

    Branch admins count drives open to their branch and applications from
    their branch's students.

    **RBAC**: Branch admin (own branch), Main admin
    """
    branch = actor.branch_scope
    students = StudentRepository(db)

    drives = (await db.execute(select(Drive.id, Drive.status, Drive.eligibility))).all()
    visible = [d for d in drives if is_visible(actor, d)]

    applications_query = select(Application.status, func.count(Application.id)).group_by(Application.status)
    if branch:
        applications_query = applications_query.join(Student, Student.id == Application.student_id).where(
            Student.branch == branch
        )
    by_status = dict((await db.execute(applications_query)).all())

    companies = (await db.execute(select(func.count(Company.id)))).scalar() or 0

    return DashboardStats(
        total_students=await students.count(branch=branch),
        placed_students=await students.count(branch=branch, placed=True),
        total_drives=len(visible),
        active_drives=sum(1 for d in visible if d.status == DRIVE_PUBLISHED),
        total_applications=sum(by_status.values()),
        pending_applications=by_status.get(APPLICATION_PENDING, 0),
        total_companies=companies,
        branches=[branch] if branch else None,
    )
