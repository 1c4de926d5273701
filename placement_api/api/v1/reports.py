"""
Reports API
Placement counts and analytics for the dashboard; branch admins only see their branch
"""

from collections import Counter
from typing import Dict
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from placement_api.api.deps import require_admin
from placement_api.core.security import ActorContext
from placement_api.db.session import get_db
from placement_api.models.application import Application
from placement_api.models.company import Company
from placement_api.models.drive import Drive
from placement_api.models.student import Student
from placement_api.repositories.student import StudentRepository
from placement_api.utils.constants import APPLICATION_STATUSES, DRIVE_DRAFT

router = APIRouter()


def _percent(part: int, whole: int) -> int:
    """Whole-number percentage, rounding halves up."""
    if not whole:
        return 0
    return int(part * 100 / whole + 0.5)


def _applications_in_scope(branch):
    query = select(Application.status, Application.drive_id)
    if branch:
        query = query.join(Student, Student.id == Application.student_id).where(Student.branch == branch)
    return query


@router.get("/summary")
async def summary(
    actor: ActorContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Headline counts: students, placed students, non-draft drives, applications

    **RBAC**: Branch admin (own branch), Main admin
    """
    branch = actor.branch_scope
    students = StudentRepository(db)

    applications_query = select(func.count(Application.id))
    if branch:
        applications_query = applications_query.join(Student, Student.id == Application.student_id).where(
            Student.branch == branch
        )
    drives = await db.execute(select(func.count(Drive.id)).where(Drive.status != DRIVE_DRAFT))

    return {
        "students": await students.count(branch=branch),
        "placed": await students.count(branch=branch, placed=True),
        "drives": drives.scalar() or 0,
        "applications": (await db.execute(applications_query)).scalar() or 0,
    }


@router.get("/branch-stats")
async def branch_stats(
    actor: ActorContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Students, placed students and placement rate per branch

    **RBAC**: Branch admin (own branch), Main admin
    """
    rows = await StudentRepository(db).branch_counts()
    if actor.branch_scope:
        rows = [row for row in rows if row["branch"] == actor.branch_scope]
    return {
        "branches": [
            {
                "branch": row["branch"],
                "total": row["students"],
                "placed": row["placed"],
                "placementRate": _percent(row["placed"], row["students"]),
            }
            for row in rows
        ]
    }


@router.get("/application-analytics")
async def application_analytics(
    actor: ActorContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Applications per status and per drive, with the acceptance rate

    **RBAC**: Branch admin (own branch), Main admin
    """
    result = await db.execute(_applications_in_scope(actor.branch_scope))
    rows = result.all()

    by_status: Dict[str, int] = {s: 0 for s in APPLICATION_STATUSES}
    by_drive: Counter = Counter()
    for application_status, drive_id in rows:
        by_status[application_status or "pending"] = by_status.get(application_status or "pending", 0) + 1
        by_drive[str(drive_id)] += 1

    return {
        "byStatus": by_status,
        "totalApplications": len(rows),
        "acceptanceRate": _percent(by_status["accepted"], len(rows)),
        "driveApplicationCounts": dict(by_drive),
    }


@router.get("/drive-analytics/{drive_id}")
async def drive_analytics(
    drive_id: UUID,
    actor: ActorContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Application breakdown for one drive

    **RBAC**: Branch admin (own branch applicants), Main admin
    """
    result = await db.execute(select(Drive).options(selectinload(Drive.company)).where(Drive.id == drive_id))
    drive = result.scalar_one_or_none()
    if drive is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Drive not found")

    rows = (
        await db.execute(_applications_in_scope(actor.branch_scope).where(Application.drive_id == drive_id))
    ).all()
    breakdown = {s: 0 for s in APPLICATION_STATUSES}
    for application_status, _ in rows:
        if application_status in breakdown:
            breakdown[application_status] += 1

    return {
        "drive": {
            "id": str(drive.id),
            "title": drive.title,
            "company": drive.company.name if drive.company else "Unknown",
            "status": drive.status,
            "created_at": drive.created_at,
        },
        "totalApplications": len(rows),
        "statusBreakdown": breakdown,
        "acceptanceRate": _percent(breakdown["accepted"], len(rows)),
    }


@router.get("/company-analytics")
async def company_analytics(
    actor: ActorContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Drives per company, busiest first

    **RBAC**: Branch admin, Main admin
    """
    drive_count = func.count(Drive.id)
    result = await db.execute(
        select(Company.id, Company.name, drive_count)
        .outerjoin(Drive, Drive.company_id == Company.id)
        .group_by(Company.id, Company.name)
        .order_by(drive_count.desc(), Company.name)
    )
    companies = [
        {"id": str(company_id), "name": name, "totalDrives": total}
        for company_id, name, total in result.all()
    ]
    return {"companies": companies, "totalCompanies": len(companies)}


@router.get("/student-analytics")
async def student_analytics(
    actor: ActorContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Year and CGPA distribution, breaks in studies and backlogs

    **RBAC**: Branch admin (own branch), Main admin
    """
    query = select(Student.year, Student.cgpa, Student.break_in_studies, Student.has_backlogs)
    if actor.branch_scope:
        query = query.where(Student.branch == actor.branch_scope)
    rows = (await db.execute(query)).all()

    by_year: Counter = Counter()
    cgpa_ranges = {"below6": 0, "6to7": 0, "7to8": 0, "8to9": 0, "above9": 0}
    with_breaks = with_backlogs = 0
    for year, cgpa, break_in_studies, has_backlogs in rows:
        by_year[year or "Unknown"] += 1
        value = cgpa or 0
        if value < 6:
            cgpa_ranges["below6"] += 1
        elif value < 7:
            cgpa_ranges["6to7"] += 1
        elif value < 8:
            cgpa_ranges["7to8"] += 1
        elif value < 9:
            cgpa_ranges["8to9"] += 1
        else:
            cgpa_ranges["above9"] += 1
        with_breaks += bool(break_in_studies)
        with_backlogs += bool(has_backlogs)

    return {
        "total": len(rows),
        "byYear": dict(by_year),
        "cgpaDistribution": cgpa_ranges,
        "withBreaks": with_breaks,
        "withBacklogs": with_backlogs,
        "eligibilityImpacted": with_breaks + with_backlogs,
    }
