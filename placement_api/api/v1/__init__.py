"""API v1 routes."""

from fastapi import APIRouter

from placement_api.api.v1 import (
    admin,
    admins,
    applications,
    auth,
    companies,
    drives,
    notifications,
    reports,
    settings,
    students,
)

api_router = APIRouter()

# Include all route modules
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin Dashboard"])
api_router.include_router(admins.router, prefix="/admins", tags=["Admin Accounts"])
api_router.include_router(students.router, prefix="/students", tags=["Students"])
api_router.include_router(companies.router, prefix="/companies", tags=["Companies"])
api_router.include_router(drives.router, prefix="/drives", tags=["Drives"])
api_router.include_router(applications.router, prefix="/applications", tags=["Applications"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(reports.router, prefix="/reports", tags=["Reports"])
api_router.include_router(settings.router, prefix="/settings", tags=["Settings"])
