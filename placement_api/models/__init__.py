"""Database models."""

# Import all models in dependency order to ensure proper relationship initialization

# Base models (no foreign keys)
from placement_api.models.admin import Admin
from placement_api.models.company import Company
from placement_api.models.setting import Setting

# Models with foreign keys to base models
from placement_api.models.student import Address, DeviceToken, EducationRecord, Student, StudentAuth
from placement_api.models.drive import Drive

# Models with foreign keys to other models
from placement_api.models.application import Application
from placement_api.models.notification import Notification

__all__ = [
    "Admin",
    "Company",
    "Setting",
    "Student",
    "Address",
    "EducationRecord",
    "StudentAuth",
    "DeviceToken",
    "Drive",
    "Application",
    "Notification",
]
