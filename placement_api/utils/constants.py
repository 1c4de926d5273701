"""Common constants."""

# Admin roles
MAIN_ADMIN = "main-admin"
BRANCH_ADMIN = "branch-admin"
STUDENT = "student"
ADMIN_ROLES = [MAIN_ADMIN, BRANCH_ADMIN]
USER_ROLES = [MAIN_ADMIN, BRANCH_ADMIN, STUDENT]

# Admin account statuses
ADMIN_STATUSES = ["active", "inactive"]

# Application statuses (overall outcome)
APPLICATION_PENDING = "pending"
APPLICATION_ACCEPTED = "accepted"
APPLICATION_REJECTED = "rejected"
APPLICATION_STATUSES = [APPLICATION_PENDING, APPLICATION_ACCEPTED, APPLICATION_REJECTED]

# Per-round verdicts
ROUND_STATUSES = [APPLICATION_ACCEPTED, APPLICATION_REJECTED]

# Drive statuses, in the only order they may move
DRIVE_DRAFT = "draft"
DRIVE_PUBLISHED = "published"
DRIVE_CLOSED = "closed"
DRIVE_STATUSES = [DRIVE_DRAFT, DRIVE_PUBLISHED, DRIVE_CLOSED]
DRIVE_STATUS_TRANSITIONS = {
    DRIVE_DRAFT: {DRIVE_PUBLISHED},
    DRIVE_PUBLISHED: {DRIVE_CLOSED},
    DRIVE_CLOSED: set(),
}

# Notification types
NOTIFICATION_APPLICATION_STATUS = "application_status"
NOTIFICATION_ROUND_UPDATE = "round_update"
NOTIFICATION_DRIVE_PUBLISHED = "drive_published"
NOTIFICATION_ANNOUNCEMENT = "announcement"
NOTIFICATION_DATA_REQUEST = "data_request"
NOTIFICATION_TYPES = [
    NOTIFICATION_APPLICATION_STATUS,
    NOTIFICATION_ROUND_UPDATE,
    NOTIFICATION_DRIVE_PUBLISHED,
    NOTIFICATION_ANNOUNCEMENT,
    NOTIFICATION_DATA_REQUEST,
]

# Student sub-records
ADDRESS_TYPES = ["permanent", "present"]
EDUCATION_LEVELS = ["degree", "inter", "ssc"]

# Settings keys
BRANCH_THRESHOLDS_KEY = "branch_thresholds"

# Device platforms
DEVICE_PLATFORMS = ["android", "ios", "web"]
