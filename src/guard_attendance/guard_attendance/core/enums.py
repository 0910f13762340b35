from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    GUARD = "guard"
    SUPERVISOR = "supervisor"
    HR = "hr"
    ADMIN = "admin"


class AttendanceStatus(str, Enum):
    """Verification status stored on each attendance row."""

    PENDING = "pending"
    VERIFIED = "verified"
    EXCEPTION = "exception"


class ShiftStatus(str, Enum):
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ExceptionType(str, Enum):
    LATE_ARRIVAL = "late_arrival"
    GEOFENCE_VIOLATION = "geofence_violation"
    LOW_BIOMETRIC_SCORE = "low_biometric_score"
    ABSENT = "absent"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ExceptionStatus(str, Enum):
    """Review lifecycle of a flagged exception."""

    PENDING = "pending"
    REVIEWED = "reviewed"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


class AuditResult(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class Topic(str, Enum):
    """Real-time notifier channels."""

    ATTENDANCE = "attendance"
    EXCEPTIONS = "exceptions"
