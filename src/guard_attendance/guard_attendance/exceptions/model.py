from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import ExceptionStatus, ExceptionType, Severity

# Review moves allowed from each status. Resolved and dismissed are closed.
REVIEW_TRANSITIONS = {
    ExceptionStatus.PENDING: {ExceptionStatus.REVIEWED, ExceptionStatus.RESOLVED, ExceptionStatus.DISMISSED},
    ExceptionStatus.REVIEWED: {ExceptionStatus.REVIEWED, ExceptionStatus.RESOLVED, ExceptionStatus.DISMISSED},
    ExceptionStatus.RESOLVED: set(),
    ExceptionStatus.DISMISSED: set(),
}


@dataclass(frozen=True)
class AttendanceException:
    """A flagged anomaly on one attendance, awaiting or past review."""

    id: str
    attendance_id: str
    type: ExceptionType
    description: str
    severity: Severity = Severity.MEDIUM
    status: ExceptionStatus = ExceptionStatus.PENDING
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    resolution: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_closed(self) -> bool:
        return not REVIEW_TRANSITIONS[self.status]
