from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local
from ..common.validators import new_id, optional_str, require_non_empty
from ..core.enums import ExceptionStatus, ExceptionType, Severity
from ..core.exceptions import InvalidTransition, NotFoundError, ValidationError
from .model import REVIEW_TRANSITIONS, AttendanceException
from .repository import ExceptionRepository

logger = logging.getLogger(__name__)


class ExceptionRecorder:
    """Flags anomalies against attendance rows and tracks their review."""

    def __init__(
        self,
        exceptions: ExceptionRepository,
        attendance: AttendanceRepository,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._exceptions = exceptions
        self._attendance = attendance
        self._clock = clock

    def get(self, exception_id: str) -> AttendanceException:
        exc = self._exceptions.get_by_id(exception_id)
        if not exc:
            raise NotFoundError("Exception not found")
        return exc

    def flag(
        self,
        attendance_id: str,
        exception_type: Any,
        description: Any,
        severity: Any = Severity.MEDIUM,
    ) -> AttendanceException:
        try:
            exc_type = ExceptionType(exception_type)
        except ValueError:
            raise ValidationError("type is invalid")
        try:
            level = Severity(severity)
        except ValueError:
            raise ValidationError("severity is invalid")
        text = require_non_empty(description, "description")

        if not self._attendance.get_by_id(attendance_id):
            raise NotFoundError("Attendance not found")

        created = self._exceptions.create(
            AttendanceException(
                id=new_id(),
                attendance_id=attendance_id,
                type=exc_type,
                description=text,
                severity=level,
                created_at=self._clock(),
            )
        )
        logger.info("Flagged %s on attendance %s (%s)", exc_type.value, attendance_id, level.value)
        return created

    def review(
        self,
        exception_id: str,
        reviewer_id: str,
        new_status: Any,
        resolution: Any = None,
        now: Optional[datetime] = None,
    ) -> AttendanceException:
        try:
            target = ExceptionStatus(new_status)
        except ValueError:
            raise InvalidTransition(f"Unknown review status: {new_status}")

        current = self.get(exception_id)
        if target not in REVIEW_TRANSITIONS[current.status]:
            raise InvalidTransition(f"Cannot move exception from {current.status.value} to {target.value}")

        updated = self._exceptions.update_review(
            exception_id=exception_id,
            status=target,
            reviewed_by=reviewer_id,
            reviewed_at=now or self._clock(),
            resolution=optional_str(resolution),
        )
        if not updated:
            raise NotFoundError("Exception not found")
        return updated

    def pending(self) -> Sequence[AttendanceException]:
        items = list(self._exceptions.list_pending())
        items.sort(key=lambda e: e.created_at or datetime.min, reverse=True)
        return items
