from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import day_window, now_local
from ..common.validators import new_id, require_score
from ..core.constants import DEFAULT_BIOMETRIC_THRESHOLD
from ..core.enums import AttendanceStatus
from ..core.exceptions import AlreadyClosed, ClockOutBeforeClockIn, DuplicateClockIn, NotFoundError
from ..database.mysql_base import DuplicateKeyError
from . import policy
from .model import Attendance, Coordinates
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceLedger:
    """Records clock-in/clock-out rows and answers on-duty questions."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        threshold: Callable[[], int] = lambda: DEFAULT_BIOMETRIC_THRESHOLD,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._threshold = threshold
        self._clock = clock

    def get(self, attendance_id: str) -> Attendance:
        record = self._attendance.get_by_id(attendance_id)
        if not record:
            raise NotFoundError("Attendance not found")
        return record

    def clock_in(
        self,
        shift_id: str,
        guard_id: str,
        position: Coordinates,
        confidence_score: int,
        now: Optional[datetime] = None,
        *,
        threshold: Optional[int] = None,
    ) -> Attendance:
        now = now or self._clock()
        decision = policy.evaluate(confidence_score, self._threshold() if threshold is None else threshold)

        if self._attendance.get_open_for_shift(shift_id):
            raise DuplicateClockIn("Shift already has an open clock-in")

        record = Attendance(
            id=new_id(),
            shift_id=shift_id,
            guard_id=guard_id,
            clock_in_time=now,
            clock_in_latitude=position.latitude,
            clock_in_longitude=position.longitude,
            clock_in_biometric_score=decision.score,
            status=decision.status,
            created_at=now,
        )
        try:
            return self._attendance.insert(record)
        except DuplicateKeyError:
            # lost the race against a concurrent clock-in for the same shift
            raise DuplicateClockIn("Shift already has an open clock-in")

    def clock_out(
        self,
        attendance_id: str,
        position: Coordinates,
        confidence_score: int,
        now: Optional[datetime] = None,
    ) -> Attendance:
        """Close an open attendance.

        The status is left as recorded at clock-in; the checkout score is
        stored but not evaluated.
        """
        now = now or self._clock()
        score = require_score(confidence_score)

        record = self.get(attendance_id)
        if record.clock_out_time is not None:
            raise AlreadyClosed("Attendance is already clocked out")
        if record.clock_in_time is None:
            raise ClockOutBeforeClockIn("Attendance has no clock-in")
        if now < record.clock_in_time:
            logger.warning("Rejected clock-out at %s before clock-in %s for %s", now, record.clock_in_time, attendance_id)
            raise ClockOutBeforeClockIn("Clock-out time precedes clock-in time")

        if not self._attendance.close(attendance_id=attendance_id, clock_out_time=now, position=position, score=score):
            raise AlreadyClosed("Attendance is already clocked out")
        return self.get(attendance_id)

    def record_absence(self, shift_id: str, guard_id: str, now: Optional[datetime] = None) -> Attendance:
        now = now or self._clock()
        record = Attendance(
            id=new_id(),
            shift_id=shift_id,
            guard_id=guard_id,
            status=AttendanceStatus.EXCEPTION,
            notes="No clock-in recorded for shift",
            created_at=now,
        )
        return self._attendance.insert(record)

    def open_for_shift(self, shift_id: str) -> Optional[Attendance]:
        return self._attendance.get_open_for_shift(shift_id)

    def is_on_duty(self, guard_id: str) -> bool:
        latest = self._attendance.latest_for_guard(guard_id)
        return bool(latest and latest.is_open)

    def todays_attendance(self) -> Sequence[Attendance]:
        start, end = day_window(self._clock().date())
        return self._attendance.list_created_between(start, end)
