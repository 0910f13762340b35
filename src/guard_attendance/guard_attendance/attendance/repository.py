from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Attendance, Coordinates


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: str) -> Optional[Attendance]:
        raise NotImplementedError

    def get_open_for_shift(self, shift_id: str) -> Optional[Attendance]:
        raise NotImplementedError

    def latest_for_guard(self, guard_id: str) -> Optional[Attendance]:
        raise NotImplementedError

    def insert(self, attendance: Attendance) -> Attendance:
        """Raises DuplicateKeyError when the shift already has an open row."""

        raise NotImplementedError

    def close(
        self,
        *,
        attendance_id: str,
        clock_out_time: datetime,
        position: Coordinates,
        score: int,
    ) -> bool:
        """Set clock-out fields; False when the row is missing or already closed."""

        raise NotImplementedError

    def list_created_between(self, start: datetime, end: datetime) -> Sequence[Attendance]:
        """Oldest first."""

        raise NotImplementedError
