from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Attendance:
    """Domain entity: one shift occupancy (clock-in/clock-out pair).

    A row without `clock_in_time` records an absence.
    """

    id: str
    shift_id: str
    guard_id: str
    clock_in_time: Optional[datetime] = None
    clock_out_time: Optional[datetime] = None
    clock_in_latitude: Optional[float] = None
    clock_in_longitude: Optional[float] = None
    clock_out_latitude: Optional[float] = None
    clock_out_longitude: Optional[float] = None
    clock_in_biometric_score: Optional[int] = None
    clock_out_biometric_score: Optional[int] = None
    status: AttendanceStatus = AttendanceStatus.PENDING
    notes: Optional[str] = None
    verified_by: Optional[str] = None
    verified_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.clock_in_time is not None and self.clock_out_time is None

    @property
    def is_absence(self) -> bool:
        return self.clock_in_time is None
