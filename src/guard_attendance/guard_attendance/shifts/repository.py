from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import ShiftStatus
from .model import Shift


class ShiftRepository(Protocol):
    def get_by_id(self, shift_id: str) -> Optional[Shift]:
        raise NotImplementedError

    def list_starting_between(self, start: datetime, end: datetime) -> Sequence[Shift]:
        """Shifts with scheduled_start in [start, end), earliest first."""

        raise NotImplementedError

    def create(self, shift: Shift) -> Shift:
        raise NotImplementedError

    def update_status(self, shift_id: str, status: ShiftStatus) -> bool:
        raise NotImplementedError
