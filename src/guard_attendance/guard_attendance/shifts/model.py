from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import ShiftStatus

ALLOWED_TRANSITIONS: dict[ShiftStatus, frozenset[ShiftStatus]] = {
    ShiftStatus.SCHEDULED: frozenset({ShiftStatus.ACTIVE, ShiftStatus.CANCELLED}),
    ShiftStatus.ACTIVE: frozenset({ShiftStatus.COMPLETED, ShiftStatus.CANCELLED}),
    ShiftStatus.COMPLETED: frozenset(),
    ShiftStatus.CANCELLED: frozenset(),
}


@dataclass(frozen=True)
class Shift:
    """Domain entity: scheduled assignment of a guard to a post."""

    id: str
    guard_id: str
    post_id: str
    scheduled_start: datetime
    scheduled_end: datetime
    status: ShiftStatus = ShiftStatus.SCHEDULED
    created_at: Optional[datetime] = None

    def can_move_to(self, target: ShiftStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self.status]
