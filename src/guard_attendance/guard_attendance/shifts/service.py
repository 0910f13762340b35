from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Sequence

from ..audit.model import AuditContext
from ..audit.sink import AuditSink
from ..common.datetime_utils import day_window, now_local, parse_iso_datetime
from ..common.validators import new_id, require_non_empty, require_object, require_uuid
from ..core.enums import ShiftStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..database.mysql_base import ForeignKeyError
from ..guards.repository import GuardRepository
from ..sites.repository import SiteRepository
from .model import Shift
from .repository import ShiftRepository

logger = logging.getLogger(__name__)


class ShiftService:
    def __init__(
        self,
        shifts: ShiftRepository,
        guards: GuardRepository,
        sites: SiteRepository,
        audit: AuditSink,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._shifts = shifts
        self._guards = guards
        self._sites = sites
        self._audit = audit
        self._clock = clock

    def get_shift(self, shift_id: str) -> Shift:
        shift = self._shifts.get_by_id(shift_id)
        if not shift:
            raise NotFoundError("Shift not found")
        return shift

    def active_shifts(self) -> Sequence[Shift]:
        """Shifts scheduled to start today (local time)."""

        start, end = day_window(self._clock().date())
        return self._shifts.list_starting_between(start, end)

    def create_shift(self, payload: Any, *, context: AuditContext) -> Shift:
        with self._audit.audited(action="CREATE_SHIFT", resource="Shift", context=context) as outcome:
            data = require_object(payload)
            outcome.details["shiftData"] = dict(data)

            guard_id = require_uuid(data.get("guardId"), "guardId")
            guard = self._guards.get_by_id(guard_id)
            if not guard:
                raise ValidationError("guardId does not reference an existing guard")
            if not guard.is_active:
                raise ValidationError("Cannot schedule an inactive guard")

            post_id = require_uuid(data.get("postId"), "postId")
            if not self._sites.get_post(post_id):
                raise ValidationError("postId does not reference an existing post")

            start = _parse_timestamp(data.get("scheduledStart"), "scheduledStart")
            end = _parse_timestamp(data.get("scheduledEnd"), "scheduledEnd")
            if end <= start:
                raise ValidationError("scheduledEnd must be after scheduledStart")

            status_s = data.get("status", ShiftStatus.SCHEDULED.value)
            try:
                status = ShiftStatus(status_s)
            except ValueError:
                raise ValidationError("status is invalid")

            shift = Shift(
                id=new_id(),
                guard_id=guard_id,
                post_id=post_id,
                scheduled_start=start,
                scheduled_end=end,
                status=status,
            )
            try:
                created = self._shifts.create(shift)
            except ForeignKeyError:
                raise ValidationError("Shift references a missing guard or post")

            outcome.resource_id = created.id
            return created

    def advance(self, shift: Shift, target: ShiftStatus) -> bool:
        """Move a shift along scheduled -> active -> completed.

        Returns False (and leaves the row alone) when the move is not allowed
        from the current state, so callers can treat it as advisory.
        """

        if shift.status == target:
            return True
        if not shift.can_move_to(target):
            logger.info("Shift %s stays %s (no move to %s)", shift.id, shift.status.value, target.value)
            return False
        return self._shifts.update_status(shift.id, target)


def _parse_timestamp(value: Any, field_name: str) -> datetime:
    text = require_non_empty(value, field_name)
    try:
        return parse_iso_datetime(text)
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO-8601 timestamp")
