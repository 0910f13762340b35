"""Clock-in/clock-out orchestration.

Each call is a sequence of separate writes (attendance, exceptions, shift,
audit). Once the attendance row exists, a later step that fails is logged,
reported on the operator channel and recorded as a failure in the single
audit entry for the call; it does not undo the attendance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, List, Mapping, Optional

from ..audit.model import AuditContext
from ..audit.sink import AuditOutcome, AuditSink
from ..common.datetime_utils import now_local
from ..common.serialization import to_json
from ..common.validators import (
    require_latitude,
    require_longitude,
    require_non_empty,
    require_object,
    require_uuid,
)
from ..core.constants import OPERATOR_LOGGER
from ..core.enums import AttendanceStatus, AuditResult, ExceptionType, Severity, ShiftStatus, Topic
from ..core.exceptions import NotFoundError, ValidationError
from ..exceptions.model import AttendanceException
from ..exceptions.recorder import ExceptionRecorder
from ..guards.model import Guard
from ..guards.service import GuardService
from ..notifier.hub import Notifier
from ..settings.service import SettingsService
from ..shifts.model import Shift
from ..shifts.service import ShiftService
from .geofence import GeofenceCheck
from .ledger import AttendanceLedger
from .model import Attendance, Coordinates

logger = logging.getLogger(__name__)
operator_log = logging.getLogger(OPERATOR_LOGGER)

CLOSED_SHIFT_STATUSES = (ShiftStatus.CANCELLED, ShiftStatus.COMPLETED)


@dataclass
class ClockResult:
    attendance: Attendance
    exceptions: List[AttendanceException] = field(default_factory=list)
    failed_steps: List[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed_steps


class ClockWorkflow:
    def __init__(
        self,
        ledger: AttendanceLedger,
        recorder: ExceptionRecorder,
        shifts: ShiftService,
        guards: GuardService,
        geofence: GeofenceCheck,
        settings: SettingsService,
        audit: AuditSink,
        notifier: Notifier,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._ledger = ledger
        self._recorder = recorder
        self._shifts = shifts
        self._guards = guards
        self._geofence = geofence
        self._settings = settings
        self._audit = audit
        self._notifier = notifier
        self._clock = clock

    def process_clock_in(
        self,
        shift_id: Any,
        guard_id: str,
        position: Coordinates,
        confidence_score: Any,
        *,
        context: AuditContext,
    ) -> ClockResult:
        details = {"clockInData": _clock_data("shiftId", shift_id, position, confidence_score)}
        with self._audit.audited(action="CLOCK_IN", resource="Attendance", context=context, details=details) as outcome:
            result = self._clock_in(outcome, shift_id, guard_id, position, confidence_score)

        self._publish(result)
        return result

    def clock_in_request(self, payload: Any, *, context: AuditContext) -> ClockResult:
        """Clock in the calling guard from a raw request body."""

        with self._audit.audited(action="CLOCK_IN", resource="Attendance", context=context) as outcome:
            data = require_object(payload)
            position = _position(data)
            outcome.details["clockInData"] = _clock_data(
                "shiftId", data.get("shiftId"), position, data.get("biometricScore")
            )
            guard = self._acting_guard(context, require_active=True)
            result = self._clock_in(outcome, data.get("shiftId"), guard.id, position, data.get("biometricScore"))

        self._publish(result)
        return result

    def process_clock_out(
        self,
        attendance_id: Any,
        guard_id: Optional[str],
        position: Coordinates,
        confidence_score: Any,
        *,
        context: AuditContext,
    ) -> ClockResult:
        """Close an attendance.

        Only the geofence is checked here; a low checkout score is stored
        but not flagged.
        """
        details = {"clockOutData": _clock_data("attendanceId", attendance_id, position, confidence_score)}
        with self._audit.audited(action="CLOCK_OUT", resource="Attendance", context=context, details=details) as outcome:
            result = self._clock_out(outcome, attendance_id, guard_id, position, confidence_score)

        self._publish(result)
        return result

    def clock_out_request(self, payload: Any, *, context: AuditContext) -> ClockResult:
        with self._audit.audited(action="CLOCK_OUT", resource="Attendance", context=context) as outcome:
            data = require_object(payload)
            position = _position(data)
            outcome.details["clockOutData"] = _clock_data(
                "attendanceId", data.get("attendanceId"), position, data.get("biometricScore")
            )
            # an inactive guard may still close the shift they are on
            guard = self._acting_guard(context, require_active=False)
            result = self._clock_out(
                outcome, data.get("attendanceId"), guard.id, position, data.get("biometricScore")
            )

        self._publish(result)
        return result

    def process_absence(self, shift_id: Any, *, context: AuditContext) -> ClockResult:
        with self._audit.audited(
            action="MARK_ABSENT", resource="Attendance", context=context, details={"shiftId": shift_id}
        ) as outcome:
            result = self._absence(outcome, shift_id)

        self._publish(result)
        return result

    def absence_request(self, payload: Any, *, context: AuditContext) -> ClockResult:
        with self._audit.audited(action="MARK_ABSENT", resource="Attendance", context=context) as outcome:
            data = require_object(payload)
            outcome.details["shiftId"] = data.get("shiftId")
            result = self._absence(outcome, data.get("shiftId"))

        self._publish(result)
        return result

    def review_exception(
        self,
        exception_id: Any,
        reviewer_id: str,
        status: Any,
        resolution: Any,
        *,
        context: AuditContext,
    ) -> AttendanceException:
        with self._audit.audited(
            action="REVIEW_EXCEPTION",
            resource="Exception",
            context=context,
            details={"status": status, "resolution": resolution},
        ) as outcome:
            reviewed = self._review(outcome, exception_id, reviewer_id, status, resolution)

        self._notifier.publish(Topic.EXCEPTIONS, to_json(reviewed))
        return reviewed

    def review_request(self, exception_id: Any, payload: Any, *, context: AuditContext) -> AttendanceException:
        """Review an exception as the calling user from a raw request body."""

        with self._audit.audited(action="REVIEW_EXCEPTION", resource="Exception", context=context) as outcome:
            outcome.resource_id = exception_id
            data = require_object(payload)
            outcome.details.update({"status": data.get("status"), "resolution": data.get("resolution")})
            reviewed = self._review(
                outcome, exception_id, context.actor_id, data.get("status"), data.get("resolution")
            )

        self._notifier.publish(Topic.EXCEPTIONS, to_json(reviewed))
        return reviewed

    def _acting_guard(self, context: AuditContext, *, require_active: bool) -> Guard:
        if not context.actor_id:
            raise NotFoundError("Guard profile not found")
        guard = self._guards.get_profile_for_user(context.actor_id)
        if require_active and not guard.is_active:
            raise ValidationError("Guard profile is inactive")
        return guard

    def _clock_in(
        self,
        outcome: AuditOutcome,
        shift_id: Any,
        guard_id: str,
        position: Any,
        confidence_score: Any,
    ) -> ClockResult:
        shift_id = require_uuid(shift_id, "shiftId")
        position = _require_position(position)
        shift = self._shifts.get_shift(shift_id)
        if shift.guard_id != guard_id:
            raise ValidationError("Shift is not assigned to this guard")
        if shift.status in CLOSED_SHIFT_STATUSES:
            raise ValidationError(f"Shift is {shift.status.value}")

        settings = self._settings.current()
        now = self._clock()
        attendance = self._ledger.clock_in(
            shift.id, guard_id, position, confidence_score, now, threshold=settings.biometric_min_score
        )
        outcome.resource_id = attendance.id
        outcome.details["threshold"] = settings.biometric_min_score
        result = ClockResult(attendance=attendance)

        if attendance.status == AttendanceStatus.EXCEPTION:
            self._flag(
                result,
                outcome,
                "flag_low_biometric_score",
                ExceptionType.LOW_BIOMETRIC_SCORE,
                f"Biometric match score {attendance.clock_in_biometric_score}% below threshold",
                Severity.MEDIUM,
            )

        self._check_geofence(result, outcome, shift, position, "Clock-in")

        late_after = shift.scheduled_start + timedelta(minutes=settings.late_grace_minutes)
        if now > late_after:
            minutes = int((now - shift.scheduled_start).total_seconds() // 60)
            self._flag(
                result,
                outcome,
                "flag_late_arrival",
                ExceptionType.LATE_ARRIVAL,
                f"Clocked in {minutes} minutes after scheduled start",
                Severity.LOW,
            )

        self._step(result, outcome, "activate_shift", lambda: self._advance(shift, ShiftStatus.ACTIVE))
        self._finish(result, outcome, "CLOCK_IN")
        return result

    def _clock_out(
        self,
        outcome: AuditOutcome,
        attendance_id: Any,
        guard_id: Optional[str],
        position: Any,
        confidence_score: Any,
    ) -> ClockResult:
        attendance_id = require_uuid(attendance_id, "attendanceId")
        outcome.resource_id = attendance_id
        position = _require_position(position)
        if guard_id is not None:
            existing = self._ledger.get(attendance_id)
            if existing.guard_id != guard_id:
                raise ValidationError("Attendance belongs to another guard")

        attendance = self._ledger.clock_out(attendance_id, position, confidence_score, self._clock())
        result = ClockResult(attendance=attendance)

        shift = self._step(result, outcome, "load_shift", lambda: self._shifts.get_shift(attendance.shift_id))
        if shift is not None:
            self._check_geofence(result, outcome, shift, position, "Clock-out")
            self._step(result, outcome, "complete_shift", lambda: self._advance(shift, ShiftStatus.COMPLETED))
        self._finish(result, outcome, "CLOCK_OUT")
        return result

    def _absence(self, outcome: AuditOutcome, shift_id: Any) -> ClockResult:
        shift_id = require_uuid(shift_id, "shiftId")
        shift = self._shifts.get_shift(shift_id)
        if shift.status == ShiftStatus.CANCELLED:
            raise ValidationError("Shift is cancelled")
        if self._ledger.open_for_shift(shift.id):
            raise ValidationError("Guard is clocked in for this shift")

        attendance = self._ledger.record_absence(shift.id, shift.guard_id, self._clock())
        outcome.resource_id = attendance.id
        result = ClockResult(attendance=attendance)
        self._flag(
            result,
            outcome,
            "flag_absent",
            ExceptionType.ABSENT,
            f"No clock-in for shift scheduled at {shift.scheduled_start.isoformat()}",
            Severity.HIGH,
        )
        self._finish(result, outcome, "MARK_ABSENT")
        return result

    def _review(
        self,
        outcome: AuditOutcome,
        exception_id: Any,
        reviewer_id: Optional[str],
        status: Any,
        resolution: Any,
    ) -> AttendanceException:
        exception_id = require_non_empty(exception_id, "exceptionId")
        outcome.resource_id = exception_id
        return self._recorder.review(exception_id, reviewer_id, status, resolution, self._clock())

    def _advance(self, shift: Shift, target: ShiftStatus) -> None:
        if not self._shifts.advance(shift, target):
            logger.info("Shift %s left as %s", shift.id, shift.status.value)

    def _check_geofence(
        self,
        result: ClockResult,
        outcome: AuditOutcome,
        shift: Shift,
        position: Coordinates,
        label: str,
    ) -> None:
        check = self._step(result, outcome, "geofence_check", lambda: self._geofence.check(shift, position))
        if check is None or check.inside:
            return
        outcome.details["distanceMeters"] = round(check.distance_m, 1)
        self._flag(
            result,
            outcome,
            "flag_geofence_violation",
            ExceptionType.GEOFENCE_VIOLATION,
            f"{label} {check.distance_m:.0f} m from post, outside {check.radius_m} m geofence",
            Severity.MEDIUM,
        )

    def _flag(
        self,
        result: ClockResult,
        outcome: AuditOutcome,
        step: str,
        exception_type: ExceptionType,
        description: str,
        severity: Severity,
    ) -> None:
        flagged = self._step(
            result,
            outcome,
            step,
            lambda: self._recorder.flag(result.attendance.id, exception_type, description, severity),
        )
        if flagged is not None:
            result.exceptions.append(flagged)

    def _step(self, result: ClockResult, outcome: AuditOutcome, name: str, fn: Callable[[], Any]) -> Any:
        try:
            return fn()
        except Exception as e:
            logger.warning("Step %s failed for attendance %s: %s", name, result.attendance.id, e)
            result.failed_steps.append(name)
            outcome.details.setdefault("errors", {})[name] = str(e)
            return None

    def _finish(self, result: ClockResult, outcome: AuditOutcome, action: str) -> None:
        if result.exceptions:
            outcome.details["exceptions"] = [e.type.value for e in result.exceptions]
        if result.complete:
            return
        outcome.result = AuditResult.FAILURE
        outcome.details["failedSteps"] = list(result.failed_steps)
        operator_log.warning(
            "PARTIAL_FAILURE action=%s attendance=%s steps=%s",
            action,
            result.attendance.id,
            ",".join(result.failed_steps),
        )

    def _publish(self, result: ClockResult) -> None:
        self._notifier.publish(Topic.ATTENDANCE, to_json(result.attendance))
        for exc in result.exceptions:
            self._notifier.publish(Topic.EXCEPTIONS, to_json(exc))


def _require_position(position: Any) -> Coordinates:
    if not isinstance(position, Coordinates):
        raise ValidationError("latitude and longitude are required")
    return Coordinates(
        latitude=require_latitude(position.latitude),
        longitude=require_longitude(position.longitude),
    )


def _position(data: Mapping[str, Any]) -> Coordinates:
    return Coordinates(latitude=data.get("latitude"), longitude=data.get("longitude"))


def _clock_data(key: str, ref: Any, position: Any, confidence_score: Any) -> dict:
    return {
        key: ref,
        "latitude": getattr(position, "latitude", None),
        "longitude": getattr(position, "longitude", None),
        "biometricScore": confidence_score,
    }
