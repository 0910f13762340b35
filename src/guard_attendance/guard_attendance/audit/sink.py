"""Append-only audit log sink.

Every mutating call writes exactly one entry. Writes are best-effort from
the caller's point of view: a failed audit write never undoes the action it
describes; it is logged and reported on the operator channel instead.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterator, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import new_id
from ..core.constants import DEFAULT_AUDIT_LIMIT, MAX_AUDIT_LIMIT, OPERATOR_LOGGER
from ..core.enums import AuditResult
from ..core.exceptions import ValidationError
from .model import AuditContext, AuditLog
from .repository import AuditRepository

logger = logging.getLogger(__name__)
operator_log = logging.getLogger(OPERATOR_LOGGER)


@dataclass
class AuditOutcome:
    """Filled in by an audited block; written once when the block exits."""

    resource_id: Optional[str] = None
    details: dict[str, Any] = field(default_factory=dict)
    result: AuditResult = AuditResult.SUCCESS


class AuditSink:
    def __init__(self, audit_logs: AuditRepository, *, clock: Callable[[], datetime] = now_local):
        self._audit_logs = audit_logs
        self._clock = clock

    def record(
        self,
        *,
        action: str,
        resource: str,
        resource_id: Optional[str],
        context: AuditContext,
        details: Optional[dict[str, Any]] = None,
        result: AuditResult = AuditResult.SUCCESS,
    ) -> AuditLog:
        entry = AuditLog(
            id=new_id(),
            user_id=context.actor_id,
            action=action,
            resource=resource,
            resource_id=resource_id,
            details=dict(details or {}),
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            result=result,
            created_at=self._clock(),
        )
        return self._audit_logs.append(entry)

    def record_safely(self, **kwargs) -> Optional[AuditLog]:
        """Like record(), but a failed write is reported instead of raised."""

        try:
            return self.record(**kwargs)
        except Exception:
            logger.exception("Audit write failed for %s", kwargs.get("action"))
            operator_log.error(
                "AUDIT_WRITE_FAILED action=%s resource=%s resource_id=%s result=%s",
                kwargs.get("action"),
                kwargs.get("resource"),
                kwargs.get("resource_id"),
                getattr(kwargs.get("result"), "value", AuditResult.SUCCESS.value),
            )
            return None

    @contextmanager
    def audited(
        self,
        *,
        action: str,
        resource: str,
        context: AuditContext,
        details: Optional[dict[str, Any]] = None,
    ) -> Iterator[AuditOutcome]:
        """Write exactly one entry for the wrapped call, success or failure."""

        outcome = AuditOutcome(details=dict(details or {}))
        try:
            yield outcome
        except Exception as e:
            outcome.details.setdefault("error", str(e))
            self.record_safely(
                action=action,
                resource=resource,
                resource_id=outcome.resource_id,
                context=context,
                details=outcome.details,
                result=AuditResult.FAILURE,
            )
            raise
        self.record_safely(
            action=action,
            resource=resource,
            resource_id=outcome.resource_id,
            context=context,
            details=outcome.details,
            result=outcome.result,
        )

    def recent(self, limit: Any = None) -> Sequence[AuditLog]:
        if limit is None or limit == "":
            n = DEFAULT_AUDIT_LIMIT
        else:
            try:
                n = int(limit)
            except (TypeError, ValueError):
                raise ValidationError("limit must be an integer")
            if n <= 0:
                raise ValidationError("limit must be positive")
        return self._audit_logs.recent(min(n, MAX_AUDIT_LIMIT))
