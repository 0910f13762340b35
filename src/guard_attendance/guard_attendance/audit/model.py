from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..core.enums import AuditResult


@dataclass(frozen=True)
class AuditContext:
    """Who performed a mutating call and where it came from."""

    actor_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass(frozen=True)
class AuditLog:
    """Immutable, append-only audit entry."""

    id: str
    user_id: Optional[str]
    action: str
    resource: str
    resource_id: Optional[str]
    details: dict[str, Any] = field(default_factory=dict)
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    result: AuditResult = AuditResult.SUCCESS
    created_at: Optional[datetime] = None
