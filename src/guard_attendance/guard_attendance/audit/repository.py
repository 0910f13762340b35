from __future__ import annotations

from typing import Protocol, Sequence

from .model import AuditLog


class AuditRepository(Protocol):
    def append(self, entry: AuditLog) -> AuditLog:
        raise NotImplementedError

    def recent(self, limit: int) -> Sequence[AuditLog]:
        """Newest first."""

        raise NotImplementedError
