from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import ExceptionStatus
from .model import AttendanceException


class ExceptionRepository(Protocol):
    def create(self, exception: AttendanceException) -> AttendanceException:
        raise NotImplementedError

    def get_by_id(self, exception_id: str) -> Optional[AttendanceException]:
        raise NotImplementedError

    def update_review(
        self,
        *,
        exception_id: str,
        status: ExceptionStatus,
        reviewed_by: str,
        reviewed_at: datetime,
        resolution: Optional[str],
    ) -> Optional[AttendanceException]:
        raise NotImplementedError

    def list_pending(self) -> Sequence[AttendanceException]:
        """Pending exceptions, newest created first."""

        raise NotImplementedError
