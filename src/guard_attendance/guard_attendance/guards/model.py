from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional


@dataclass(frozen=True)
class Guard:
    """Guard profile bound 1:1 to a user account.

    `biometric_data` is an opaque reference to an encrypted template held by
    the external matcher; it is stored and returned, never interpreted.
    """

    id: str
    user_id: str
    employee_id: str
    first_name: str
    last_name: str
    phone_number: Optional[str] = None
    site_id: Optional[str] = None
    hourly_rate: Optional[Decimal] = None
    biometric_data: Optional[Any] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
