from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Guard


class GuardRepository(Protocol):
    def list_all(self) -> Sequence[Guard]:
        raise NotImplementedError

    def get_by_id(self, guard_id: str) -> Optional[Guard]:
        raise NotImplementedError

    def get_by_user_id(self, user_id: str) -> Optional[Guard]:
        raise NotImplementedError

    def get_by_employee_id(self, employee_id: str) -> Optional[Guard]:
        raise NotImplementedError

    def create(self, guard: Guard) -> Guard:
        raise NotImplementedError

    def set_active(self, guard_id: str, is_active: bool) -> bool:
        raise NotImplementedError
