from __future__ import annotations

from typing import Mapping, Optional, Protocol


class SettingsRepository(Protocol):
    def load(self) -> dict[str, str]:
        raise NotImplementedError

    def save(self, values: Mapping[str, str], *, updated_by: Optional[str]) -> None:
        raise NotImplementedError
