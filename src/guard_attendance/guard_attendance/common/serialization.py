"""JSON shaping for API responses.

Domain dataclasses use snake_case; the HTTP surface speaks camelCase.
"""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if is_dataclass(value) and not isinstance(value, type):
        return to_json(value)
    if isinstance(value, dict):
        return {k: _value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_value(v) for v in value]
    return value


def to_json(obj: Any, *, exclude: Iterable[str] = ()) -> dict:
    skip = set(exclude)
    return {_camel(f.name): _value(getattr(obj, f.name)) for f in fields(obj) if f.name not in skip}


def to_json_list(items: Iterable[Any], **kwargs) -> list[dict]:
    return [to_json(i, **kwargs) for i in items]
