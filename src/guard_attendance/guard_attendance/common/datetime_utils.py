from __future__ import annotations

from datetime import date, datetime, time, timedelta


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into a naive local datetime.

    Offsets are converted to local time and dropped, matching how the
    database stores DATETIME columns.
    """
    v = (value or "").strip()
    if v.endswith("Z"):
        v = v[:-1] + "+00:00"
    parsed = datetime.fromisoformat(v)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def day_window(day: date) -> tuple[datetime, datetime]:
    """Half-open [00:00, next 00:00) window for a calendar day."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None
