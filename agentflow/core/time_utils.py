from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes (e.g. read back from sqlite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def elapsed_ms(start: datetime, end: datetime | None = None) -> int:
    """Whole milliseconds between ``start`` and ``end`` (default: now)."""
    end = end or utc_now()
    return max(0, int((ensure_aware(end) - ensure_aware(start)).total_seconds() * 1000))
