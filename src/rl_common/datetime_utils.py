"""UTC datetime helpers."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(UTC)


def to_iso(value: datetime | None) -> str | None:
    """ISO8601 string for API payloads; None stays None."""
    return value.isoformat() if value is not None else None
