"""Time utilities for ISO-8601 timestamps."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def utc_now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string, the format records are stored in."""
    return utc_now().isoformat()


def parse_iso(value: str) -> datetime:
    # Accept the trailing "Z" that JavaScript's toISOString() writes.
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)
