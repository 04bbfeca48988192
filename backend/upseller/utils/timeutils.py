"""
Time helpers shared by scheduling and the API layer.

WHAT: ISO-8601 parsing/formatting and grid rounding
WHY: Every timestamp crossing a boundary must be timezone-aware UTC
HOW: datetime.fromisoformat with "Z" support, naive values treated as UTC
"""

from datetime import datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(timezone.utc)


def parse_iso(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Raises:
        ValueError: If the value is not a valid timestamp
    """
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    return ensure_utc(parsed)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso_z(value: datetime) -> str:
    """Format as 2025-01-01T10:45:00Z (seconds precision)."""
    return ensure_utc(value).replace(microsecond=0).strftime("%Y-%m-%dT%H:%M:%SZ")


def ceil_to_grid(value: datetime, grid_minutes: int) -> datetime:
    """
    Round up to the next grid boundary (already-aligned values are kept).

    10:00 -> 10:00, 10:01 -> 10:30, 10:30:00.5 -> 11:00 for a 30 minute grid.
    """
    value = ensure_utc(value)
    midnight = value.replace(hour=0, minute=0, second=0, microsecond=0)
    step = timedelta(minutes=grid_minutes)
    elapsed = value - midnight
    steps, remainder = divmod(elapsed, step)
    if remainder:
        steps += 1
    return midnight + steps * step
