"""Time utility helpers."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

SECONDS_PER_DAY = 24 * 60 * 60


def now_utc() -> datetime:
    """Return current timezone-aware UTC datetime."""
    return datetime.now(tz=UTC)


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse a stored timestamp into an aware UTC datetime.

    PostgREST returns ISO strings (sometimes with a trailing ``Z``); naive
    values are assumed to be UTC.
    """
    if value is None or value == "":
        return None

    if isinstance(value, str):
        normalized = value.replace("Z", "+00:00")
        parsed = datetime.fromisoformat(normalized)
    else:
        parsed = value

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def to_iso(value: datetime) -> str:
    """Serialize an aware datetime the way rows store it."""
    return value.astimezone(UTC).isoformat()


def whole_days_between(start: datetime, end: datetime) -> int:
    """Return the number of whole days elapsed from ``start`` to ``end``."""
    return int((end - start).total_seconds() // SECONDS_PER_DAY)


def cycle_end(start: datetime, cycle_days: int) -> datetime:
    """Return the end of a billing/grant cycle starting at ``start``."""
    return start + timedelta(days=cycle_days)


def days_until_reset(
    last_reset: str | datetime | None,
    cycle_days: int,
    now: datetime | None = None,
) -> int:
    """Days left before the next periodic grant (0 when one is due)."""
    parsed = parse_timestamp(last_reset)
    if parsed is None:
        return 0
    elapsed = whole_days_between(parsed, now or now_utc())
    return max(0, cycle_days - elapsed)
