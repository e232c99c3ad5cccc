"""Time helper tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

from app.utils.time import days_until_reset, parse_timestamp, to_iso, whole_days_between


def test_parse_timestamp_handles_z_suffix() -> None:
    """PostgREST ``Z`` suffixes parse as UTC."""
    parsed = parse_timestamp("2026-02-07T10:30:00Z")
    assert parsed == datetime(2026, 2, 7, 10, 30, tzinfo=UTC)


def test_parse_timestamp_normalizes_offsets_and_naive_values() -> None:
    """Offsets convert to UTC and naive values are taken as UTC."""
    assert parse_timestamp("2026-02-07T12:30:00+02:00") == datetime(2026, 2, 7, 10, 30, tzinfo=UTC)
    assert parse_timestamp(datetime(2026, 2, 7, 10, 30)).tzinfo == UTC


def test_parse_timestamp_empty_values() -> None:
    """Missing values parse to None."""
    assert parse_timestamp(None) is None
    assert parse_timestamp("") is None


def test_to_iso_round_trips_through_parse() -> None:
    """Serialized timestamps parse back to the same instant."""
    value = datetime(2026, 3, 1, 9, 0, tzinfo=timezone(timedelta(hours=-5)))
    assert parse_timestamp(to_iso(value)) == value


def test_whole_days_between_floors_partial_days() -> None:
    """Partial days do not count toward elapsed days."""
    start = datetime(2026, 3, 1, tzinfo=UTC)
    assert whole_days_between(start, start + timedelta(days=29, hours=23)) == 29
    assert whole_days_between(start, start + timedelta(days=30)) == 30


def test_days_until_reset() -> None:
    """Remaining days count down to zero and never go negative."""
    now = datetime(2026, 3, 31, tzinfo=UTC)
    assert days_until_reset("2026-03-21T00:00:00+00:00", 30, now=now) == 20
    assert days_until_reset("2026-01-01T00:00:00+00:00", 30, now=now) == 0
    assert days_until_reset(None, 30, now=now) == 0
