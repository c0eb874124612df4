from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from funding_pipeline.utils.datetime_utils import format_date, format_datetime, parse_datetime_utc


def test_parse_converts_offsets_and_naive_values_to_utc() -> None:
    assert parse_datetime_utc("2025-03-31T09:30:00+02:00") == datetime(
        2025, 3, 31, 7, 30, tzinfo=timezone.utc
    )
    assert parse_datetime_utc("2025-03-31") == datetime(2025, 3, 31, tzinfo=timezone.utc)
    assert parse_datetime_utc(date(2025, 3, 31)) == datetime(2025, 3, 31, tzinfo=timezone.utc)


def test_parse_returns_none_for_unusable_input() -> None:
    assert parse_datetime_utc(None) is None
    assert parse_datetime_utc("   ") is None
    assert parse_datetime_utc("someday") is None
    assert parse_datetime_utc(42) is None


def test_formatting_uses_utc_and_defaults() -> None:
    local = datetime(2025, 2, 1, 1, 15, tzinfo=timezone(timedelta(hours=3)))

    assert format_datetime(local) == "2025-01-31 22:15 UTC"
    assert format_date(local) == "2025-01-31"
    assert format_datetime(None) == "unknown"
    assert format_datetime(None, default="Never") == "Never"
    assert format_date(None, default="Rolling") == "Rolling"
