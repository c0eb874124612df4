from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any

from dateutil import parser

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M UTC"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Attach UTC to naive values; convert aware ones."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc)
    return value.replace(tzinfo=timezone.utc)


def parse_datetime_utc(value: Any) -> datetime | None:
    """Best-effort parse of user or config input; None when unparseable."""
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, date):
        # Bare dates (e.g. unquoted YAML) mean midnight UTC.
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if not isinstance(value, str) or not value.strip():
        return None

    try:
        parsed = parser.parse(value.strip())
    except (ValueError, OverflowError):
        return None
    return to_utc(parsed)


def format_datetime(value: datetime | None, *, default: str = "unknown") -> str:
    return default if value is None else to_utc(value).strftime(DATETIME_FORMAT)


def format_date(value: datetime | None, *, default: str = "unknown") -> str:
    return default if value is None else to_utc(value).strftime(DATE_FORMAT)
