"""Datetime handling: lax input -> strict ISO 8601 output for the Admin API."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pendulum


def parse_datetime(value: str | date | datetime, default_tz: str = "UTC") -> datetime:
    """Parse a lax datetime value into a timezone-aware datetime.

    Accepts ISO 8601 strings (with or without ``T`` separator, seconds or
    offset), bare dates, and the ``date``/``datetime`` objects YAML produces
    for unquoted timestamps. Missing timezone defaults to ``default_tz``.
    Raises ``ValueError`` when the value cannot be parsed.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=pendulum.timezone(default_tz))  # type: ignore[arg-type]
        return value
    if isinstance(value, date):
        return pendulum.datetime(value.year, value.month, value.day, tz=default_tz)

    value_str = value.strip()
    if not value_str:
        msg = "empty datetime value"
        raise ValueError(msg)
    parsed = pendulum.parse(value_str, tz=default_tz, strict=False)
    if not isinstance(parsed, pendulum.DateTime):
        if not isinstance(parsed, pendulum.Date):
            msg = f"not a date or datetime: {value_str!r}"
            raise ValueError(msg)
        parsed = pendulum.datetime(parsed.year, parsed.month, parsed.day, tz=default_tz)
    return parsed


def format_iso(dt: datetime) -> str:
    """Format a datetime as UTC ISO 8601 with millisecond precision.

    Output: YYYY-MM-DDTHH:MM:SS.mmmZ
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    utc = dt.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def normalize_publish_at(value: str | date | datetime) -> str:
    """Normalize a scheduled publish time for the ``published_at`` field."""
    return format_iso(parse_datetime(value))


def now_utc() -> datetime:
    """Return the current UTC datetime."""
    return datetime.now(timezone.utc)
