"""Conversions between datetimes and Unix time counts."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MICROSECOND = timedelta(microseconds=1)


def time_from_unix_microseconds(mks: int) -> datetime:
    """Return the UTC datetime that is ``mks`` microseconds after the Unix epoch."""
    return _EPOCH + timedelta(microseconds=mks)


def _microseconds(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.astimezone()
    return (value - _EPOCH) // _MICROSECOND


def _truncating_div(value: int, divisor: int) -> int:
    quotient = abs(value) // divisor
    return quotient if value >= 0 else -quotient


def unix_microseconds(value: datetime) -> int:
    """Microseconds since the Unix epoch; naive datetimes are taken as local time."""
    return _microseconds(value)


def unix_milliseconds(value: datetime) -> int:
    """Milliseconds since the Unix epoch, truncated toward zero."""
    return _truncating_div(_microseconds(value), 1000)


def unix_seconds(value: datetime) -> int:
    """Whole seconds since the Unix epoch, rounded down."""
    return _microseconds(value) // 1_000_000