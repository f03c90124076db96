"""FILETIME conversion helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

_FILETIME_EPOCH = datetime(1601, 1, 1, tzinfo=timezone.utc)


def filetime_to_datetime(value: int) -> datetime | None:
    """Convert a Windows FILETIME (100ns ticks since 1601) to UTC.

    Zero means "not set" and maps to ``None``, as do values beyond the
    range of ``datetime`` (a common sign of a wiped or damaged field).
    Sub-microsecond ticks are truncated.
    """
    if value == 0:
        return None
    try:
        return _FILETIME_EPOCH + timedelta(microseconds=value // 10)
    except OverflowError:
        return None


def format_timestamp(value: datetime | None) -> str:
    """ISO-8601 text for a timestamp, empty string when unset."""
    if value is None:
        return ""
    return value.isoformat()
