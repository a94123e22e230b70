"""Timestamp normalisation for values read back from the store."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Union

__all__ = ["coerce_timestamp", "utc_now", "utc_now_iso"]

TimestampInput = Union[str, datetime, None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    return utc_now().isoformat()


def coerce_timestamp(value: TimestampInput) -> datetime:
    """Turn a stored timestamp into an aware ``datetime``.

    PostgREST returns ``timestamptz`` columns as ISO-8601 strings, tests
    and older rows may carry ``datetime`` objects, and a row written
    before the column existed has nothing at all.  Naive values are
    assumed to be UTC; a missing value becomes "now", matching how the
    dashboard has always displayed such rows.
    """
    if value is None or value == "":
        return utc_now()
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
