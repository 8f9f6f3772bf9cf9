"""UTC time helpers.

Timestamps are handled as timezone-aware UTC datetimes everywhere and only
converted to local time for display in chat messages.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_now() -> str:
    return utc_now().isoformat()


def convert_utc_to_local(utc_dt: datetime) -> datetime:
    """Naive input is taken as UTC."""
    if utc_dt.tzinfo is None:
        utc_dt = utc_dt.replace(tzinfo=timezone.utc)
    return utc_dt.astimezone()


def format_datetime(dt: datetime, fmt: str = "%Y-%m-%d %H:%M:%S %Z") -> str:
    return dt.strftime(fmt)


def coerce_datetime(value: Any) -> datetime | None:
    """
    Parse a store timestamp into an aware UTC datetime.

    Handles ISO-8601 with offset or ``Z`` suffix, SQLite's
    ``YYYY-MM-DD HH:MM:SS`` and ``datetime`` objects. Naive values are taken
    as UTC. Anything else gives ``None``.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
