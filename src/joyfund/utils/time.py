from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any, Optional

# Google Sheets exports write timestamps as M/D/YYYY, no zone.
SHEET_FORMATS = ("%m/%d/%Y %H:%M:%S", "%m/%d/%Y %H:%M", "%m/%d/%Y")

def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    # Naive datetimes coming back from the store are UTC.
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Coerce a stored timestamp into an aware UTC datetime.

    Accepts datetimes, dates, epoch milliseconds, ISO-8601 strings
    (``Z`` suffix or explicit offset) and sheet-export ``M/D/YYYY H:MM:SS``
    strings, read as UTC. Returns None when the value cannot be interpreted.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return to_utc(datetime.fromisoformat(text))
        except ValueError:
            pass
        for fmt in SHEET_FORMATS:
            try:
                return to_utc(datetime.strptime(text, fmt))
            except ValueError:
                continue
        return None
    return None


def iso_millis(dt: datetime) -> str:
    """
    Render a datetime as UTC with millisecond precision.
    Example: 2024-01-01T00:00:00.000Z
    """
    utc = to_utc(dt)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"
