"""
Keys: Normalize waitlist documents and derive their dedupe key.
"""
from __future__ import annotations

import hashlib
import unicodedata
from datetime import datetime
from typing import Any, Mapping, Optional, Union

from ..models import NormalizedEntry, RawEntry
from ..utils.time import iso_millis, parse_timestamp, to_utc

KEY_DELIMITER = "|"


def _key_part(value: Any) -> str:
    """Lowercase, trimmed, NFC text for one key slot."""
    if value is None:
        return ""
    return unicodedata.normalize("NFC", str(value)).strip().lower()


def _clean_email(value: Any) -> Optional[str]:
    if value is None:
        return None
    email = str(value).strip().lower()
    return email or None


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def normalize_entry(raw: Union[RawEntry, Mapping[str, Any]], now: datetime) -> NormalizedEntry:
    """
    Normalize one source document.

    Timestamps:
    - parseable -> stored as UTC datetime, keyed by its millisecond ISO form
    - missing or blank -> stored as ``now``, keyed by an empty slot so the
      same document keys identically on every run
    - unparseable -> stored and keyed by the trimmed raw text
    """
    entry = raw if isinstance(raw, RawEntry) else RawEntry.model_validate(raw)

    ts = parse_timestamp(entry.created_at)
    if ts is not None:
        created_at: Union[datetime, str] = ts
        timestamp_key = iso_millis(ts)
    elif entry.created_at is None or not str(entry.created_at).strip():
        created_at = to_utc(now)
        timestamp_key = ""
    else:
        created_at = str(entry.created_at).strip()
        timestamp_key = created_at

    return NormalizedEntry(
        name=_as_text(entry.name),
        email=_clean_email(entry.email),
        reason=_as_text(entry.reason),
        created_at=created_at,
        timestamp_key=timestamp_key,
    )


def make_dedupe_key(entry: NormalizedEntry) -> str:
    """
    SHA-1 hex digest of ``email|name|reason|timestamp|``.

    The trailing empty slot keeps keys stable for canonical rows written by
    earlier merge runs.
    """
    raw = KEY_DELIMITER.join(
        [
            _key_part(entry.email),
            _key_part(entry.name),
            _key_part(entry.reason),
            entry.timestamp_key,
            "",
        ]
    )
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()
