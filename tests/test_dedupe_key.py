from __future__ import annotations

import hashlib
from datetime import datetime, timedelta, timezone

from joyfund.models import RawEntry
from joyfund.reconcile.keys import make_dedupe_key, normalize_entry

NOW = datetime(2025, 9, 1, 12, 0, 0, tzinfo=timezone.utc)
T = datetime(2024, 5, 1, 10, 0, 0, tzinfo=timezone.utc)


def _key(doc, now=NOW):
    return make_dedupe_key(normalize_entry(doc, now))


def test_email_case_does_not_change_key():
    a = {"email": "A@B.com", "name": "Joy", "reason": "test", "createdAt": T}
    b = {"email": "a@b.com", "name": "Joy", "reason": "test", "createdAt": T}
    assert _key(a) == _key(b)
    expected = hashlib.sha1("a@b.com|joy|test|2024-05-01T10:00:00.000Z|".encode("utf-8")).hexdigest()
    assert _key(a) == expected
    assert len(_key(a)) == 40


def test_capitalized_fields_normalize_identically():
    lower = {"email": "joy@fund.net", "name": "Joy", "reason": "help", "createdAt": T}
    upper = {"Email": "joy@fund.net", "Name": "Joy", "Reason": "help", "CreatedAt": T}
    assert normalize_entry(lower, NOW) == normalize_entry(upper, NOW)
    assert _key(lower) == _key(upper)


def test_lowercase_field_wins_unless_null():
    entry = RawEntry.model_validate({"name": None, "Name": "Joy", "email": "x@y.z", "Email": "other@y.z"})
    assert entry.name == "Joy"
    assert entry.email == "x@y.z"


def test_email_trimmed_and_lowercased_in_record():
    entry = normalize_entry({"email": "  Joy@Fund.NET \n", "name": " Joy "}, NOW)
    assert entry.email == "joy@fund.net"
    # name is stored as given; only the key ignores case and padding
    assert entry.name == " Joy "
    assert _key({"email": "joy@fund.net", "name": "joy"}) == _key({"email": "  Joy@Fund.NET \n", "name": " Joy "})


def test_blank_email_becomes_none():
    assert normalize_entry({"email": "   "}, NOW).email is None


def test_document_without_identifying_fields_still_keys():
    entry = normalize_entry({"unrelated": 1}, NOW)
    assert entry.email is None and entry.name is None and entry.reason is None
    assert make_dedupe_key(entry) == hashlib.sha1("||||".encode("utf-8")).hexdigest()


def test_missing_timestamp_keys_the_same_on_every_run():
    doc = {"email": "a@b.com", "name": "Joy"}
    first = normalize_entry(doc, NOW)
    later = normalize_entry(doc, NOW + timedelta(days=3))
    assert first.timestamp_key == ""
    assert first.created_at == NOW
    assert make_dedupe_key(first) == make_dedupe_key(later)


def test_timestamp_representations_share_a_key():
    base = {"email": "a@b.com", "name": "Joy", "reason": "test"}
    as_dt = _key({**base, "createdAt": T})
    as_iso_z = _key({**base, "createdAt": "2024-05-01T10:00:00Z"})
    as_offset = _key({**base, "createdAt": "2024-05-01T12:00:00+02:00"})
    as_epoch_ms = _key({**base, "createdAt": int(T.timestamp() * 1000)})
    as_naive = _key({**base, "createdAt": datetime(2024, 5, 1, 10, 0, 0)})
    assert as_dt == as_iso_z == as_offset == as_epoch_ms == as_naive


def test_created_at_preferred_over_capitalized():
    other = datetime(2023, 1, 1, tzinfo=timezone.utc)
    entry = normalize_entry({"createdAt": T, "CreatedAt": other}, NOW)
    assert entry.created_at == T
    fallback = normalize_entry({"createdAt": None, "CreatedAt": other}, NOW)
    assert fallback.created_at == other


def test_unparseable_timestamp_is_kept_not_dropped():
    entry = normalize_entry({"email": "a@b.com", "createdAt": " last tuesday "}, NOW)
    assert entry.created_at == "last tuesday"
    assert entry.timestamp_key == "last tuesday"
    assert _key({"email": "a@b.com", "createdAt": "last tuesday"}) != _key({"email": "a@b.com"})


def test_different_reason_gives_different_key():
    assert _key({"email": "a@b.com", "reason": "x", "createdAt": T}) != _key(
        {"email": "a@b.com", "reason": "y", "createdAt": T}
    )


def test_non_string_values_are_stringified():
    entry = normalize_entry({"name": 42, "reason": 3.5}, NOW)
    assert entry.name == "42"
    assert entry.reason == "3.5"


def test_sheet_export_timestamp_keys_like_iso():
    sheet = normalize_entry({"Email": "joy@fund.net", "CreatedAt": "5/1/2024 10:00:00"}, NOW)
    assert sheet.created_at == T
    assert sheet.timestamp_key == "2024-05-01T10:00:00.000Z"
    assert make_dedupe_key(sheet) == _key({"email": "joy@fund.net", "createdAt": "2024-05-01T10:00:00.000Z"})
    assert normalize_entry({"createdAt": "05/01/2024"}, NOW).created_at == datetime(2024, 5, 1, tzinfo=timezone.utc)
    assert normalize_entry({"createdAt": "5/1/2024 10:00"}, NOW).created_at == T


def test_compact_iso_forms_parse():
    assert normalize_entry({"createdAt": "20240501T100000Z"}, NOW).created_at == T
    assert normalize_entry({"createdAt": "2024-05-01T10:00:00.5Z"}, NOW).timestamp_key == "2024-05-01T10:00:00.500Z"
