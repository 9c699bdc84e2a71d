from __future__ import annotations

import io
from datetime import datetime, timezone

import pytest
from rich.console import Console

from joyfund.store import InMemoryStore

NOW = datetime(2025, 9, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def quiet_console() -> Console:
    return Console(file=io.StringIO(), width=120)


@pytest.fixture
def clock():
    return lambda: NOW


class PartlyFailingStore(InMemoryStore):
    """Fails every document but the first in the first bulk it receives."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.bulks = 0

    def insert_if_absent(self, collection, key_field, documents):
        self.bulks += 1
        if self.bulks == 1:
            result = super().insert_if_absent(collection, key_field, documents[:1])
            result.failed = len(documents) - 1
            result.errors = ["op 1: Document failed validation"] * result.failed
            return result
        return super().insert_if_absent(collection, key_field, documents)


@pytest.fixture
def partly_failing_store() -> PartlyFailingStore:
    return PartlyFailingStore(
        {
            "waitlist_a": [
                {"email": "joy@fund.net", "name": "Joy", "createdAt": datetime(2024, 5, 1, 10, tzinfo=timezone.utc)},
                {"email": "ada@example.com", "name": "Ada", "createdAt": datetime(2024, 5, 2, 10, tzinfo=timezone.utc)},
            ],
            "waitlist_b": [
                {"email": "bo@example.com", "name": "Bo", "createdAt": datetime(2024, 5, 3, 10, tzinfo=timezone.utc)},
            ],
        }
    )
