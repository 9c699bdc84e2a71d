"""
Repository interface over the document store holding the waitlist collections.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol, Sequence


class StoreConnectionError(RuntimeError):
    """Raised when the document store cannot be reached."""


@dataclass
class BulkResult:
    """Outcome of one unordered insert-if-absent bulk."""

    inserted: int = 0
    matched: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)


class DocumentStore(Protocol):
    """Minimal set of store operations the waitlist tooling relies on."""

    def list_collection_names(self) -> List[str]:  # pragma: no cover - Protocol
        ...

    def find_all(self, collection: str) -> List[Dict[str, Any]]:  # pragma: no cover - Protocol
        ...

    def ensure_unique_index(self, collection: str, field: str) -> None:  # pragma: no cover - Protocol
        ...

    def insert_if_absent(
        self,
        collection: str,
        key_field: str,
        documents: Sequence[Dict[str, Any]],
    ) -> BulkResult:  # pragma: no cover - Protocol
        """
        Insert each document unless a row with the same ``key_field`` value
        exists. Operations are independent: one failing item never stops
        the rest of the bulk.
        """
        ...

    def insert_many(self, collection: str, documents: Sequence[Dict[str, Any]]) -> int:  # pragma: no cover - Protocol
        ...

    def count(self, collection: str) -> int:  # pragma: no cover - Protocol
        ...

    def close(self) -> None:  # pragma: no cover - Protocol
        ...
