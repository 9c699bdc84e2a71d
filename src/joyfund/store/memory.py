from __future__ import annotations

import copy
from collections import defaultdict
from typing import Any, Dict, List, Optional, Sequence, Set

from .base import BulkResult


class InMemoryStore:
    """
    Dict-backed document store honouring unique indexes.

    Documents are deep-copied on the way in and out so callers never share
    state with the store.
    """

    def __init__(self, collections: Optional[Dict[str, List[Dict[str, Any]]]] = None) -> None:
        self._collections: Dict[str, List[Dict[str, Any]]] = {}
        self._unique: Dict[str, Set[str]] = defaultdict(set)
        self.closed = False
        self.write_calls = 0
        for name, docs in (collections or {}).items():
            self._collections[name] = [copy.deepcopy(d) for d in docs]

    def _col(self, name: str) -> List[Dict[str, Any]]:
        return self._collections.setdefault(name, [])

    def _key_exists(self, collection: str, field: str, value: Any) -> bool:
        return any(doc.get(field) == value for doc in self._collections.get(collection, []))

    def _violates_unique(self, collection: str, doc: Dict[str, Any]) -> Optional[str]:
        for field in self._unique.get(collection, ()):
            # A missing field is indexed as null.
            if self._key_exists(collection, field, doc.get(field)):
                return field
        return None

    def list_collection_names(self) -> List[str]:
        return sorted(self._collections)

    def find_all(self, collection: str) -> List[Dict[str, Any]]:
        return [copy.deepcopy(d) for d in self._collections.get(collection, [])]

    def ensure_unique_index(self, collection: str, field: str) -> None:
        docs = self._col(collection)
        values = [d.get(field) for d in docs]
        if len(values) != len(set(values)):
            raise ValueError(f"Cannot create unique index on {collection}.{field}: duplicate values present")
        self._unique[collection].add(field)

    def insert_if_absent(
        self,
        collection: str,
        key_field: str,
        documents: Sequence[Dict[str, Any]],
    ) -> BulkResult:
        self.write_calls += 1
        result = BulkResult()
        col = self._col(collection)
        for doc in documents:
            if key_field not in doc:
                result.failed += 1
                result.errors.append(f"document without {key_field}")
                continue
            if self._key_exists(collection, key_field, doc[key_field]):
                result.matched += 1
                continue
            clash = self._violates_unique(collection, doc)
            if clash:
                result.failed += 1
                result.errors.append(f"duplicate value for unique field {clash}")
                continue
            col.append(copy.deepcopy(doc))
            result.inserted += 1
        return result

    def insert_many(self, collection: str, documents: Sequence[Dict[str, Any]]) -> int:
        self.write_calls += 1
        col = self._col(collection)
        for doc in documents:
            clash = self._violates_unique(collection, doc)
            if clash:
                raise ValueError(f"duplicate value for unique field {clash} in {collection}")
            col.append(copy.deepcopy(doc))
        return len(documents)

    def count(self, collection: str) -> int:
        return len(self._collections.get(collection, []))

    def close(self) -> None:
        self.closed = True
