from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from pymongo import ASCENDING, MongoClient, UpdateOne
from pymongo.database import Database
from pymongo.errors import BulkWriteError, PyMongoError

from .base import BulkResult, StoreConnectionError

DUPLICATE_KEY = 11000


class MongoStore:
    """DocumentStore backed by a MongoDB database."""

    def __init__(self, client: MongoClient, db_name: str) -> None:
        self._client = client
        self._db: Database = client[db_name]
        self.db_name = db_name

    @classmethod
    def connect(cls, uri: str, db_name: str, timeout_ms: int = 10000) -> "MongoStore":
        """
        Open a client and ping the server so an unreachable store fails
        here rather than halfway through a merge.
        """
        client: Optional[MongoClient] = None
        try:
            client = MongoClient(uri, serverSelectionTimeoutMS=timeout_ms)
            client.admin.command("ping")
        except PyMongoError as e:
            if client is not None:
                client.close()
            raise StoreConnectionError(f"Could not connect to MongoDB: {e}") from e
        return cls(client, db_name)

    def list_collection_names(self) -> List[str]:
        return sorted(self._db.list_collection_names())

    def find_all(self, collection: str) -> List[Dict[str, Any]]:
        return list(self._db[collection].find({}))

    def ensure_unique_index(self, collection: str, field: str) -> None:
        self._db[collection].create_index([(field, ASCENDING)], unique=True)

    def insert_if_absent(
        self,
        collection: str,
        key_field: str,
        documents: Sequence[Dict[str, Any]],
    ) -> BulkResult:
        if not documents:
            return BulkResult()
        ops = [
            UpdateOne({key_field: doc[key_field]}, {"$setOnInsert": doc}, upsert=True)
            for doc in documents
        ]
        try:
            res = self._db[collection].bulk_write(ops, ordered=False)
        except BulkWriteError as e:
            return _partial_result(e.details)
        return BulkResult(inserted=res.upserted_count, matched=res.matched_count)

    def insert_many(self, collection: str, documents: Sequence[Dict[str, Any]]) -> int:
        if not documents:
            return 0
        # insert_many stamps _id onto the dicts it is given.
        res = self._db[collection].insert_many([dict(d) for d in documents])
        return len(res.inserted_ids)

    def count(self, collection: str) -> int:
        return self._db[collection].count_documents({})

    def close(self) -> None:
        self._client.close()


def _partial_result(details: Dict[str, Any]) -> BulkResult:
    """
    Convert BulkWriteError details into a partial result.

    A duplicate-key error means a concurrent run inserted the same key
    between our filter match and the upsert; the row exists, so it counts
    as matched.
    """
    result = BulkResult(
        inserted=int(details.get("nUpserted", 0)),
        matched=int(details.get("nMatched", 0)),
    )
    for err in details.get("writeErrors", []):
        if err.get("code") == DUPLICATE_KEY:
            result.matched += 1
            continue
        result.failed += 1
        result.errors.append(f"op {err.get('index')}: {err.get('errmsg')}")
    return result
