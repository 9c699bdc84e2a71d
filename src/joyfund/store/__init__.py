"""
Store package: document store access for the waitlist collections.
"""
from .base import BulkResult, DocumentStore, StoreConnectionError
from .memory import InMemoryStore
from .mongo import MongoStore

__all__ = [
    "BulkResult",
    "DocumentStore",
    "InMemoryStore",
    "MongoStore",
    "StoreConnectionError",
]
