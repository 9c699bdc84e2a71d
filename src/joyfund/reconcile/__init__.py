"""
Reconcile package: Normalize, key and merge waitlist sources.
"""
from .keys import make_dedupe_key, normalize_entry
from .merger import KEY_FIELD, MergeReport, Reconciler, SourceResult, discover_sources

__all__ = [
    "KEY_FIELD",
    "MergeReport",
    "Reconciler",
    "SourceResult",
    "discover_sources",
    "make_dedupe_key",
    "normalize_entry",
]
