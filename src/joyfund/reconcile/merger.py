"""
Merger: Fold waitlist-like source collections into the canonical waitlist.

Every source document is normalized, keyed, and written with
insert-if-absent semantics against a unique index on the key, so the first
source to deliver a key wins and re-runs insert nothing new.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from rich.console import Console

from ..models import CanonicalRecord
from ..store.base import DocumentStore
from ..utils.time import iso_millis, utc_now
from .keys import make_dedupe_key, normalize_entry

KEY_FIELD = "_dedupeKey"


def discover_sources(names: Iterable[str], keyword: str, canonical: str) -> List[str]:
    """Collections whose name contains ``keyword`` (any case), minus the canonical one."""
    needle = keyword.lower()
    return [n for n in names if needle in n.lower() and n != canonical]


@dataclass
class SourceResult:
    name: str
    documents: int = 0
    inserted: int = 0
    matched: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def skipped(self) -> bool:
        return self.documents == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "documents": self.documents,
            "inserted": self.inserted,
            "matched": self.matched,
            "failed": self.failed,
            "errors": list(self.errors),
        }


@dataclass
class MergeReport:
    canonical: str
    started_at: str
    sources: List[SourceResult] = field(default_factory=list)
    canonical_count: int = 0

    @property
    def total_inserted(self) -> int:
        return sum(s.inserted for s in self.sources)

    @property
    def total_failed(self) -> int:
        return sum(s.failed for s in self.sources)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "canonical": self.canonical,
            "started_at": self.started_at,
            "sources": [s.to_dict() for s in self.sources],
            "total_inserted": self.total_inserted,
            "total_failed": self.total_failed,
            "canonical_count": self.canonical_count,
        }


class Reconciler:
    """
    Merge waitlist sources into one canonical collection.

    Args:
        store: Document store holding sources and the canonical collection
        canonical: Name of the canonical collection
        keyword: Case-insensitive substring used to discover sources
        sources: Explicit source names; disables keyword discovery when given
        console: Rich console for progress output
        clock: Returns the current UTC time
    """

    def __init__(
        self,
        store: DocumentStore,
        canonical: str = "waitlist",
        keyword: str = "waitlist",
        sources: Optional[Sequence[str]] = None,
        console: Optional[Console] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.canonical = canonical
        self.keyword = keyword
        self.sources = list(sources) if sources is not None else None
        self.console = console or Console()
        self.clock = clock

    def resolve_sources(self) -> List[str]:
        if self.sources is None:
            return discover_sources(self.store.list_collection_names(), self.keyword, self.canonical)
        resolved: List[str] = []
        for name in self.sources:
            if name != self.canonical and name not in resolved:
                resolved.append(name)
        return resolved

    def build_documents(self, source: str, docs: Sequence[Dict[str, Any]], now: datetime) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = []
        for doc in docs:
            entry = normalize_entry(doc, now)
            record = CanonicalRecord.from_entry(entry, make_dedupe_key(entry), source)
            out.append(record.to_document())
        return out

    def merge_source(self, name: str, now: Optional[datetime] = None) -> SourceResult:
        """Merge one source. Safe to repeat: already-present keys are no-ops."""
        now = now or self.clock()
        result = SourceResult(name=name)

        docs = self.store.find_all(name)
        result.documents = len(docs)
        if not docs:
            self.console.print(f"[yellow]{name}:[/yellow] 0 docs, skipping")
            return result

        bulk = self.store.insert_if_absent(self.canonical, KEY_FIELD, self.build_documents(name, docs, now))
        result.inserted = bulk.inserted
        result.matched = bulk.matched
        result.failed = bulk.failed
        result.errors = list(bulk.errors)

        self.console.print(
            f"[green]Merged[/green] {name}: inserted {bulk.inserted} "
            f"(from {len(docs)} docs, {bulk.matched} already present)"
        )
        if bulk.failed:
            self.console.print(f"[yellow]{name}:[/yellow] {bulk.failed} write(s) failed")
            for err in bulk.errors[:5]:
                self.console.print(f"  - {err}")
        return result

    def run(self) -> MergeReport:
        now = self.clock()
        report = MergeReport(canonical=self.canonical, started_at=iso_millis(now))

        sources = self.resolve_sources()
        self.console.print(f"[bold]Waitlist sources:[/bold] {', '.join(sources) or 'none'}")

        if not sources:
            self.console.print("[cyan]Nothing to merge.[/cyan]")
            report.canonical_count = self.store.count(self.canonical)
            return report

        self.store.ensure_unique_index(self.canonical, KEY_FIELD)

        for name in sources:
            report.sources.append(self.merge_source(name, now))

        report.canonical_count = self.store.count(self.canonical)
        self.console.print(
            f"[bold green]Done.[/bold green] Total newly inserted: {report.total_inserted} | "
            f"{self.canonical} count: {report.canonical_count}"
        )
        return report
