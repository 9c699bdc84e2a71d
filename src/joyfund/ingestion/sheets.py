"""
Sheets: Load spreadsheet CSV exports into source collections.

Each ``<name>.csv`` in the exports folder becomes collection ``<name>``.
Waitlist exports land in waitlist-like collections that the reconciler
later folds into the canonical waitlist.
"""
from __future__ import annotations

import csv
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console

from ..store.base import DocumentStore
from ..utils.json_utils import write_json

console = Console()


@dataclass
class FileImport:
    file: str
    collection: str
    rows: int = 0
    inserted: int = 0
    error: Optional[str] = None


@dataclass
class ImportReport:
    folder: str
    files: List[FileImport] = field(default_factory=list)

    @property
    def total_inserted(self) -> int:
        return sum(f.inserted for f in self.files)

    @property
    def failed(self) -> List[FileImport]:
        return [f for f in self.files if f.error]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "folder": self.folder,
            "files": [vars(f) for f in self.files],
            "total_inserted": self.total_inserted,
        }


def list_csv_files(folder: Path) -> List[Path]:
    folder = Path(folder)
    if not folder.is_dir():
        return []
    return sorted(p for p in folder.iterdir() if p.is_file() and p.suffix.lower() == ".csv")


def read_csv_rows(path: Path) -> List[Dict[str, str]]:
    """
    Read a CSV with a header row into a list of dicts.
    Cells beyond the header are dropped; missing cells read as "".
    """
    with Path(path).open("r", encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f, restval="")
        rows: List[Dict[str, str]] = []
        for row in reader:
            row.pop(None, None)
            rows.append(dict(row))
    return rows


def import_csv_folder(store: DocumentStore, folder: Path) -> ImportReport:
    """
    Insert every CSV in ``folder`` into a collection named after the file.

    Empty files are skipped. A file that fails is reported and the next
    file is still imported.
    """
    folder = Path(folder)
    report = ImportReport(folder=str(folder))

    if not folder.is_dir():
        console.print(f"[yellow]No CSV folder found at {folder}.[/yellow] Nothing to import.")
        return report

    files = list_csv_files(folder)
    if not files:
        console.print(f"[yellow]No CSV files in {folder}.[/yellow] Nothing to import.")
        return report

    for path in files:
        item = FileImport(file=path.name, collection=path.stem)
        report.files.append(item)
        try:
            rows = read_csv_rows(path)
            item.rows = len(rows)
            if not rows:
                console.print(f"[yellow]{path.name} is empty, skipping[/yellow]")
                continue
            item.inserted = store.insert_many(item.collection, rows)
            console.print(f"[green]{path.name}[/green] -> collection {item.collection} ({item.inserted} rows)")
        except Exception as e:
            item.error = str(e)
            console.print(f"[red]Error importing {path.name}:[/red] {e}")

    console.print(f"[bold green]Import complete.[/bold green] {report.total_inserted} rows from {len(files)} file(s)")
    return report


def csv_folder_to_json(folder: Path) -> List[Path]:
    """Write ``<name>.json`` next to each ``<name>.csv``. Returns the written paths."""
    written: List[Path] = []
    for path in list_csv_files(Path(folder)):
        target = path.with_suffix(".json")
        write_json(target, read_csv_rows(path))
        console.print(f"{path.name} -> {target.name}")
        written.append(target)
    return written
