from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from .config import AppConfig, ConfigError, load_config
from .ingestion.sheets import csv_folder_to_json, import_csv_folder
from .reconcile.merger import MergeReport, Reconciler
from .store.base import DocumentStore, StoreConnectionError
from .store.mongo import MongoStore
from .utils.json_utils import write_json

console = Console()


def _load_config_or_exit(config_path: Optional[str], require_uri: bool = True) -> AppConfig:
    try:
        return load_config(config_path, require_uri=require_uri)
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(2)
    except ConfigError as e:
        console.print(f"[red]Config error:[/red] {e}")
        sys.exit(2)
    except Exception as e:  # unexpected
        console.print(f"[red]Unexpected error loading config:[/red] {e}")
        sys.exit(1)


def open_store(cfg: AppConfig) -> DocumentStore:
    store = MongoStore.connect(
        cfg.mongo_uri,
        cfg.store.db_name,
        timeout_ms=cfg.store.server_selection_timeout_ms,
    )
    console.print(f"[green]Connected[/green] to database {cfg.store.db_name}")
    return store


def _split_names(value: str) -> List[str]:
    return [s.strip() for s in value.split(",") if s.strip()]


def _print_merge_summary(report: MergeReport) -> None:
    table = Table(title=f"Merge into {report.canonical}")
    table.add_column("Source")
    table.add_column("Docs", justify="right")
    table.add_column("Inserted", justify="right")
    table.add_column("Already present", justify="right")
    table.add_column("Failed", justify="right")
    for s in report.sources:
        table.add_row(s.name, str(s.documents), str(s.inserted), str(s.matched), str(s.failed))
    console.print(table)
    console.print(f"[bold]Total newly inserted:[/bold] {report.total_inserted}")
    console.print(f"[bold]Canonical count:[/bold] {report.canonical_count}")


def cmd_merge(args: argparse.Namespace) -> int:
    cfg = _load_config_or_exit(args.config)
    sources = _split_names(args.sources) if args.sources else cfg.merge.sources

    try:
        store = open_store(cfg)
    except StoreConnectionError as e:
        console.print(f"[red]Store error:[/red] {e}")
        return 1

    try:
        reconciler = Reconciler(
            store,
            canonical=cfg.merge.canonical,
            keyword=cfg.merge.keyword,
            sources=sources,
            console=console,
        )
        report = reconciler.run()
    finally:
        store.close()
        console.print("Connection closed")

    _print_merge_summary(report)

    if args.report_json:
        report_path = Path(args.report_json)
        try:
            write_json(report_path, report.to_dict())
        except Exception as e:
            console.print(f"[red]Failed to write merge report:[/red] {e}")
            return 1
        console.print(f"[bold]Report file:[/bold] {report_path}")

    return 0


def cmd_import_csv(args: argparse.Namespace) -> int:
    cfg = _load_config_or_exit(args.config)
    folder = Path(args.folder or cfg.imports.folder)

    try:
        store = open_store(cfg)
    except StoreConnectionError as e:
        console.print(f"[red]Store error:[/red] {e}")
        return 1

    try:
        report = import_csv_folder(store, folder)
    finally:
        store.close()
        console.print("Connection closed")

    if args.report_json:
        report_path = Path(args.report_json)
        try:
            write_json(report_path, report.to_dict())
        except Exception as e:
            console.print(f"[red]Failed to write import report:[/red] {e}")
            return 1
        console.print(f"[bold]Report file:[/bold] {report_path}")

    return 1 if report.failed else 0


def cmd_csv_to_json(args: argparse.Namespace) -> int:
    cfg = _load_config_or_exit(args.config, require_uri=False)
    folder = Path(args.folder or cfg.imports.folder)
    if not folder.is_dir():
        console.print(f"[red]Error:[/red] CSV folder not found at: {folder}")
        return 1
    written = csv_folder_to_json(folder)
    console.print(f"[bold green]Converted[/bold green] {len(written)} file(s)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="joyfund",
        description="JoyFund waitlist tooling: sheet imports and waitlist merge.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # merge
    p_merge = sub.add_parser("merge", help="Merge waitlist-like collections into the canonical waitlist")
    p_merge.add_argument("--config", type=str, help="Path to config.yml")
    p_merge.add_argument("--sources", type=str, help="Comma-separated source collections (skips discovery)")
    p_merge.add_argument("--report-json", type=str, help="Write the merge report to this JSON file")
    p_merge.set_defaults(func=cmd_merge)

    # import-csv
    p_import = sub.add_parser("import-csv", help="Load sheet CSV exports into collections named after each file")
    p_import.add_argument("--config", type=str, help="Path to config.yml")
    p_import.add_argument("--folder", type=str, help="Folder holding the CSV exports")
    p_import.add_argument("--report-json", type=str, help="Write the import report to this JSON file")
    p_import.set_defaults(func=cmd_import_csv)

    # csv-to-json
    p_json = sub.add_parser("csv-to-json", help="Write a JSON copy next to each CSV export")
    p_json.add_argument("--config", type=str, help="Path to config.yml")
    p_json.add_argument("--folder", type=str, help="Folder holding the CSV exports")
    p_json.set_defaults(func=cmd_csv_to_json)

    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except SystemExit:
        raise
    except Exception as e:
        console.print(f"[red]Unexpected error:[/red] {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
