"""
Ingestion package: Spreadsheet exports into the document store.
"""
from .sheets import ImportReport, csv_folder_to_json, import_csv_folder, read_csv_rows

__all__ = [
    "ImportReport",
    "csv_folder_to_json",
    "import_csv_folder",
    "read_csv_rows",
]
