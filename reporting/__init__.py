"""
Reporting Package.

Renders pipeline results for people and spreadsheets.

Modules:
- csv_report: One row per valued transaction
- json_report: Full records, failures and drops as JSON
- summary: Per-network totals for the console
"""

from .csv_report import CSV_HEADER, format_decimal, render_rows, write_csv
from .json_report import render_json, write_json
from .summary import render_summary


__all__ = [
    "CSV_HEADER",
    "format_decimal",
    "render_rows",
    "write_csv",
    "render_json",
    "write_json",
    "render_summary",
]
