"""
XLSX source adapter for spreadsheet exports (e.g. Vyapar party/item/sale reports).

Reads the first worksheet (or ``sheet`` option: 0-based index or name).
The first row is the header row; fully blank rows are skipped.  Cell values
keep their native type: numbers stay numbers (integral floats become int),
date cells stay datetime, strings are stripped, empty cells become "".
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Iterator

import openpyxl

from ledger_ingestion.adapters.base import (
    dedupe_headers,
    is_blank_row,
    trim_trailing_blank_headers,
)


def _cell_value(value: Any) -> Any:
    """Normalize a raw openpyxl cell value."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        return value
    if isinstance(value, (int, datetime)):
        return value
    return str(value).strip()


class XlsxSourceAdapter:
    """
    Read .xlsx files as one dict per row, keyed by the header row.

    source_options:
      sheet: 0-based sheet index (int) or sheet name (str). Default: first sheet.
    """

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        wb = openpyxl.load_workbook(source_path, read_only=True, data_only=True)
        try:
            sheet = self._get_sheet(wb, options)
            rows = sheet.iter_rows(values_only=True)
            header_cells = next(rows, None)
            if header_cells is None:
                return
            headers = dedupe_headers(trim_trailing_blank_headers(list(header_cells)))
            ncols = len(headers)
            for raw in rows:
                vals = [_cell_value(raw[c]) if c < len(raw) else "" for c in range(ncols)]
                if is_blank_row(vals):
                    continue
                yield dict(zip(headers, vals))
        finally:
            wb.close()

    def _get_sheet(self, wb: Any, options: dict[str, Any]) -> Any:
        sheet_ref = options.get("sheet")
        if sheet_ref is None:
            return wb.worksheets[0]
        if isinstance(sheet_ref, int):
            return wb.worksheets[sheet_ref]
        return wb[sheet_ref]
