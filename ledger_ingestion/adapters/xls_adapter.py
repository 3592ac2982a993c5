"""
XLS (legacy BIFF) source adapter.

Same row shape as XlsxSourceAdapter: first sheet, first row as headers,
blank rows skipped.  xlrd reports every number as float and dates as
floats with a DATE cell type; both are converted back here.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator

import xlrd

from ledger_ingestion.adapters.base import (
    dedupe_headers,
    is_blank_row,
    trim_trailing_blank_headers,
)


def _cell_value(cell: Any, datemode: int) -> Any:
    ctype = cell.ctype
    if ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
        return ""
    if ctype == xlrd.XL_CELL_DATE:
        try:
            return xlrd.xldate.xldate_as_datetime(cell.value, datemode)
        except (xlrd.xldate.XLDateError, ValueError):
            return cell.value
    if ctype == xlrd.XL_CELL_NUMBER:
        value = cell.value
        return int(value) if float(value).is_integer() else value
    if ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    if ctype == xlrd.XL_CELL_ERROR:
        return ""
    return str(cell.value).strip()


class XlsSourceAdapter:
    """Read .xls files as one dict per row. Option ``sheet``: index or name."""

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        book = xlrd.open_workbook(str(source_path), on_demand=True)
        try:
            sheet = self._get_sheet(book, options)
            if sheet.nrows == 0:
                return
            header_cells = [_cell_value(c, book.datemode) for c in sheet.row(0)]
            headers = dedupe_headers(trim_trailing_blank_headers(header_cells))
            ncols = len(headers)
            for r in range(1, sheet.nrows):
                cells = sheet.row(r)
                vals = [
                    _cell_value(cells[c], book.datemode) if c < len(cells) else ""
                    for c in range(ncols)
                ]
                if is_blank_row(vals):
                    continue
                yield dict(zip(headers, vals))
        finally:
            book.release_resources()

    def _get_sheet(self, book: Any, options: dict[str, Any]) -> Any:
        sheet_ref = options.get("sheet")
        if sheet_ref is None:
            return book.sheet_by_index(0)
        if isinstance(sheet_ref, int):
            return book.sheet_by_index(sheet_ref)
        return book.sheet_by_name(sheet_ref)
