"""Source adapters: Tally XML, XLSX and legacy XLS."""

from __future__ import annotations

from pathlib import Path

from ledger_ingestion.adapters.base import SourceAdapter
from ledger_ingestion.adapters.tally_xml_adapter import (
    TallyXmlAdapter,
    classify_messages,
    parse_tally_file,
)
from ledger_ingestion.adapters.xls_adapter import XlsSourceAdapter
from ledger_ingestion.adapters.xlsx_adapter import XlsxSourceAdapter
from ledger_kernel.exceptions import UnsupportedFileTypeError

__all__ = [
    "SourceAdapter",
    "TallyXmlAdapter",
    "XlsSourceAdapter",
    "XlsxSourceAdapter",
    "adapter_for_filename",
    "classify_messages",
    "parse_tally_file",
]

DEFAULT_ALLOWED_EXTENSIONS = (".xml", ".xls", ".xlsx")


def adapter_for_filename(
    filename: str,
    adapters: dict[str, SourceAdapter],
    allowed: tuple[str, ...] = DEFAULT_ALLOWED_EXTENSIONS,
) -> SourceAdapter:
    """
    Pick the adapter for ``filename`` by extension.

    Raises:
        UnsupportedFileTypeError: extension not allowed or no adapter for it.
    """
    ext = Path(filename).suffix.lower()
    if ext not in allowed or ext not in adapters:
        raise UnsupportedFileTypeError(filename, allowed)
    return adapters[ext]
