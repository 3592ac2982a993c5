"""
Source adapter protocol and shared header helpers.

Contract:
    SourceAdapter.read() yields one dict per source record.

Architecture: ledger_ingestion/adapters. File I/O only, no DB imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Iterator, Protocol, runtime_checkable


@runtime_checkable
class SourceAdapter(Protocol):
    """Protocol for reading structured source files into record dicts."""

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        """Yield one dict per source record."""
        ...


def dedupe_headers(values: Iterable[Any]) -> list[str]:
    """
    Turn a header row into unique column names.

    Blank headers become ``Column_N`` (1-based); repeats get ``_1``, ``_2``...
    """
    headers: list[str] = []
    for idx, value in enumerate(values):
        key = " ".join(str(value).split()) if value is not None else ""
        key = key or f"Column_{idx + 1}"
        base = key
        cnt = 0
        while key in headers:
            cnt += 1
            key = f"{base}_{cnt}"
        headers.append(key)
    return headers


def is_blank_row(values: Iterable[Any]) -> bool:
    return not any(v != "" and v is not None for v in values)


def trim_trailing_blank_headers(headers: list[Any]) -> list[Any]:
    """Drop empty cells at the right edge of a header row."""
    end = len(headers)
    while end > 0 and (headers[end - 1] is None or str(headers[end - 1]).strip() == ""):
        end -= 1
    return headers[:end]
