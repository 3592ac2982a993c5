"""
Header normalizer: alias-driven field lookup.

Pure functions over an immutable ``AliasTable``.  Two headers are the same
field when they agree after lowercasing and dropping every character that
is not ``a-z`` or ``0-9`` ("Mobile No" == "MOBILE_NO" == "mobileno").

Used two ways:
    - ``build_header_map`` once per spreadsheet import, over the union of
      row keys, giving canonical key -> raw header;
    - ``get_field_value`` row by row for markup messages whose keys vary.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

from ledger_config.schema import AliasTable

_NOT_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_field_name(name: Any) -> str:
    return _NOT_ALNUM.sub("", str(name).lower())


def find_header(headers: Iterable[str], aliases: Iterable[str]) -> str | None:
    """
    Return the raw header matching the earliest alias, or None.

    Aliases are tried in order; for each, the first header (in the given
    order) whose normalized form matches wins.
    """
    by_normalized: dict[str, str] = {}
    for header in headers:
        by_normalized.setdefault(normalize_field_name(header), header)
    for alias in aliases:
        hit = by_normalized.get(normalize_field_name(alias))
        if hit is not None:
            return hit
    return None


def build_header_map(headers: Iterable[str], table: AliasTable) -> dict[str, str]:
    """Map each canonical key that has a matching header to that raw header."""
    headers = list(headers)
    header_map: dict[str, str] = {}
    for key in table.keys():
        hit = find_header(headers, table.aliases(key))
        if hit is not None:
            header_map[key] = hit
    return header_map


def union_headers(rows: Iterable[Mapping[str, Any]]) -> list[str]:
    """All keys seen across rows, in first-seen order."""
    seen: dict[str, None] = {}
    for row in rows:
        for key in row:
            seen.setdefault(key, None)
    return list(seen)


def get_field_value(row: Mapping[str, Any], aliases: Iterable[str]) -> Any:
    """Value of the first alias present in ``row`` (None if none match)."""
    header = find_header(row.keys(), aliases)
    if header is None:
        return None
    return row[header]


def mapped_value(row: Mapping[str, Any], header_map: Mapping[str, str], key: str) -> Any:
    """Value for canonical ``key`` through a prebuilt header map."""
    header = header_map.get(key)
    if header is None:
        return None
    return row.get(header)
