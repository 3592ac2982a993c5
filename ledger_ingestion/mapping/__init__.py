"""Header normalization and row mapping."""

from ledger_ingestion.mapping.engine import extract_masters, map_vouchers, validate_and_map
from ledger_ingestion.mapping.headers import (
    build_header_map,
    find_header,
    get_field_value,
    normalize_field_name,
)

__all__ = [
    "build_header_map",
    "extract_masters",
    "find_header",
    "get_field_value",
    "map_vouchers",
    "normalize_field_name",
    "validate_and_map",
]
