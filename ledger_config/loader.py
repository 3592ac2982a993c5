"""
Configuration Loader (``ledger_config.loader``).

Responsibility
--------------
Loads the ingestion YAML file and parses it into the frozen
``ledger_config.schema`` dataclasses.  Runtime callers go through
``ledger_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Wrong shapes (alias list not a list, non-positive batch size)
  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from ledger_config.schema import AliasTable, ImportTypeDef, IngestionConfig, TallyDef


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; an empty file yields an empty dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_alias_table(data: dict[str, Any]) -> AliasTable:
    """Parse ``{canonical: [alias, ...]}`` preserving declaration order."""
    if not isinstance(data, dict):
        raise ValueError(f"Alias table must be a mapping, got {type(data).__name__}")
    for key, aliases in data.items():
        if not isinstance(aliases, list) or not all(isinstance(a, str) for a in aliases):
            raise ValueError(f"Aliases for {key!r} must be a list of strings")
    return AliasTable.from_mapping(data)


def parse_import_type(name: str, data: dict[str, Any]) -> ImportTypeDef:
    return ImportTypeDef(name=name, aliases=parse_alias_table(data["aliases"]))


def parse_tally(data: dict[str, Any]) -> TallyDef:
    return TallyDef(
        group_fields=parse_alias_table(data["group_fields"]),
        ledger_fields=parse_alias_table(data["ledger_fields"]),
        voucher_fields=parse_alias_table(data["voucher_fields"]),
        sales_voucher_types=tuple(data.get("sales_voucher_types", ("Sales",))),
        receipt_voucher_types=tuple(data.get("receipt_voucher_types", ("Receipt",))),
    )


def parse_config(data: dict[str, Any]) -> IngestionConfig:
    """
    Parse the root mapping into an ``IngestionConfig``.

    Raises:
        KeyError: if ``import_types`` or ``tally`` is missing.
        ValueError: on malformed values.
    """
    import_types = tuple(
        parse_import_type(name, type_data)
        for name, type_data in data["import_types"].items()
    )
    limits = data.get("limits", {})
    batch_size = int(limits.get("batch_size", 500))
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    stale = limits.get("lock_stale_after_seconds")

    return IngestionConfig(
        import_types=import_types,
        tally=parse_tally(data["tally"]),
        source_name=data.get("source_name", "vyapar"),
        tally_source_name=data.get("tally_source_name", "tally"),
        allowed_extensions=tuple(
            ext.lower() for ext in data.get("allowed_extensions", (".xml", ".xls", ".xlsx"))
        ),
        batch_size=batch_size,
        preview_size=int(limits.get("preview_size", 5)),
        history_limit=int(limits.get("history_limit", 10)),
        default_payment_mode=data.get("default_payment_mode", "cash"),
        payment_reference_prefix=data.get("payment_reference_prefix", "INV-"),
        lock_stale_after_seconds=int(stale) if stale is not None else None,
        checksum=compute_checksum(data),
    )


def load_config(path: Path) -> IngestionConfig:
    return parse_config(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
