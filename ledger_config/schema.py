"""
Configuration schema (``ledger_config.schema``).

Frozen dataclasses describing the alias tables and import rules.  Parsed
from YAML by ``ledger_config.loader``; consumed read-only by the header
normalizer, the mapper and the services.  Nothing here performs I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class AliasTable:
    """
    Immutable mapping of canonical key -> ordered accepted spellings.

    Order matters twice: keys are resolved in declaration order, and within
    a key the first alias present in a row wins.
    """

    entries: tuple[tuple[str, tuple[str, ...]], ...] = ()

    @classmethod
    def from_mapping(cls, mapping: dict[str, list[str] | tuple[str, ...]]) -> AliasTable:
        return cls(entries=tuple((key, tuple(aliases)) for key, aliases in mapping.items()))

    def aliases(self, key: str) -> tuple[str, ...]:
        for name, aliases in self.entries:
            if name == key:
                return aliases
        return ()

    def keys(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.entries)

    def __contains__(self, key: object) -> bool:
        return key in self.keys()


@dataclass(frozen=True)
class ImportTypeDef:
    """One staged (spreadsheet) import type: customers, products or invoices."""

    name: str
    aliases: AliasTable


@dataclass(frozen=True)
class TallyDef:
    """Tag spellings used to read Tally master and voucher messages."""

    group_fields: AliasTable
    ledger_fields: AliasTable
    voucher_fields: AliasTable
    sales_voucher_types: tuple[str, ...] = ("Sales",)
    receipt_voucher_types: tuple[str, ...] = ("Receipt",)


@dataclass(frozen=True)
class IngestionConfig:
    """
    Root configuration object.

    batch_size: rows per independently committed chunk on the markup path.
    preview_size: rows echoed back from a staged upload.
    history_limit: default length of the recent-imports listing.
    lock_stale_after_seconds: when set, an ``is_importing`` flag older than
        this may be taken over by a new import; ``None`` disables takeover.
    """

    import_types: tuple[ImportTypeDef, ...]
    tally: TallyDef
    source_name: str = "vyapar"
    tally_source_name: str = "tally"
    allowed_extensions: tuple[str, ...] = (".xml", ".xls", ".xlsx")
    batch_size: int = 500
    preview_size: int = 5
    history_limit: int = 10
    default_payment_mode: str = "cash"
    payment_reference_prefix: str = "INV-"
    lock_stale_after_seconds: int | None = None
    checksum: str = field(default="", compare=False)

    def import_type(self, name: str) -> ImportTypeDef | None:
        for type_def in self.import_types:
            if type_def.name == name:
                return type_def
        return None

    @property
    def import_type_names(self) -> tuple[str, ...]:
        return tuple(t.name for t in self.import_types)
