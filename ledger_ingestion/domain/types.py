"""
ledger_ingestion.domain.types -- Pure frozen dataclasses for the import system.

ZERO I/O.  Holds the status enums, the closed parser result variants
(MasterBatch | VoucherBatch), mapped-row types, per-row errors and the
result DTOs whose ``to_response()`` produces the outward JSON shapes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Union
from uuid import UUID

# =============================================================================
# Enums
# =============================================================================


class StagedImportType(str, Enum):
    """Declared type of a spreadsheet upload."""

    CUSTOMERS = "customers"
    PRODUCTS = "products"
    INVOICES = "invoices"


class StagingStatus(str, Enum):
    """Staging record lifecycle: pending -> processed, exactly once."""

    PENDING = "pending"
    PROCESSED = "processed"


class TallyImportType(str, Enum):
    """Classification of a markup batch."""

    MASTER = "MASTER"
    VOUCHER = "VOUCHER"


class AuditStatus(str, Enum):
    SUCCESS = "SUCCESS"
    PARTIAL = "PARTIAL"
    FAILED = "FAILED"


# =============================================================================
# Per-row errors
# =============================================================================

GENERAL_ROW = "GENERAL"


@dataclass(frozen=True)
class RowError:
    """
    One rejected or skipped row.

    ``row`` is the 1-based spreadsheet row number (header row included, so
    the first data row is 2) or ``"GENERAL"`` for file-level findings.
    """

    row: int | str
    error: str
    raw: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"row": self.row, "error": self.error}
        if self.raw is not None:
            out["raw"] = self.raw
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RowError:
        return cls(row=data["row"], error=data["error"], raw=data.get("raw"))


# =============================================================================
# Markup parser result (closed variant)
# =============================================================================


@dataclass(frozen=True)
class MasterBatch:
    """Markup batch holding group and ledger definitions."""

    groups: tuple[dict[str, Any], ...]
    ledgers: tuple[dict[str, Any], ...]
    message_count: int

    kind = TallyImportType.MASTER


@dataclass(frozen=True)
class VoucherBatch:
    """Markup batch holding transaction vouchers."""

    vouchers: tuple[dict[str, Any], ...]
    message_count: int

    kind = TallyImportType.VOUCHER


TallyBatch = Union[MasterBatch, VoucherBatch]


# =============================================================================
# Mapped rows
# =============================================================================


@dataclass(frozen=True)
class GroupDefinition:
    name: str
    parent: str | None = None


@dataclass(frozen=True)
class CustomerCandidate:
    """A (name, phone) pair offered to the identity resolver."""

    name: str
    phone: str
    external_id: str | None = None


@dataclass(frozen=True)
class MasterRows:
    groups: tuple[GroupDefinition, ...]
    customers: tuple[CustomerCandidate, ...]


@dataclass(frozen=True)
class VoucherRow:
    """
    One voucher reduced to canonical fields.

    phone and voucher_no are None when absent; amounts stay as raw values
    until the reconciler parses them.
    """

    phone: str | None
    name: str | None
    voucher_no: str | None
    voucher_type: str | None
    entry_date: date
    debit: Any = None
    credit: Any = None
    balance: Any = None
    amount: Any = None
    reference: str | None = None
    mode: str | None = None


@dataclass(frozen=True)
class CustomerRow:
    row: int
    name: str
    phone: str
    gstin: str | None = None
    email: str | None = None
    address: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class ProductRow:
    row: int
    name: str
    code: str | None
    price: str
    stock: str
    hsn: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class InvoiceItemRow:
    item_name: str
    quantity: str
    unit_price: str
    amount: str


@dataclass(frozen=True)
class InvoiceRow:
    row: int
    invoice_no: str
    customer_name: str | None
    invoice_date: date
    total_amount: str
    paid_amount: str
    balance_amount: str
    status: str | None = None
    item: InvoiceItemRow | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False)


MappedRow = Union[CustomerRow, ProductRow, InvoiceRow]


@dataclass(frozen=True)
class MappingResult:
    """Output of validate_and_map: accepted rows plus collected errors."""

    rows: tuple[MappedRow, ...]
    errors: tuple[RowError, ...]


# =============================================================================
# Results
# =============================================================================


@dataclass
class ImportStats:
    """Mutable counters filled in while a markup import runs."""

    total: int = 0
    processed: int = 0
    skipped_invalid: int = 0
    duplicates: int = 0
    errors: int = 0
    groups: int | None = None
    ledgers: int | None = None

    def to_response(self) -> dict[str, int]:
        out = {"total": self.total, "processed": self.processed}
        if self.groups is not None:
            out["groups"] = self.groups
        if self.ledgers is not None:
            out["ledgers"] = self.ledgers
        out.update(
            skippedInvalid=self.skipped_invalid,
            duplicates=self.duplicates,
            errors=self.errors,
        )
        return out


@dataclass(frozen=True)
class TallyImportResult:
    message: str
    import_type: TallyImportType
    session_id: str
    stats: ImportStats

    def to_response(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "type": self.import_type.value,
            "sessionId": self.session_id,
            "stats": self.stats.to_response(),
        }


@dataclass(frozen=True)
class StagingImport:
    """Immutable snapshot of a staging record."""

    import_id: UUID
    filename: str
    source: str
    import_type: StagedImportType
    status: StagingStatus
    raw_data: tuple[dict[str, Any], ...]
    error_log: tuple[RowError, ...] | None
    processed_count: int
    total_count: int
    created_at: datetime | None = None

    def to_response(self) -> dict[str, Any]:
        return {
            "id": str(self.import_id),
            "filename": self.filename,
            "source": self.source,
            "type": self.import_type.value,
            "status": self.status.value,
            "processedCount": self.processed_count,
            "totalCount": self.total_count,
            "errorLog": [e.to_dict() for e in self.error_log] if self.error_log is not None else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class StagedUploadResult:
    import_id: UUID
    total_rows: int
    preview: tuple[dict[str, Any], ...]

    def to_response(self) -> dict[str, Any]:
        return {
            "message": "File uploaded successfully. Ready for processing.",
            "importId": str(self.import_id),
            "totalRows": self.total_rows,
            "preview": list(self.preview),
        }


@dataclass(frozen=True)
class SyncResult:
    import_id: UUID
    processed: int
    errors: tuple[RowError, ...]

    def to_response(self) -> dict[str, Any]:
        return {
            "message": "Sync completed",
            "processed": self.processed,
            "errors": len(self.errors),
        }


@dataclass(frozen=True)
class ImportLogEntry:
    """One audit row for a markup import."""

    session_id: str
    import_type: TallyImportType
    status: AuditStatus
    total_rows: int
    processed_rows: int
    error_summary: str | None
    created_at: datetime | None = None


def error_response(exc: Exception, session_id: str | None = None) -> dict[str, Any]:
    """Outward error shape: ``{message, code, sessionId}``."""
    out: dict[str, Any] = {
        "message": str(exc),
        "code": getattr(exc, "code", "INTERNAL_ERROR"),
    }
    sid = session_id or getattr(exc, "session_id", None)
    if sid is not None:
        out["sessionId"] = sid
    return out

