"""
Staging ORM model for spreadsheet imports.

Contract:
    StagingImportModel persists the raw parsed rows of one upload (JSON) with
    its declared type, status (pending -> processed) and, after sync, the
    processed count and error log.  Raw rows are stored JSON-safe: dates as
    ISO strings, Decimals as strings.

Architecture: ledger_ingestion/models. Imports from ledger_kernel.db.base only.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import JSON, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TimestampedBase

if TYPE_CHECKING:
    from ledger_ingestion.domain.types import RowError, StagingImport


def to_json_safe(obj: Any) -> Any:
    """Convert values to JSON-serializable form (Decimal -> str, etc.)."""
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, dict):
        return {str(k): to_json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_json_safe(v) for v in obj]
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    if isinstance(obj, UUID):
        return str(obj)
    return obj


def _errors_to_json(errors: tuple[RowError, ...] | None) -> list[dict] | None:
    if not errors:
        return None
    return [to_json_safe(e.to_dict()) for e in errors]


class StagingImportModel(TimestampedBase):
    """One uploaded spreadsheet awaiting (or past) sync."""

    __tablename__ = "staging_imports"

    __table_args__ = (
        Index("ix_staging_imports_created_at", "created_at"),
    )

    filename: Mapped[str] = mapped_column(String(500), nullable=False)
    source: Mapped[str] = mapped_column(String(20), nullable=False)
    import_type: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    raw_data: Mapped[list] = mapped_column(JSON, nullable=False)
    error_log: Mapped[list | None] = mapped_column(JSON(none_as_null=True), nullable=True)
    processed_count: Mapped[int] = mapped_column(default=0, nullable=False)
    total_count: Mapped[int] = mapped_column(default=0, nullable=False)

    def set_errors(self, errors: tuple[RowError, ...] | None) -> None:
        self.error_log = _errors_to_json(errors)

    def to_dto(self) -> StagingImport:
        from ledger_ingestion.domain.types import (
            RowError,
            StagedImportType,
            StagingImport,
            StagingStatus,
        )

        return StagingImport(
            import_id=self.id,
            filename=self.filename,
            source=self.source,
            import_type=StagedImportType(self.import_type),
            status=StagingStatus(self.status),
            raw_data=tuple(self.raw_data or ()),
            error_log=(
                tuple(RowError.from_dict(e) for e in self.error_log)
                if self.error_log is not None
                else None
            ),
            processed_count=self.processed_count,
            total_count=self.total_count,
            created_at=self.created_at,
        )
