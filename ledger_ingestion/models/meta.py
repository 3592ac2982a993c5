"""
Import flags and audit log ORM models.

ImportMetaModel holds named boolean flags (``is_importing``,
``first_import_done``); rows are re-read on every check, never cached.
``value_changed_at`` records when a flag last flipped, which the lock uses
for optional stale-lock takeover.

ImportLogModel holds one summary row per Tally import.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TimestampedBase

if TYPE_CHECKING:
    from ledger_ingestion.domain.types import ImportLogEntry

IS_IMPORTING = "is_importing"
FIRST_IMPORT_DONE = "first_import_done"


class ImportMetaModel(TimestampedBase):
    """A process-wide boolean flag, persisted."""

    __tablename__ = "import_meta"

    key: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    value: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    value_changed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )


class ImportLogModel(TimestampedBase):
    """Audit summary of one Tally import."""

    __tablename__ = "import_logs"

    __table_args__ = (
        Index("ix_import_logs_created_at", "created_at"),
    )

    session_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    import_type: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    total_rows: Mapped[int] = mapped_column(default=0, nullable=False)
    processed_rows: Mapped[int] = mapped_column(default=0, nullable=False)
    error_summary: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dto(self) -> ImportLogEntry:
        from ledger_ingestion.domain.types import AuditStatus, ImportLogEntry, TallyImportType

        return ImportLogEntry(
            session_id=self.session_id,
            import_type=TallyImportType(self.import_type),
            status=AuditStatus(self.status),
            total_rows=self.total_rows,
            processed_rows=self.processed_rows,
            error_summary=self.error_summary,
            created_at=self.created_at,
        )
