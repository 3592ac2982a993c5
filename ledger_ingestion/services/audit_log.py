"""Audit log: one ImportLogModel row per markup import."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from ledger_ingestion.domain.types import (
    AuditStatus,
    ImportLogEntry,
    ImportStats,
    TallyImportType,
)
from ledger_ingestion.models.meta import ImportLogModel
from ledger_kernel.db.engine import session_scope
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.logging_config import get_logger

logger = get_logger("ingestion.audit_log")

DEFAULT_RECENT_LIMIT = 10


def audit_status(stats: ImportStats) -> AuditStatus:
    if stats.errors == 0:
        return AuditStatus.SUCCESS
    if stats.processed > 0:
        return AuditStatus.PARTIAL
    return AuditStatus.FAILED


def error_summary(import_type: TallyImportType, stats: ImportStats) -> str | None:
    if stats.errors == 0:
        return None
    noun = "master" if import_type is TallyImportType.MASTER else "voucher"
    return f"Failed to process {stats.errors} {noun} records."


class AuditLog:
    def __init__(self, session_factory: sessionmaker[Session], clock: Clock | None = None):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()

    def record(
        self,
        session_id: str,
        import_type: TallyImportType,
        stats: ImportStats,
    ) -> ImportLogEntry:
        """Write the summary row for one import and return it."""
        status = audit_status(stats)
        with session_scope(self._session_factory) as session:
            row = ImportLogModel(
                session_id=session_id,
                import_type=import_type.value,
                status=status.value,
                total_rows=stats.total,
                processed_rows=stats.processed,
                error_summary=error_summary(import_type, stats),
                created_at=self._clock.now(),
            )
            session.add(row)
            session.flush()
            entry = row.to_dto()
        logger.info(
            "import_logged",
            extra={"import_type": import_type.value, "status": status.value},
        )
        return entry

    def recent(self, limit: int = DEFAULT_RECENT_LIMIT) -> list[ImportLogEntry]:
        """Most recent imports first."""
        with session_scope(self._session_factory) as session:
            rows = session.scalars(
                select(ImportLogModel)
                .order_by(ImportLogModel.created_at.desc())
                .limit(limit)
            ).all()
            return [r.to_dto() for r in rows]
