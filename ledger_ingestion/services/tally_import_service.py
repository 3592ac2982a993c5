"""
Tally import service: markup upload -> lock -> parse -> reconcile -> audit.

Every call gets a fresh session id, bound into the log context and attached
to any LedgerSyncError that escapes.  The import lock is taken before the
file is parsed; a second concurrent import is rejected without reading its
file.  Vouchers are refused until a master import has completed cleanly.
"""

from __future__ import annotations

import time
from pathlib import Path
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ledger_config import get_active_config
from ledger_config.schema import IngestionConfig
from ledger_ingestion.adapters import adapter_for_filename
from ledger_ingestion.adapters.tally_xml_adapter import TallyXmlAdapter, parse_tally_file
from ledger_ingestion.domain.types import (
    ImportStats,
    MasterBatch,
    TallyImportResult,
    TallyImportType,
    VoucherBatch,
)
from ledger_ingestion.mapping.engine import extract_masters, map_vouchers
from ledger_ingestion.services.audit_log import AuditLog
from ledger_ingestion.services.import_lock import ImportGate, ImportLock
from ledger_ingestion.services.reconciler import LedgerReconciler
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.exceptions import (
    DependencyNotSatisfiedError,
    LedgerSyncError,
    StorageError,
)
from ledger_kernel.logging_config import LogContext, get_logger

logger = get_logger("ingestion.tally_import")

MASTERS_OK = "Masters imported successfully"
MASTERS_PARTIAL = "Masters import completed with partial errors"
VOUCHERS_OK = "Vouchers processed successfully"
VOUCHERS_PARTIAL = "Voucher import completed with partial errors"


class TallyImportService:
    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Clock | None = None,
        config: IngestionConfig | None = None,
        gate: ImportGate | None = None,
        audit: AuditLog | None = None,
        adapter: TallyXmlAdapter | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()
        self._gate = gate or ImportLock(
            session_factory,
            clock=self._clock,
            stale_after_seconds=self._config.lock_stale_after_seconds,
        )
        self._audit = audit or AuditLog(session_factory, self._clock)
        self._adapter = adapter or TallyXmlAdapter()
        self._reconciler = LedgerReconciler(session_factory, self._config)

    def import_file(self, source_path: Path | str, filename: str | None = None) -> TallyImportResult:
        """
        Import one Tally XML export.

        Raises:
            UnsupportedFileTypeError: not an .xml file.
            ConcurrencyRejectedError: another import is running.
            MalformedInputError: unparseable markup or no known messages.
            DependencyNotSatisfiedError: vouchers before any master import.
            StorageError: the customer lookup or the audit row write failed.
        """
        source_path = Path(source_path)
        filename = filename or source_path.name
        session_id = str(uuid4())

        with LogContext.bind(session_id=session_id, producer="ingestion.tally"):
            try:
                adapter_for_filename(
                    filename,
                    allowed=self._config.allowed_extensions,
                    adapters={".xml": self._adapter},
                )
                with self._gate.hold():
                    return self._run(source_path, filename, session_id)
            except LedgerSyncError as exc:
                exc.session_id = session_id
                logger.warning(
                    "tally_import_rejected",
                    extra={"file_name": filename, "error_code": exc.code, "error_msg": str(exc)},
                )
                raise

    def _run(self, source_path: Path, filename: str, session_id: str) -> TallyImportResult:
        started = time.monotonic()
        batch = parse_tally_file(source_path, self._adapter)
        logger.info(
            "tally_file_parsed",
            extra={"file_name": filename, "kind": batch.kind.value, "messages": batch.message_count},
        )

        if isinstance(batch, VoucherBatch) and not self._gate.is_masters_done():
            raise DependencyNotSatisfiedError()

        stats = ImportStats(total=batch.message_count)
        if isinstance(batch, MasterBatch):
            self._reconciler.reconcile_masters(extract_masters(batch, self._config.tally), stats)
            if stats.processed > 0 and stats.errors == 0:
                self._gate.mark_masters_done()
            message = MASTERS_OK if stats.errors == 0 else MASTERS_PARTIAL
        else:
            rows = map_vouchers(batch, self._config.tally, self._clock)
            self._reconciler.reconcile_vouchers(rows, stats)
            message = VOUCHERS_OK if stats.errors == 0 else VOUCHERS_PARTIAL

        try:
            self._audit.record(session_id, batch.kind, stats)
        except SQLAlchemyError as exc:
            raise StorageError("import audit", str(exc)) from exc

        logger.info(
            "tally_import_completed",
            extra={
                "file_name": filename,
                "kind": batch.kind.value,
                **stats.to_response(),
                "duration_ms": round((time.monotonic() - started) * 1000, 2),
            },
        )
        return TallyImportResult(
            message=message,
            import_type=TallyImportType(batch.kind),
            session_id=session_id,
            stats=stats,
        )
