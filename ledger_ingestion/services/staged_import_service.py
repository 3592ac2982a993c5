"""
Staged import service: spreadsheet upload -> staging record -> sync.

Upload parses the spreadsheet and stores its raw rows as a pending staging
record; nothing touches the ledger yet.  Sync validates, maps and applies
the rows in one transaction, then marks the record processed.  A record is
applied at most once: sync locks the record row and re-checks its status,
so a repeated or concurrent sync finds it processed and does nothing.
"""

from __future__ import annotations

from pathlib import Path
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ledger_config import get_active_config
from ledger_config.schema import IngestionConfig
from ledger_ingestion.adapters import adapter_for_filename
from ledger_ingestion.adapters.base import SourceAdapter
from ledger_ingestion.adapters.xls_adapter import XlsSourceAdapter
from ledger_ingestion.adapters.xlsx_adapter import XlsxSourceAdapter
from ledger_ingestion.domain.types import (
    StagedImportType,
    StagedUploadResult,
    StagingImport,
    StagingStatus,
    SyncResult,
)
from ledger_ingestion.mapping.engine import validate_and_map
from ledger_ingestion.models.staging import StagingImportModel, to_json_safe
from ledger_ingestion.services.reconciler import LedgerReconciler
from ledger_kernel.db.engine import session_scope
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.exceptions import (
    EmptyFileError,
    StagingImportNotFoundError,
    StorageError,
    UnknownImportTypeError,
)
from ledger_kernel.logging_config import LogContext, get_logger

logger = get_logger("ingestion.staged_import")

DEFAULT_IMPORT_TYPE = StagedImportType.INVOICES.value


class StagedImportService:
    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Clock | None = None,
        config: IngestionConfig | None = None,
        adapters: dict[str, SourceAdapter] | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()
        self._adapters = adapters or {
            ".xls": XlsSourceAdapter(),
            ".xlsx": XlsxSourceAdapter(),
        }
        self._reconciler = LedgerReconciler(session_factory, self._config)

    def upload(
        self,
        source_path: Path | str,
        filename: str | None = None,
        import_type: str | None = None,
    ) -> StagedUploadResult:
        """
        Parse a spreadsheet and stage its rows as a pending import.

        Raises:
            UnknownImportTypeError: import_type is not configured.
            UnsupportedFileTypeError: not an .xls/.xlsx file.
            EmptyFileError: the sheet has no data rows.
        """
        source_path = Path(source_path)
        filename = filename or source_path.name
        import_type = import_type or DEFAULT_IMPORT_TYPE
        if self._config.import_type(import_type) is None:
            raise UnknownImportTypeError(import_type, self._config.import_type_names)

        adapter = adapter_for_filename(
            filename, allowed=self._config.allowed_extensions, adapters=self._adapters
        )
        rows = [to_json_safe(row) for row in adapter.read(source_path, {})]
        if not rows:
            raise EmptyFileError(filename)

        with session_scope(self._session_factory) as session:
            record = StagingImportModel(
                filename=filename,
                source=self._config.source_name,
                import_type=import_type,
                status=StagingStatus.PENDING.value,
                raw_data=rows,
                error_log=None,
                processed_count=0,
                total_count=len(rows),
                created_at=self._clock.now(),
            )
            session.add(record)
            session.flush()
            import_id = record.id

        logger.info(
            "staged_upload_created",
            extra={
                "import_id": str(import_id),
                "file_name": filename,
                "import_type": import_type,
                "total_rows": len(rows),
            },
        )
        return StagedUploadResult(
            import_id=import_id,
            total_rows=len(rows),
            preview=tuple(rows[: self._config.preview_size]),
        )

    def sync(self, import_id: UUID | str) -> SyncResult | None:
        """
        Apply a pending staging record to the ledger.

        Returns None when the record was already processed.

        Raises:
            StagingImportNotFoundError: no record with that id.
            StorageError: the transaction failed; the record stays pending.
        """
        import_id = _parse_import_id(import_id)
        with LogContext.bind(import_id=str(import_id), producer="ingestion.staged"):
            try:
                with session_scope(self._session_factory) as session:
                    record = session.scalars(
                        select(StagingImportModel)
                        .where(StagingImportModel.id == import_id)
                        .with_for_update()
                    ).first()
                    if record is None:
                        raise StagingImportNotFoundError(import_id)
                    if record.status == StagingStatus.PROCESSED.value:
                        logger.info("staged_sync_skipped", extra={"reason": "already_processed"})
                        return None
                    result = self._apply(session, record)
            except SQLAlchemyError as exc:
                logger.error("staged_sync_failed", exc_info=True)
                raise StorageError("staging sync", str(exc)) from exc

        logger.info(
            "staged_sync_completed",
            extra={"processed": result.processed, "errors": len(result.errors)},
        )
        return result

    def _apply(self, session: Session, record: StagingImportModel) -> SyncResult:
        import_type = StagedImportType(record.import_type)
        mapping = validate_and_map(
            record.raw_data,
            import_type,
            self._config.import_type(import_type.value),
            self._clock,
        )
        processed, apply_errors = self._reconciler.reconcile_staged(
            session, import_type, mapping.rows
        )
        errors = mapping.errors + tuple(apply_errors)

        record.status = StagingStatus.PROCESSED.value
        record.processed_count = processed
        record.set_errors(errors)
        session.flush()
        return SyncResult(import_id=record.id, processed=processed, errors=errors)

    def get_import(self, import_id: UUID | str) -> StagingImport:
        """
        Raises:
            StagingImportNotFoundError: no record with that id.
        """
        import_id = _parse_import_id(import_id)
        with session_scope(self._session_factory) as session:
            record = session.get(StagingImportModel, import_id)
            if record is None:
                raise StagingImportNotFoundError(import_id)
            return record.to_dto()

    def list_recent(self, limit: int | None = None) -> list[StagingImport]:
        """Most recent staging records first."""
        limit = limit or self._config.history_limit
        with session_scope(self._session_factory) as session:
            records = session.scalars(
                select(StagingImportModel)
                .order_by(StagingImportModel.created_at.desc())
                .limit(limit)
            ).all()
            return [r.to_dto() for r in records]


def _parse_import_id(import_id: UUID | str) -> UUID:
    if isinstance(import_id, UUID):
        return import_id
    try:
        return UUID(str(import_id))
    except ValueError:
        raise StagingImportNotFoundError(import_id) from None
