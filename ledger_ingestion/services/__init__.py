"""Import workflows and the stateful pieces they share (lock, audit, identity)."""

from ledger_ingestion.services.audit_log import AuditLog
from ledger_ingestion.services.identity_resolver import IdentityResolver
from ledger_ingestion.services.import_lock import ImportGate, ImportLock
from ledger_ingestion.services.reconciler import LedgerReconciler
from ledger_ingestion.services.staged_import_service import StagedImportService
from ledger_ingestion.services.tally_import_service import TallyImportService

__all__ = [
    "AuditLog",
    "IdentityResolver",
    "ImportGate",
    "ImportLock",
    "LedgerReconciler",
    "StagedImportService",
    "TallyImportService",
]
