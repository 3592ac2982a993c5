"""Ingestion ORM models: staging records, import flags and the audit log."""

from ledger_ingestion.models.meta import ImportLogModel, ImportMetaModel
from ledger_ingestion.models.staging import StagingImportModel

__all__ = ["ImportLogModel", "ImportMetaModel", "StagingImportModel"]
