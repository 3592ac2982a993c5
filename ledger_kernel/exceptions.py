"""
Typed exception hierarchy for the ledger kernel and import pipeline.

Every error has a TYPED class (catch by type, not by message), a class-level
``code`` (machine-readable, API-safe) and an ``http_status`` hint for the
outer HTTP surface.  Context travels as attributes, never parsed out of the
message string.

    LedgerSyncError (base)
    |
    +-- IngestionError
    |   +-- MalformedInputError          MALFORMED_INPUT
    |   +-- UnsupportedFileTypeError     UNSUPPORTED_FILE_TYPE
    |   +-- EmptyFileError               EMPTY_FILE
    |   +-- UnknownImportTypeError       UNKNOWN_IMPORT_TYPE
    |   +-- InvalidAmountError           INVALID_AMOUNT
    |   +-- RowValidationError           ROW_VALIDATION_FAILED
    |   +-- DuplicateKeyError            DUPLICATE_KEY
    |   +-- DependencyNotSatisfiedError  MASTERS_REQUIRED
    |   +-- StagingImportNotFoundError   STAGING_IMPORT_NOT_FOUND
    |
    +-- ConcurrencyError
    |   +-- ConcurrencyRejectedError     IMPORT_IN_PROGRESS
    |
    +-- StorageError                     STORAGE_ERROR

Validation problems found while mapping rows are RowError values, never
exceptions.  RowValidationError and DuplicateKeyError are raised per row
while a staged row is applied; the reconciler catches them at the row
savepoint and records a RowError, so they never leave an import.  Every
other error here aborts the whole import.

Handling pattern::

    try:
        result = service.import_file(path, name)
    except ConcurrencyRejectedError as e:
        return error_response(e), e.http_status     # 429
    except DependencyNotSatisfiedError as e:
        return error_response(e), e.http_status     # 400, MASTERS_REQUIRED
"""


class LedgerSyncError(Exception):
    """
    Base exception for all ledger sync errors.

    All subclasses carry a ``code`` class attribute and an ``http_status``.
    ``session_id`` is filled in by the upload surface when known.
    """

    code: str = "LEDGER_SYNC_ERROR"
    http_status: int = 500
    session_id: str | None = None


# Ingestion errors


class IngestionError(LedgerSyncError):
    """Base exception for import failures that abort the whole import."""

    code: str = "INGESTION_ERROR"


class MalformedInputError(IngestionError):
    """Markup is not parseable or lacks the expected envelope/messages."""

    code: str = "MALFORMED_INPUT"

    def __init__(self, reason: str, filename: str | None = None):
        self.reason = reason
        self.filename = filename
        super().__init__(reason)


class UnsupportedFileTypeError(IngestionError):
    """File extension is outside the accepted set."""

    code: str = "UNSUPPORTED_FILE_TYPE"
    http_status: int = 400

    def __init__(self, filename: str, allowed: tuple[str, ...]):
        self.filename = filename
        self.allowed = allowed
        super().__init__(
            f"Unsupported file type for {filename!r}; allowed: {', '.join(allowed)}"
        )


class EmptyFileError(IngestionError):
    """Spreadsheet upload contains no data rows."""

    code: str = "EMPTY_FILE"
    http_status: int = 400

    def __init__(self, filename: str):
        self.filename = filename
        super().__init__("File is empty")


class UnknownImportTypeError(IngestionError):
    """Staged import type is not one of the configured types."""

    code: str = "UNKNOWN_IMPORT_TYPE"
    http_status: int = 400

    def __init__(self, import_type: str, allowed: tuple[str, ...]):
        self.import_type = import_type
        self.allowed = allowed
        super().__init__(
            f"Invalid import type {import_type!r}. Must be one of: {', '.join(allowed)}"
        )


class InvalidAmountError(IngestionError):
    """A monetary cell could not be read as a decimal amount."""

    code: str = "INVALID_AMOUNT"
    http_status: int = 400

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid amount: {value!r}")


class RowValidationError(IngestionError):
    """A staged row was rejected while being applied; caught per row as a RowError."""

    code: str = "ROW_VALIDATION_FAILED"
    http_status: int = 400

    def __init__(self, row: object, reason: str):
        self.row = row
        self.reason = reason
        super().__init__(reason)


class DuplicateKeyError(IngestionError):
    """A staged row's natural key already exists; caught per row as a skip RowError."""

    code: str = "DUPLICATE_KEY"
    http_status: int = 409

    def __init__(self, entity: str, key: str, message: str):
        self.entity = entity
        self.key = key
        super().__init__(message)


class DependencyNotSatisfiedError(IngestionError):
    """Vouchers uploaded before any successful master import."""

    code: str = "MASTERS_REQUIRED"
    http_status: int = 400

    def __init__(self, message: str = "Please upload Tally Masters XML first before importing vouchers."):
        super().__init__(message)


class StagingImportNotFoundError(IngestionError):
    """No staging record exists for the given id."""

    code: str = "STAGING_IMPORT_NOT_FOUND"
    http_status: int = 404

    def __init__(self, import_id: object):
        self.import_id = str(import_id)
        super().__init__(f"Import not found: {import_id}")


# Concurrency errors


class ConcurrencyError(LedgerSyncError):
    """Base exception for concurrency conflicts."""

    code: str = "CONCURRENCY_ERROR"
    http_status: int = 409


class ConcurrencyRejectedError(ConcurrencyError):
    """Another import holds the import lock."""

    code: str = "IMPORT_IN_PROGRESS"
    http_status: int = 429

    def __init__(self, message: str = "An import is already in progress. Please try again later."):
        super().__init__(message)


# Storage errors


class StorageError(LedgerSyncError):
    """The database rejected or failed a write; the transaction was rolled back."""

    code: str = "STORAGE_ERROR"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} failed: {detail}")
