"""Tests for import DTO response shapes and audit status rules."""

from datetime import datetime, timezone
from uuid import uuid4

from ledger_ingestion.domain.types import (
    AuditStatus,
    ImportStats,
    RowError,
    StagedImportType,
    StagingImport,
    StagingStatus,
    TallyImportResult,
    TallyImportType,
    error_response,
)
from ledger_ingestion.services.audit_log import audit_status, error_summary
from ledger_kernel.exceptions import ConcurrencyRejectedError


class TestImportStats:
    def test_voucher_shape_has_no_group_counts(self):
        stats = ImportStats(total=5, processed=3, skipped_invalid=1, duplicates=1)
        assert stats.to_response() == {
            "total": 5,
            "processed": 3,
            "skippedInvalid": 1,
            "duplicates": 1,
            "errors": 0,
        }

    def test_master_shape(self):
        stats = ImportStats(total=4, processed=3, groups=1, ledgers=2)
        assert list(stats.to_response()) == [
            "total",
            "processed",
            "groups",
            "ledgers",
            "skippedInvalid",
            "duplicates",
            "errors",
        ]

    def test_tally_result(self):
        result = TallyImportResult(
            message="Vouchers processed successfully",
            import_type=TallyImportType.VOUCHER,
            session_id="s-1",
            stats=ImportStats(total=1, processed=1),
        )
        response = result.to_response()
        assert response["type"] == "VOUCHER"
        assert response["sessionId"] == "s-1"
        assert response["stats"]["processed"] == 1


class TestRowError:
    def test_raw_omitted_when_absent(self):
        assert RowError(row="GENERAL", error="x").to_dict() == {"row": "GENERAL", "error": "x"}

    def test_dict_round_trip(self):
        error = RowError(row=3, error="Missing Name", raw={"Name": ""})
        assert RowError.from_dict(error.to_dict()) == error


class TestStagingImport:
    def test_response(self):
        import_id = uuid4()
        record = StagingImport(
            import_id=import_id,
            filename="parties.xlsx",
            source="vyapar",
            import_type=StagedImportType.CUSTOMERS,
            status=StagingStatus.PROCESSED,
            raw_data=({"Name": "Ravi"},),
            error_log=(RowError(row=2, error="Missing Mobile"),),
            processed_count=0,
            total_count=1,
            created_at=datetime(2024, 4, 1, tzinfo=timezone.utc),
        )
        response = record.to_response()
        assert response["id"] == str(import_id)
        assert response["status"] == "processed"
        assert response["errorLog"] == [{"row": 2, "error": "Missing Mobile"}]
        assert response["createdAt"] == "2024-04-01T00:00:00+00:00"


class TestAuditRules:
    def test_status(self):
        assert audit_status(ImportStats(processed=0, errors=0)) is AuditStatus.SUCCESS
        assert audit_status(ImportStats(processed=2, errors=1)) is AuditStatus.PARTIAL
        assert audit_status(ImportStats(processed=0, errors=3)) is AuditStatus.FAILED

    def test_error_summary(self):
        assert error_summary(TallyImportType.MASTER, ImportStats()) is None
        assert (
            error_summary(TallyImportType.MASTER, ImportStats(errors=2))
            == "Failed to process 2 master records."
        )


def test_error_response_carries_session_id():
    exc = ConcurrencyRejectedError()
    exc.session_id = "abc"
    assert error_response(exc) == {
        "message": "An import is already in progress. Please try again later.",
        "code": "IMPORT_IN_PROGRESS",
        "sessionId": "abc",
    }
    assert "sessionId" not in error_response(ValueError("x"))
    assert error_response(ValueError("x"))["code"] == "INTERNAL_ERROR"
