"""Tests for the mapping engine: staged rows, Tally masters and vouchers."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from ledger_ingestion.adapters.tally_xml_adapter import classify_messages
from ledger_ingestion.domain.types import (
    GENERAL_ROW,
    CustomerRow,
    InvoiceRow,
    MasterBatch,
    ProductRow,
    StagedImportType,
    VoucherBatch,
)
from ledger_ingestion.mapping.engine import (
    GENERAL_VALIDATION_MESSAGE,
    extract_masters,
    map_vouchers,
    validate_and_map,
)
from ledger_kernel.domain.clock import DeterministicClock

CLOCK = DeterministicClock(datetime(2024, 6, 30, tzinfo=timezone.utc))


def _map(config, import_type: StagedImportType, rows):
    return validate_and_map(rows, import_type, config.import_type(import_type.value), CLOCK)


class TestCustomers:
    def test_one_valid_one_missing_name(self, config):
        rows = [
            {"Party Name": "Ravi", "Mobile": "9876543210"},
            {"Party Name": "", "Mobile": "1234567890"},
        ]
        result = _map(config, StagedImportType.CUSTOMERS, rows)

        assert len(result.rows) == 1
        assert result.rows[0] == CustomerRow(row=2, name="Ravi", phone="9876543210")
        assert len(result.errors) == 1
        assert result.errors[0].row == 3
        assert result.errors[0].error == "Missing Name"
        assert result.errors[0].raw == rows[1]

    def test_phone_normalized_and_length_checked(self, config):
        rows = [
            {"Customer Name": "Asha", "Phone Number": "+91 91234 56789"},
            {"Customer Name": "Short", "Phone Number": "12345"},
            {"Customer Name": "None", "Phone Number": ""},
        ]
        result = _map(config, StagedImportType.CUSTOMERS, rows)

        assert [r.phone for r in result.rows] == ["9123456789"]
        assert [(e.row, e.error) for e in result.errors] == [
            (3, "Invalid Mobile"),
            (4, "Missing Mobile"),
        ]

    def test_all_reasons_joined(self, config):
        result = _map(config, StagedImportType.CUSTOMERS, [{"Name": "", "Mobile": "", "GSTIN": "29ABCDE1234F1Z5"}])
        assert result.errors[0].error == "Missing Name, Missing Mobile"

    def test_header_mismatch_flags_general_error(self, config):
        rows = [{"Client": "Ravi", "Cell": "9876543210"}, {"Client": "Asha", "Cell": "9123456789"}]
        result = _map(config, StagedImportType.CUSTOMERS, rows)

        assert result.rows == ()
        assert len(result.errors) == 1
        assert result.errors[0].row == GENERAL_ROW
        assert result.errors[0].error == GENERAL_VALIDATION_MESSAGE

    def test_blank_rows_skipped_without_error(self, config):
        rows = [{"Party Name": "Ravi", "Mobile": "9876543210"}, {"Party Name": "", "Mobile": ""}]
        result = _map(config, StagedImportType.CUSTOMERS, rows)
        assert len(result.rows) == 1 and result.errors == ()

    def test_empty_input_has_no_general_error(self, config):
        result = _map(config, StagedImportType.CUSTOMERS, [])
        assert result.rows == () and result.errors == ()


class TestProducts:
    def test_price_and_stock_default_to_zero(self, config):
        result = _map(config, StagedImportType.PRODUCTS, [{"Item Name": "Tea 500g", "Item Code": "T500"}])
        assert result.rows == (
            ProductRow(row=2, name="Tea 500g", code="T500", price="0", stock="0"),
        )

    def test_numeric_cells_become_decimal_strings(self, config):
        result = _map(
            config,
            StagedImportType.PRODUCTS,
            [{"Item Name": "Sugar", "Sales Price": 42.5, "Current Stock": 10, "HSN": 1701}],
        )
        row = result.rows[0]
        assert row.price == "42.5" and row.stock == "10" and row.hsn == "1701"

    def test_bad_price_rejected(self, config):
        result = _map(config, StagedImportType.PRODUCTS, [{"Item Name": "Salt", "Sales Price": "cheap"}])
        assert result.rows == ()
        assert result.errors[0].error == "Invalid Amount"


class TestInvoices:
    def test_invoice_row_mapped(self, config):
        rows = [
            {
                "Invoice No": 101,
                "Date": "15/03/2024",
                "Party Name": "Ravi Kumar",
                "Total": "1,000.00",
                "Received": 400,
                "Balance": 600,
                "Payment Status": "Partial",
            }
        ]
        result = _map(config, StagedImportType.INVOICES, rows)

        assert result.errors == ()
        row = result.rows[0]
        assert isinstance(row, InvoiceRow)
        assert row.invoice_no == "101"
        assert row.invoice_date == date(2024, 3, 15)
        assert row.customer_name == "Ravi Kumar"
        assert (row.total_amount, row.paid_amount, row.balance_amount) == ("1000.00", "400", "600")
        assert row.status == "Partial"
        assert row.item is None

    def test_missing_amounts_are_zero_and_bad_date_is_today(self, config):
        rows = [{"Bill No": "B-7", "Party Name": "Ravi", "Grand Total": 250, "Bill Date": "soon"}]
        row = _map(config, StagedImportType.INVOICES, rows).rows[0]
        assert row.paid_amount == "0" and row.balance_amount == "0"
        assert row.invoice_date == CLOCK.today()

    def test_line_item_columns(self, config):
        rows = [{"Invoice No": "9", "Party Name": "Ravi", "Total": 300, "Item Name": "Tea", "Qty": 3, "Price/Unit": 100}]
        item = _map(config, StagedImportType.INVOICES, rows).rows[0].item
        assert item.item_name == "Tea"
        assert Decimal(item.quantity) == 3 and Decimal(item.unit_price) == 100
        assert Decimal(item.amount) == 300

    @pytest.mark.parametrize(
        "row",
        [
            {"Party Name": "Ravi", "Total": 100},
            {"Invoice No": "1", "Party Name": "Ravi"},
            {"Invoice No": "1", "Party Name": "Ravi", "Total": ""},
        ],
    )
    def test_missing_invoice_no_or_total(self, config, row):
        result = _map(config, StagedImportType.INVOICES, [row])
        assert result.errors[0].error == "Missing Invoice No or Amount"

    def test_unreadable_amount_rejected(self, config):
        result = _map(config, StagedImportType.INVOICES, [{"Invoice No": "1", "Total": "12..0"}])
        assert result.errors[0].error == "Invalid Amount"


class TestMasters:
    def _batch(self) -> MasterBatch:
        messages = [
            {"GROUP": {"@NAME": "Sundry Debtors", "PARENT": "Current Assets"}},
            {"LEDGER": {"@NAME": "Ravi Traders", "LEDGERMOBILE": "+91 98765 43210", "GUID": "g-1"}},
            {"LEDGER": {"@NAME": "Cash", "PARENT": "Cash-in-Hand"}},
            {"LEDGER": {"@NAME": "Short", "LEDGERMOBILE": "12345"}},
        ]
        batch = classify_messages(messages)
        assert isinstance(batch, MasterBatch)
        return batch

    def test_groups_and_customer_candidates(self, config):
        rows = extract_masters(self._batch(), config.tally)
        assert [(g.name, g.parent) for g in rows.groups] == [("Sundry Debtors", "Current Assets")]
        assert [(c.name, c.phone, c.external_id) for c in rows.customers] == [
            ("Ravi Traders", "9876543210", "g-1"),
        ]


class TestVouchers:
    def test_voucher_fields_resolved_by_alias(self, config):
        batch = VoucherBatch(
            vouchers=(
                {
                    "@VCHTYPE": "Sales",
                    "DATE": "20240401",
                    "VOUCHERTYPENAME": "Sales",
                    "VOUCHERNUMBER": "S-1",
                    "PARTYLEDGERNAME": "Ravi Traders",
                    "PARTYMOBILE": "+91 98765 43210",
                    "DEBIT": "1500.00",
                    "CREDIT": "0",
                    "BALANCE": "1500.00",
                },
            ),
            message_count=1,
        )
        (row,) = map_vouchers(batch, config.tally, CLOCK)
        assert row.phone == "9876543210"
        assert row.name == "Ravi Traders"
        assert row.voucher_no == "S-1"
        assert row.voucher_type == "Sales"
        assert row.entry_date == date(2024, 4, 1)
        assert (row.debit, row.credit, row.balance) == ("1500.00", "0", "1500.00")

    def test_amounts_fall_back_to_ledger_entries(self, config):
        batch = VoucherBatch(
            vouchers=(
                {
                    "VOUCHERNUMBER": "R-1",
                    "PARTYMOBILE": "9876543210",
                    "ALLLEDGERENTRIES.LIST": [
                        {"LEDGERNAME": "Ravi Traders", "AMOUNT": "-700.00"},
                        {"LEDGERNAME": "Cash", "AMOUNT": "700.00"},
                    ],
                },
            ),
            message_count=1,
        )
        (row,) = map_vouchers(batch, config.tally, CLOCK)
        assert (row.debit, row.credit) == ("-700.00", "700.00")

    def test_missing_phone_is_none(self, config):
        batch = VoucherBatch(vouchers=({"VOUCHERNUMBER": "J-1"},), message_count=1)
        (row,) = map_vouchers(batch, config.tally, CLOCK)
        assert row.phone is None
        assert row.entry_date == CLOCK.today()
