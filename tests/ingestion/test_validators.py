"""Tests for the per-type staged row validators."""

import pytest

from ledger_ingestion.domain.validators import (
    ENTITY_VALIDATORS,
    INVALID_AMOUNT,
    INVALID_MOBILE,
    MISSING_INVOICE_FIELDS,
    MISSING_MOBILE,
    MISSING_NAME,
    MISSING_PRODUCT_NAME,
    is_blank,
    validate_customer,
    validate_invoice,
    validate_product,
)


class TestIsBlank:
    @pytest.mark.parametrize("value", [None, "", "   ", "\t"])
    def test_blank(self, value):
        assert is_blank(value)

    @pytest.mark.parametrize("value", ["x", 0, 0.0, False])
    def test_not_blank(self, value):
        assert not is_blank(value)


class TestValidateCustomer:
    def test_valid(self):
        assert validate_customer({"name": "Ravi", "phone": "+91 98765 43210"}) == []

    def test_missing_name(self):
        assert validate_customer({"name": " ", "phone": "9876543210"}) == [MISSING_NAME]

    def test_missing_mobile(self):
        assert validate_customer({"name": "Ravi"}) == [MISSING_MOBILE]

    def test_short_mobile(self):
        assert validate_customer({"name": "Ravi", "phone": "98765"}) == [INVALID_MOBILE]

    def test_both_reasons_in_order(self):
        assert validate_customer({}) == [MISSING_NAME, MISSING_MOBILE]


class TestValidateProduct:
    def test_name_only_is_enough(self):
        assert validate_product({"name": "Tea"}) == []

    def test_missing_name(self):
        assert validate_product({"code": "T1"}) == [MISSING_PRODUCT_NAME]

    def test_bad_stock_reported_once(self):
        assert validate_product({"name": "Tea", "price": "x", "stock": "y"}) == [INVALID_AMOUNT]


class TestValidateInvoice:
    def test_valid(self):
        values = {"invoice_no": "101", "total_amount": "1,000", "paid_amount": "400"}
        assert validate_invoice(values) == []

    def test_missing_total(self):
        assert validate_invoice({"invoice_no": "101"}) == [MISSING_INVOICE_FIELDS]

    def test_bad_quantity(self):
        values = {"invoice_no": "101", "total_amount": "10", "quantity": "two"}
        assert validate_invoice(values) == [INVALID_AMOUNT]


def test_registry_covers_every_staged_type():
    assert set(ENTITY_VALIDATORS) == {"customers", "products", "invoices"}
