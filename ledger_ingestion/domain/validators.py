"""
Per-type row validators for staged (spreadsheet) imports.

Each validator takes the row's canonical values (after header mapping) and
returns a list of human-readable reasons; an empty list means the row is
accepted.  Pure: no I/O, no database lookups.  Duplicate and
customer-existence checks happen later, in the reconciler.
"""

from __future__ import annotations

from typing import Any, Callable

from ledger_ingestion.domain.normalizers import normalize_phone, parse_amount
from ledger_kernel.exceptions import InvalidAmountError

MISSING_NAME = "Missing Name"
MISSING_MOBILE = "Missing Mobile"
INVALID_MOBILE = "Invalid Mobile"
MISSING_PRODUCT_NAME = "Missing Product Name"
MISSING_INVOICE_FIELDS = "Missing Invoice No or Amount"
INVALID_AMOUNT = "Invalid Amount"


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _is_amount(value: Any) -> bool:
    try:
        parse_amount(value)
    except InvalidAmountError:
        return False
    return True


def validate_customer(values: dict[str, Any]) -> list[str]:
    reasons: list[str] = []
    if is_blank(values.get("name")):
        reasons.append(MISSING_NAME)
    phone = values.get("phone")
    if is_blank(phone):
        reasons.append(MISSING_MOBILE)
    elif len(normalize_phone(phone)) != 10:
        reasons.append(INVALID_MOBILE)
    return reasons


def validate_product(values: dict[str, Any]) -> list[str]:
    reasons: list[str] = []
    if is_blank(values.get("name")):
        reasons.append(MISSING_PRODUCT_NAME)
    for key in ("price", "stock"):
        if not is_blank(values.get(key)) and not _is_amount(values.get(key)):
            reasons.append(INVALID_AMOUNT)
            break
    return reasons


def validate_invoice(values: dict[str, Any]) -> list[str]:
    if is_blank(values.get("invoice_no")) or is_blank(values.get("total_amount")):
        return [MISSING_INVOICE_FIELDS]
    for key in (
        "total_amount",
        "paid_amount",
        "balance_amount",
        "quantity",
        "unit_price",
        "item_amount",
    ):
        if not _is_amount(values.get(key)):
            return [INVALID_AMOUNT]
    return []


ENTITY_VALIDATORS: dict[str, Callable[[dict[str, Any]], list[str]]] = {
    "customers": validate_customer,
    "products": validate_product,
    "invoices": validate_invoice,
}
