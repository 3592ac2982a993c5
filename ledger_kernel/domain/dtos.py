"""
Read-side DTOs for the canonical ledger.

Selectors return these frozen dataclasses, never ORM instances, so callers
outside the kernel (dashboards, statement renderers) hold no session state.
All money fields are Decimal.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True)
class CustomerInfo:
    """Customer identity as resolved by phone."""

    customer_id: UUID
    name: str
    phone: str
    source: str
    external_id: str | None = None
    gstin: str | None = None
    email: str | None = None
    address: str | None = None


@dataclass(frozen=True)
class LedgerLine:
    """One ledger entry (voucher) on a customer's account."""

    entry_id: UUID
    customer_id: UUID
    entry_date: date
    debit: Decimal
    credit: Decimal
    balance: Decimal
    voucher_no: str | None
    voucher_type: str | None = None


@dataclass(frozen=True)
class BillInfo:
    entry_id: UUID
    customer_id: UUID
    bill_no: str
    bill_date: date
    amount: Decimal


@dataclass(frozen=True)
class PaymentInfo:
    entry_id: UUID
    customer_id: UUID
    payment_date: date
    amount: Decimal
    mode: str
    reference_no: str | None
    source: str


@dataclass(frozen=True)
class InvoiceItemInfo:
    item_name: str
    quantity: Decimal
    unit_price: Decimal
    amount: Decimal


@dataclass(frozen=True)
class InvoiceInfo:
    """Invoice with its line items."""

    entry_id: UUID
    customer_id: UUID
    invoice_no: str
    invoice_date: date
    total_amount: Decimal
    paid_amount: Decimal
    balance_amount: Decimal
    status: str
    source: str
    items: tuple[InvoiceItemInfo, ...] = ()


@dataclass(frozen=True)
class CustomerSummary:
    """
    Account position for one customer.

    total_purchases = bills + invoices; total_paid = payments;
    current_balance = total_purchases - total_paid.
    """

    customer: CustomerInfo
    total_bills: Decimal
    total_invoices: Decimal
    total_paid: Decimal

    @property
    def total_purchases(self) -> Decimal:
        return self.total_bills + self.total_invoices

    @property
    def current_balance(self) -> Decimal:
        return self.total_purchases - self.total_paid
