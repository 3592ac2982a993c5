"""
Module: ledger_kernel.selectors.ledger_selector
Responsibility: Customer-facing read API over the canonical ledger: customer
    lookup, per-customer ledger / bills / payments / invoices, and the
    account summary used by dashboards and statement renderers.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Pure reads; no mutation.
    - Summary totals are summed in Python over Decimal values, so the result
      is exact on every backend.
    - current_balance = (bills + invoices) - payments.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from ledger_kernel.domain.dtos import (
    BillInfo,
    CustomerInfo,
    CustomerSummary,
    InvoiceInfo,
    LedgerLine,
    PaymentInfo,
)
from ledger_kernel.models.customer import Customer
from ledger_kernel.models.invoice import Invoice
from ledger_kernel.models.ledger import Bill, LedgerEntry, Payment
from ledger_kernel.selectors.base import BaseSelector

DEFAULT_HISTORY_LIMIT = 500


class LedgerSelector(BaseSelector[Customer]):
    """Read-only access to customers and their financial history."""

    def get_customer(self, customer_id: UUID) -> CustomerInfo | None:
        customer = self.session.get(Customer, customer_id)
        return customer.to_dto() if customer is not None else None

    def get_customer_by_phone(self, phone: str) -> CustomerInfo | None:
        customer = self.session.scalars(
            select(Customer).where(Customer.phone == phone)
        ).first()
        return customer.to_dto() if customer is not None else None

    def list_customers(self, limit: int = DEFAULT_HISTORY_LIMIT) -> list[CustomerInfo]:
        stmt = select(Customer).order_by(Customer.name).limit(limit)
        return [c.to_dto() for c in self.session.scalars(stmt)]

    def ledger_for_customer(
        self, customer_id: UUID, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> list[LedgerLine]:
        """Ledger entries, newest first."""
        stmt = (
            select(LedgerEntry)
            .where(LedgerEntry.customer_id == customer_id)
            .order_by(LedgerEntry.entry_date.desc(), LedgerEntry.voucher_no.desc())
            .limit(limit)
        )
        return [e.to_dto() for e in self.session.scalars(stmt)]

    def bills_for_customer(
        self, customer_id: UUID, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> list[BillInfo]:
        stmt = (
            select(Bill)
            .where(Bill.customer_id == customer_id)
            .order_by(Bill.bill_date.desc())
            .limit(limit)
        )
        return [b.to_dto() for b in self.session.scalars(stmt)]

    def payments_for_customer(
        self, customer_id: UUID, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> list[PaymentInfo]:
        stmt = (
            select(Payment)
            .where(Payment.customer_id == customer_id)
            .order_by(Payment.payment_date.desc())
            .limit(limit)
        )
        return [p.to_dto() for p in self.session.scalars(stmt)]

    def invoices_for_customer(
        self, customer_id: UUID, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> list[InvoiceInfo]:
        stmt = (
            select(Invoice)
            .options(selectinload(Invoice.items))
            .where(Invoice.customer_id == customer_id)
            .order_by(Invoice.invoice_date.desc())
            .limit(limit)
        )
        return [i.to_dto() for i in self.session.scalars(stmt)]

    def customer_summary(self, customer_id: UUID) -> CustomerSummary | None:
        """
        Totals for one customer, or None if the customer does not exist.

        Bills and invoices both count as purchases; payments count as paid.
        """
        customer = self.session.get(Customer, customer_id)
        if customer is None:
            return None

        total_bills = _sum(
            self.session.scalars(select(Bill.amount).where(Bill.customer_id == customer_id))
        )
        total_invoices = _sum(
            self.session.scalars(
                select(Invoice.total_amount).where(Invoice.customer_id == customer_id)
            )
        )
        total_paid = _sum(
            self.session.scalars(
                select(Payment.amount).where(Payment.customer_id == customer_id)
            )
        )
        return CustomerSummary(
            customer=customer.to_dto(),
            total_bills=total_bills,
            total_invoices=total_invoices,
            total_paid=total_paid,
        )


def _sum(values) -> Decimal:
    return sum((v for v in values if v is not None), Decimal("0"))
