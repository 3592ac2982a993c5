"""
Module: ledger_kernel.models.invoice
Responsibility: Invoices imported from spreadsheet exports, with line items.
Architecture position: Kernel > Models.

Invariants enforced:
    - (invoice_no, customer_id, source) is UNIQUE.  This natural key is what
      makes a second sync of the same file report duplicates instead of
      writing new invoices.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TimestampedBase, UUIDString
from ledger_kernel.domain.dtos import InvoiceInfo, InvoiceItemInfo


class InvoiceStatus(str, Enum):
    PAID = "paid"
    UNPAID = "unpaid"
    PARTIAL = "partial"


class Invoice(TimestampedBase):
    """Customer invoice keyed by (invoice_no, customer, source)."""

    __tablename__ = "invoices"

    __table_args__ = (
        UniqueConstraint(
            "invoice_no", "customer_id", "source", name="uq_invoices_natural_key"
        ),
    )

    invoice_no: Mapped[str] = mapped_column(String(100), nullable=False)
    customer_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("customers.id"), nullable=False, index=True
    )
    invoice_date: Mapped[date] = mapped_column(nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)
    paid_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    balance_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    source: Mapped[str] = mapped_column(String(20), nullable=False)
    external_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    items: Mapped[list["InvoiceItem"]] = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.created_at",
    )

    def to_dto(self) -> InvoiceInfo:
        return InvoiceInfo(
            entry_id=self.id,
            customer_id=self.customer_id,
            invoice_no=self.invoice_no,
            invoice_date=self.invoice_date,
            total_amount=self.total_amount,
            paid_amount=self.paid_amount,
            balance_amount=self.balance_amount,
            status=self.status,
            source=self.source,
            items=tuple(item.to_dto() for item in self.items),
        )


class InvoiceItem(TimestampedBase):
    """One line of an invoice."""

    __tablename__ = "invoice_items"

    invoice_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("1"))
    unit_price: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    invoice: Mapped[Invoice] = relationship("Invoice", back_populates="items")

    def to_dto(self) -> InvoiceItemInfo:
        return InvoiceItemInfo(
            item_name=self.item_name,
            quantity=self.quantity,
            unit_price=self.unit_price,
            amount=self.amount,
        )
