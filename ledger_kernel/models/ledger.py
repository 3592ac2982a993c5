"""
Module: ledger_kernel.models.ledger
Responsibility: Voucher-level ledger entries plus the bills and payments
    derived from them.
Architecture position: Kernel > Models.

Invariants enforced:
    - LedgerEntry.voucher_no is UNIQUE when present.  Re-importing the same
      voucher updates the entry in place (upsert-by-voucher), so the number
      of ledger rows never grows on re-upload.
    - Bill.bill_no is UNIQUE; one bill per sales voucher.
    - Payment.reference_no is indexed but not unique.  Duplicate payments
      are avoided by lookup-before-insert in the reconciler.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TimestampedBase, UUIDString
from ledger_kernel.domain.dtos import BillInfo, LedgerLine, PaymentInfo


class LedgerEntry(TimestampedBase):
    """One voucher posted to a customer's ledger."""

    __tablename__ = "ledger_entries"

    __table_args__ = (
        Index("ix_ledger_entries_customer_date", "customer_id", "entry_date"),
    )

    customer_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("customers.id"), nullable=False
    )
    entry_date: Mapped[date] = mapped_column(nullable=False)
    debit: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    credit: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    balance: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    voucher_no: Mapped[str | None] = mapped_column(String(100), nullable=True, unique=True)
    voucher_type: Mapped[str | None] = mapped_column(String(50), nullable=True)

    def to_dto(self) -> LedgerLine:
        return LedgerLine(
            entry_id=self.id,
            customer_id=self.customer_id,
            entry_date=self.entry_date,
            debit=self.debit,
            credit=self.credit,
            balance=self.balance,
            voucher_no=self.voucher_no,
            voucher_type=self.voucher_type,
        )


class Bill(TimestampedBase):
    """Sales bill, one per sales voucher."""

    __tablename__ = "bills"

    customer_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("customers.id"), nullable=False, index=True
    )
    bill_no: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    bill_date: Mapped[date] = mapped_column(nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)

    def to_dto(self) -> BillInfo:
        return BillInfo(
            entry_id=self.id,
            customer_id=self.customer_id,
            bill_no=self.bill_no,
            bill_date=self.bill_date,
            amount=self.amount,
        )


class Payment(TimestampedBase):
    """Money received from a customer."""

    __tablename__ = "payments"

    customer_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("customers.id"), nullable=False, index=True
    )
    payment_date: Mapped[date] = mapped_column(nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    mode: Mapped[str] = mapped_column(String(50), nullable=False)
    reference_no: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    source: Mapped[str] = mapped_column(String(20), nullable=False, default="system")

    def to_dto(self) -> PaymentInfo:
        return PaymentInfo(
            entry_id=self.id,
            customer_id=self.customer_id,
            payment_date=self.payment_date,
            amount=self.amount,
            mode=self.mode,
            reference_no=self.reference_no,
            source=self.source,
        )
