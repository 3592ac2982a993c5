"""
Module: ledger_kernel.models.customer
Responsibility: Customer identity and Tally account-group definitions.
Architecture position: Kernel > Models.  Imports from db/base.py only.

Invariants enforced:
    - At most one Customer per normalized 10-digit phone (UNIQUE on phone).
      The identity resolver relies on this constraint to settle races
      between concurrent imports.
    - AccountGroup.name is UNIQUE; master imports upsert on it.
"""

from __future__ import annotations

from enum import Enum

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TimestampedBase
from ledger_kernel.domain.dtos import CustomerInfo


class CustomerSource(str, Enum):
    """Where a customer record was first created."""

    SYSTEM = "system"
    TALLY = "tally"
    VYAPAR = "vyapar"


class Customer(TimestampedBase):
    """A ledger customer, identified by phone."""

    __tablename__ = "customers"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(10), nullable=False, unique=True)
    source: Mapped[str] = mapped_column(
        String(20), nullable=False, default=CustomerSource.SYSTEM.value
    )
    external_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    gstin: Mapped[str | None] = mapped_column(String(20), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    def to_dto(self) -> CustomerInfo:
        return CustomerInfo(
            customer_id=self.id,
            name=self.name,
            phone=self.phone,
            source=self.source,
            external_id=self.external_id,
            gstin=self.gstin,
            email=self.email,
            address=self.address,
        )

    def __repr__(self) -> str:
        return f"<Customer {self.phone} {self.name!r}>"


class AccountGroup(TimestampedBase):
    """Tally account group (chart-of-accounts node) from a master import."""

    __tablename__ = "account_groups"

    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    parent: Mapped[str | None] = mapped_column(String(255), nullable=True)
