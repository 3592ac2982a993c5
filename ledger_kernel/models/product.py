"""Product catalog rows created by spreadsheet product imports."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TimestampedBase


class Product(TimestampedBase):
    """
    A stock item.  ``code`` is optional; when absent the name is the
    duplicate-detection key.
    """

    __tablename__ = "products"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    code: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    price: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    stock: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    hsn: Mapped[str | None] = mapped_column(String(20), nullable=True)
    source: Mapped[str] = mapped_column(String(20), nullable=False, default="system")
    external_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
