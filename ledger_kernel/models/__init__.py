"""Canonical ledger ORM models."""

from ledger_kernel.models.customer import AccountGroup, Customer, CustomerSource
from ledger_kernel.models.invoice import Invoice, InvoiceItem, InvoiceStatus
from ledger_kernel.models.ledger import Bill, LedgerEntry, Payment
from ledger_kernel.models.product import Product

__all__ = [
    "AccountGroup",
    "Bill",
    "Customer",
    "CustomerSource",
    "Invoice",
    "InvoiceItem",
    "InvoiceStatus",
    "LedgerEntry",
    "Payment",
    "Product",
]
