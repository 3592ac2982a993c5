"""
Ledger reconciler: applies mapped rows to the ledger store.

Two paths:

* Markup path (``reconcile_masters`` / ``reconcile_vouchers``).  Rows are
  written in chunks of ``config.batch_size``; every chunk commits in its own
  transaction.  A chunk the database rejects is rolled back, its row count
  added to ``stats.errors``, and the import moves on to the next chunk.
  Vouchers are upserted by voucher number, so re-importing a file updates
  rows in place and never adds ledger entries.

* Staged path (``reconcile_staged``).  Runs inside the caller's transaction
  with one savepoint per row; a rejected row becomes a RowError and the rest
  of the file still commits.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Sequence
from uuid import UUID, uuid4

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ledger_config.schema import IngestionConfig
from ledger_ingestion.domain.normalizers import ZERO, parse_amount
from ledger_ingestion.domain.types import (
    CustomerRow,
    GroupDefinition,
    ImportStats,
    InvoiceRow,
    MappedRow,
    MasterRows,
    ProductRow,
    RowError,
    StagedImportType,
    VoucherRow,
)
from ledger_ingestion.services.identity_resolver import IdentityResolver, chunked
from ledger_kernel.db.engine import dialect_insert, session_scope
from ledger_kernel.exceptions import (
    DuplicateKeyError,
    InvalidAmountError,
    RowValidationError,
    StorageError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.customer import AccountGroup, Customer
from ledger_kernel.models.invoice import Invoice, InvoiceItem, InvoiceStatus
from ledger_kernel.models.ledger import Bill, LedgerEntry, Payment
from ledger_kernel.models.product import Product

logger = get_logger("ingestion.reconciler")

DUPLICATE_CUSTOMER = "Duplicate Customer (Mobile)"
DUPLICATE_PRODUCT = "Duplicate Product"
DUPLICATE_INVOICE = "Duplicate Invoice (Skipped)"
MISSING_PARTY_NAME = "Missing Party Name"


@dataclass(frozen=True)
class _PreparedVoucher:
    customer_id: UUID
    voucher_no: str
    voucher_type: str | None
    entry_date: date
    debit: Decimal
    credit: Decimal
    balance: Decimal
    amount: Decimal
    mode: str | None


def invoice_status(text: str | None, paid: Decimal, balance: Decimal) -> str:
    """Explicit status text wins when recognizable; otherwise derive from amounts."""
    if text:
        normalized = text.strip().lower()
        if normalized in {s.value for s in InvoiceStatus}:
            return normalized
        if "partial" in normalized:
            return InvoiceStatus.PARTIAL.value
    if balance > 0:
        return InvoiceStatus.UNPAID.value if paid == 0 else InvoiceStatus.PARTIAL.value
    return InvoiceStatus.PAID.value


def _name_key(name: str) -> str:
    return name.strip().casefold()


def _voucher_kind(voucher: _PreparedVoucher) -> str:
    return (voucher.voucher_type or "").strip().lower()


class LedgerReconciler:
    def __init__(
        self,
        session_factory: sessionmaker[Session],
        config: IngestionConfig,
    ):
        self._session_factory = session_factory
        self._config = config

    # ------------------------------------------------------------------
    # Markup: masters
    # ------------------------------------------------------------------

    def reconcile_masters(self, rows: MasterRows, stats: ImportStats) -> None:
        """Upsert account groups by name and customers by phone."""
        stats.groups = 0
        stats.ledgers = 0
        size = self._config.batch_size

        for chunk in chunked(list(rows.groups), size):
            try:
                with session_scope(self._session_factory) as session:
                    self._write_groups(session, chunk)
            except SQLAlchemyError:
                logger.error("group_chunk_failed", extra={"rows": len(chunk)}, exc_info=True)
                stats.errors += len(chunk)
                continue
            stats.groups += len(chunk)

        for chunk in chunked(list(rows.customers), size):
            try:
                with session_scope(self._session_factory) as session:
                    IdentityResolver(session, size).resolve(chunk, self._config.tally_source_name)
            except SQLAlchemyError:
                logger.error("ledger_chunk_failed", extra={"rows": len(chunk)}, exc_info=True)
                stats.errors += len(chunk)
                continue
            stats.ledgers += len(chunk)

        stats.processed = stats.groups + stats.ledgers

    def _write_groups(self, session: Session, chunk: Sequence[GroupDefinition]) -> None:
        unique = {g.name: g for g in chunk}
        stmt = dialect_insert(session, AccountGroup.__table__).values(
            [{"id": uuid4(), "name": g.name, "parent": g.parent} for g in unique.values()]
        )
        session.execute(
            stmt.on_conflict_do_update(
                index_elements=["name"],
                set_={"parent": stmt.excluded.parent, "updated_at": func.now()},
            )
        )

    # ------------------------------------------------------------------
    # Markup: vouchers
    # ------------------------------------------------------------------

    def reconcile_vouchers(self, rows: Sequence[VoucherRow], stats: ImportStats) -> None:
        """
        Post vouchers for known customers.

        Rows without a phone or voucher number, with an unknown customer or
        with an unreadable amount count as ``skipped_invalid``.  When a file
        repeats a voucher number the last occurrence is applied and earlier
        ones count as duplicates; vouchers already on file are updated in
        place and also count as duplicates.
        """
        try:
            with session_scope(self._session_factory) as session:
                resolver = IdentityResolver(session, self._config.batch_size)
                customer_ids = resolver.resolve_existing(r.phone for r in rows if r.phone)
        except SQLAlchemyError as exc:
            raise StorageError("voucher customer lookup", str(exc)) from exc

        prepared: dict[str, _PreparedVoucher] = {}
        for row in rows:
            if not row.phone or not row.voucher_no:
                stats.skipped_invalid += 1
                continue
            customer_id = customer_ids.get(row.phone)
            if customer_id is None:
                stats.skipped_invalid += 1
                continue
            try:
                voucher = _PreparedVoucher(
                    customer_id=customer_id,
                    voucher_no=row.voucher_no,
                    voucher_type=row.voucher_type,
                    entry_date=row.entry_date,
                    debit=abs(parse_amount(row.debit)),
                    credit=abs(parse_amount(row.credit)),
                    balance=parse_amount(row.balance),
                    amount=abs(parse_amount(row.amount)),
                    mode=row.mode,
                )
            except InvalidAmountError as exc:
                logger.info(
                    "voucher_skipped",
                    extra={"voucher_no": row.voucher_no, "reason": str(exc)},
                )
                stats.skipped_invalid += 1
                continue
            if row.voucher_no in prepared:
                stats.duplicates += 1
                del prepared[row.voucher_no]
            prepared[row.voucher_no] = voucher

        for chunk in chunked(list(prepared.values()), self._config.batch_size):
            try:
                with session_scope(self._session_factory) as session:
                    existing = self._write_voucher_chunk(session, chunk)
            except SQLAlchemyError:
                logger.error("voucher_chunk_failed", extra={"rows": len(chunk)}, exc_info=True)
                stats.errors += len(chunk)
                continue
            stats.duplicates += existing
            stats.processed += len(chunk) - existing

    def _write_voucher_chunk(self, session: Session, chunk: Sequence[_PreparedVoucher]) -> int:
        """Upsert one chunk; returns how many vouchers were already on file."""
        numbers = [v.voucher_no for v in chunk]
        existing = set(
            session.scalars(
                select(LedgerEntry.voucher_no).where(LedgerEntry.voucher_no.in_(numbers))
            ).all()
        )

        stmt = dialect_insert(session, LedgerEntry.__table__).values(
            [
                {
                    "id": uuid4(),
                    "customer_id": v.customer_id,
                    "entry_date": v.entry_date,
                    "debit": v.debit,
                    "credit": v.credit,
                    "balance": v.balance,
                    "voucher_no": v.voucher_no,
                    "voucher_type": v.voucher_type,
                }
                for v in chunk
            ]
        )
        session.execute(
            stmt.on_conflict_do_update(
                index_elements=["voucher_no"],
                set_={
                    "customer_id": stmt.excluded.customer_id,
                    "entry_date": stmt.excluded.entry_date,
                    "debit": stmt.excluded.debit,
                    "credit": stmt.excluded.credit,
                    "balance": stmt.excluded.balance,
                    "voucher_type": stmt.excluded.voucher_type,
                    "updated_at": func.now(),
                },
            )
        )

        sales = {t.lower() for t in self._config.tally.sales_voucher_types}
        receipts = {t.lower() for t in self._config.tally.receipt_voucher_types}
        self._write_bills(session, [v for v in chunk if _voucher_kind(v) in sales])
        self._write_payments(session, [v for v in chunk if _voucher_kind(v) in receipts])
        return len(existing)

    def _write_bills(self, session: Session, vouchers: Sequence[_PreparedVoucher]) -> None:
        if not vouchers:
            return
        stmt = dialect_insert(session, Bill.__table__).values(
            [
                {
                    "id": uuid4(),
                    "customer_id": v.customer_id,
                    "bill_no": v.voucher_no,
                    "bill_date": v.entry_date,
                    "amount": v.amount or max(v.debit, v.credit),
                }
                for v in vouchers
            ]
        )
        session.execute(
            stmt.on_conflict_do_update(
                index_elements=["bill_no"],
                set_={
                    "customer_id": stmt.excluded.customer_id,
                    "bill_date": stmt.excluded.bill_date,
                    "amount": stmt.excluded.amount,
                    "updated_at": func.now(),
                },
            )
        )

    def _write_payments(self, session: Session, vouchers: Sequence[_PreparedVoucher]) -> None:
        if not vouchers:
            return
        recorded = set(
            session.scalars(
                select(Payment.reference_no).where(
                    Payment.reference_no.in_([v.voucher_no for v in vouchers])
                )
            ).all()
        )
        for v in vouchers:
            if v.voucher_no in recorded:
                continue
            session.add(
                Payment(
                    customer_id=v.customer_id,
                    payment_date=v.entry_date,
                    amount=v.amount or max(v.debit, v.credit),
                    mode=v.mode or self._config.default_payment_mode,
                    reference_no=v.voucher_no,
                    source=self._config.tally_source_name,
                )
            )
        session.flush()

    # ------------------------------------------------------------------
    # Staged spreadsheets
    # ------------------------------------------------------------------

    def reconcile_staged(
        self,
        session: Session,
        import_type: StagedImportType,
        rows: Sequence[MappedRow],
    ) -> tuple[int, list[RowError]]:
        """
        Apply accepted staged rows inside ``session``'s transaction.

        Returns (rows applied, rows rejected).
        """
        apply_row = {
            StagedImportType.CUSTOMERS: self._apply_customer,
            StagedImportType.PRODUCTS: self._apply_product,
            StagedImportType.INVOICES: self._apply_invoice,
        }[import_type]
        context = self._staged_context(session, import_type, rows)

        processed = 0
        errors: list[RowError] = []
        for row in rows:
            try:
                with session.begin_nested():
                    apply_row(session, row, context)
            except (RowValidationError, DuplicateKeyError) as exc:
                errors.append(RowError(row=row.row, error=str(exc), raw=row.raw))
                continue
            except IntegrityError as exc:
                logger.warning(
                    "staged_row_conflict",
                    extra={"row": row.row, "error": str(exc.orig)},
                )
                errors.append(RowError(row=row.row, error=_conflict_message(import_type), raw=row.raw))
                continue
            processed += 1

        logger.info(
            "staged_rows_applied",
            extra={"import_type": import_type.value, "processed": processed, "errors": len(errors)},
        )
        return processed, errors

    def _staged_context(
        self,
        session: Session,
        import_type: StagedImportType,
        rows: Sequence[MappedRow],
    ) -> dict:
        if import_type is StagedImportType.CUSTOMERS:
            return {"phones": set(IdentityResolver(session).resolve_existing(r.phone for r in rows))}

        if import_type is StagedImportType.PRODUCTS:
            codes = set(session.scalars(select(Product.code).where(Product.code.is_not(None))).all())
            names = {
                _name_key(n)
                for n in session.scalars(select(Product.name)).all()
            }
            return {"codes": codes, "names": names}

        wanted = {_name_key(r.customer_name) for r in rows if r.customer_name}
        customers: dict[str, UUID] = {}
        if wanted:
            # Matched in Python so stored and uploaded names share _name_key.
            rows_by_age = session.execute(
                select(Customer.name, Customer.id).order_by(Customer.created_at)
            )
            for name, customer_id in rows_by_age:
                key = _name_key(name)
                if key in wanted:
                    customers.setdefault(key, customer_id)
        existing = set(
            session.execute(
                select(Invoice.invoice_no, Invoice.customer_id).where(
                    Invoice.source == self._config.source_name,
                    Invoice.invoice_no.in_(sorted({r.invoice_no for r in rows})),
                )
            ).all()
        )
        return {"customers": customers, "existing": existing, "created": {}}

    def _apply_customer(self, session: Session, row: CustomerRow, context: dict) -> None:
        phones: set[str] = context["phones"]
        if row.phone in phones:
            raise DuplicateKeyError("customer", row.phone, DUPLICATE_CUSTOMER)
        session.add(
            Customer(
                name=row.name,
                phone=row.phone,
                source=self._config.source_name,
                gstin=row.gstin,
                email=row.email,
                address=row.address,
            )
        )
        session.flush()
        phones.add(row.phone)

    def _apply_product(self, session: Session, row: ProductRow, context: dict) -> None:
        if row.code:
            if row.code in context["codes"]:
                raise DuplicateKeyError("product", row.code, DUPLICATE_PRODUCT)
        elif _name_key(row.name) in context["names"]:
            raise DuplicateKeyError("product", row.name, DUPLICATE_PRODUCT)
        session.add(
            Product(
                name=row.name,
                code=row.code,
                price=Decimal(row.price),
                stock=Decimal(row.stock),
                hsn=row.hsn,
                source=self._config.source_name,
            )
        )
        session.flush()
        if row.code:
            context["codes"].add(row.code)
        else:
            context["names"].add(_name_key(row.name))

    def _apply_invoice(self, session: Session, row: InvoiceRow, context: dict) -> None:
        if not row.customer_name:
            raise RowValidationError(row.row, MISSING_PARTY_NAME)
        customer_id = context["customers"].get(_name_key(row.customer_name))
        if customer_id is None:
            raise RowValidationError(row.row, f"Customer not found: {row.customer_name}")

        key = (row.invoice_no, customer_id)
        created: dict[tuple[str, UUID], Invoice] = context["created"]
        if key in created:
            # Only an item-bearing row may extend an invoice created in this sync.
            if row.item is None:
                raise DuplicateKeyError("invoice", row.invoice_no, DUPLICATE_INVOICE)
            self._add_item(session, created[key], row)
            return
        if key in context["existing"]:
            raise DuplicateKeyError("invoice", row.invoice_no, DUPLICATE_INVOICE)

        total = Decimal(row.total_amount)
        paid = Decimal(row.paid_amount)
        balance = Decimal(row.balance_amount)
        invoice = Invoice(
            invoice_no=row.invoice_no,
            customer_id=customer_id,
            invoice_date=row.invoice_date,
            total_amount=total,
            paid_amount=paid,
            balance_amount=balance,
            status=invoice_status(row.status, paid, balance),
            source=self._config.source_name,
        )
        session.add(invoice)
        session.flush()
        if row.item is not None:
            self._add_item(session, invoice, row)
        if paid > ZERO:
            self._add_invoice_payment(session, invoice, paid)
        created[key] = invoice

    def _add_item(self, session: Session, invoice: Invoice, row: InvoiceRow) -> None:
        session.add(
            InvoiceItem(
                invoice_id=invoice.id,
                item_name=row.item.item_name,
                quantity=Decimal(row.item.quantity),
                unit_price=Decimal(row.item.unit_price),
                amount=Decimal(row.item.amount),
            )
        )
        session.flush()

    def _add_invoice_payment(self, session: Session, invoice: Invoice, paid: Decimal) -> None:
        reference = f"{self._config.payment_reference_prefix}{invoice.invoice_no}"
        already = session.scalars(
            select(Payment.id).where(
                Payment.customer_id == invoice.customer_id,
                Payment.reference_no == reference,
            )
        ).first()
        if already is not None:
            return
        session.add(
            Payment(
                customer_id=invoice.customer_id,
                payment_date=invoice.invoice_date,
                amount=paid,
                mode=self._config.default_payment_mode,
                reference_no=reference,
                source=self._config.source_name,
            )
        )
        session.flush()


def _conflict_message(import_type: StagedImportType) -> str:
    return {
        StagedImportType.CUSTOMERS: DUPLICATE_CUSTOMER,
        StagedImportType.PRODUCTS: DUPLICATE_PRODUCT,
        StagedImportType.INVOICES: DUPLICATE_INVOICE,
    }[import_type]
