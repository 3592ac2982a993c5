"""
Mapping engine: raw rows and messages -> canonical row types.

Pure functions (the clock is only read for the date fallback):
    validate_and_map  -- staged spreadsheet rows, per import type
    extract_masters   -- MasterBatch -> groups + customer candidates
    map_vouchers      -- VoucherBatch -> VoucherRow list

Rows failing validation become RowError values and never reach the
reconciler.  A file with input rows but neither accepted rows nor errors
gets a single GENERAL error (symptom of a total header mismatch).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping, Sequence

from ledger_config.schema import ImportTypeDef, TallyDef
from ledger_ingestion.adapters.tally_xml_adapter import as_records, element_text
from ledger_ingestion.domain.normalizers import normalize_phone, parse_amount, parse_date
from ledger_ingestion.domain.types import (
    GENERAL_ROW,
    CustomerCandidate,
    CustomerRow,
    GroupDefinition,
    InvoiceItemRow,
    InvoiceRow,
    MappedRow,
    MappingResult,
    MasterBatch,
    MasterRows,
    ProductRow,
    RowError,
    StagedImportType,
    VoucherBatch,
    VoucherRow,
)
from ledger_ingestion.domain.validators import ENTITY_VALIDATORS, is_blank
from ledger_ingestion.mapping.headers import (
    build_header_map,
    get_field_value,
    mapped_value,
    union_headers,
)
from ledger_kernel.domain.clock import Clock

HEADER_ROW_OFFSET = 2
GENERAL_VALIDATION_MESSAGE = (
    "All rows failed validation. Check file headers against requirements."
)


def _str(value: Any) -> str | None:
    """Cell value as stripped text; blank -> None; integral numbers lose '.0'."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def _amount_str(value: Any, default: str = "0") -> str:
    if is_blank(value):
        return default
    return str(parse_amount(value))


# ---------------------------------------------------------------------------
# Staged spreadsheet rows
# ---------------------------------------------------------------------------


def _map_customer(row_no: int, values: dict[str, Any], raw: dict[str, Any], clock: Clock) -> CustomerRow:
    return CustomerRow(
        row=row_no,
        name=_str(values.get("name")) or "",
        phone=normalize_phone(values.get("phone")),
        gstin=_str(values.get("gstin")),
        email=_str(values.get("email")),
        address=_str(values.get("address")),
        raw=raw,
    )


def _map_product(row_no: int, values: dict[str, Any], raw: dict[str, Any], clock: Clock) -> ProductRow:
    return ProductRow(
        row=row_no,
        name=_str(values.get("name")) or "",
        code=_str(values.get("code")),
        price=_amount_str(values.get("price")),
        stock=_amount_str(values.get("stock")),
        hsn=_str(values.get("hsn")),
        raw=raw,
    )


def _map_invoice_item(values: dict[str, Any]) -> InvoiceItemRow | None:
    item_name = _str(values.get("item_name"))
    if item_name is None:
        return None
    quantity = parse_amount(values.get("quantity")) if not is_blank(values.get("quantity")) else Decimal("1")
    unit_price = parse_amount(values.get("unit_price"))
    if is_blank(values.get("item_amount")):
        amount = quantity * unit_price
    else:
        amount = parse_amount(values.get("item_amount"))
    return InvoiceItemRow(
        item_name=item_name,
        quantity=str(quantity),
        unit_price=str(unit_price),
        amount=str(amount),
    )


def _map_invoice(row_no: int, values: dict[str, Any], raw: dict[str, Any], clock: Clock) -> InvoiceRow:
    return InvoiceRow(
        row=row_no,
        invoice_no=_str(values.get("invoice_no")) or "",
        customer_name=_str(values.get("customer_name")),
        invoice_date=parse_date(values.get("date"), clock),
        total_amount=_amount_str(values.get("total_amount")),
        paid_amount=_amount_str(values.get("paid_amount")),
        balance_amount=_amount_str(values.get("balance_amount")),
        status=_str(values.get("status")),
        item=_map_invoice_item(values),
        raw=raw,
    )


_ROW_MAPPERS = {
    StagedImportType.CUSTOMERS: _map_customer,
    StagedImportType.PRODUCTS: _map_product,
    StagedImportType.INVOICES: _map_invoice,
}


def validate_and_map(
    rows: Sequence[Mapping[str, Any]],
    import_type: StagedImportType,
    type_def: ImportTypeDef,
    clock: Clock,
) -> MappingResult:
    """
    Validate and map staged rows for one import type.

    The header map is built once from the union of all row keys.  Row
    numbers in errors are spreadsheet rows (first data row = 2).  Rows with
    no data under any recognized header are skipped; if that leaves nothing
    mapped and nothing rejected, the file gets one GENERAL error.
    """
    header_map = build_header_map(union_headers(rows), type_def.aliases)
    validator = ENTITY_VALIDATORS[import_type.value]
    mapper = _ROW_MAPPERS[import_type]

    mapped: list[MappedRow] = []
    errors: list[RowError] = []
    for index, row in enumerate(rows):
        row_no = index + HEADER_ROW_OFFSET
        raw = dict(row)
        values = {key: mapped_value(row, header_map, key) for key in type_def.aliases.keys()}
        if all(is_blank(v) for v in values.values()):
            continue
        reasons = validator(values)
        if reasons:
            errors.append(RowError(row=row_no, error=", ".join(reasons), raw=raw))
            continue
        mapped.append(mapper(row_no, values, raw, clock))

    if rows and not mapped and not errors:
        errors.append(RowError(row=GENERAL_ROW, error=GENERAL_VALIDATION_MESSAGE))

    return MappingResult(rows=tuple(mapped), errors=tuple(errors))


# ---------------------------------------------------------------------------
# Tally masters and vouchers
# ---------------------------------------------------------------------------


def _field_text(record: Mapping[str, Any], table, key: str) -> str | None:
    return element_text(get_field_value(record, table.aliases(key)))


def extract_masters(batch: MasterBatch, tally: TallyDef) -> MasterRows:
    """
    Groups become GroupDefinitions; ledgers become CustomerCandidates only
    when their phone normalizes to at least 10 digits.  Other ledgers are
    dropped without an error.
    """
    groups: list[GroupDefinition] = []
    for record in batch.groups:
        name = _field_text(record, tally.group_fields, "name")
        if name:
            groups.append(GroupDefinition(name=name, parent=_field_text(record, tally.group_fields, "parent")))

    customers: list[CustomerCandidate] = []
    for record in batch.ledgers:
        name = _field_text(record, tally.ledger_fields, "name")
        phone = normalize_phone(_field_text(record, tally.ledger_fields, "phone"))
        if not name or len(phone) < 10:
            continue
        customers.append(
            CustomerCandidate(
                name=name,
                phone=phone,
                external_id=_field_text(record, tally.ledger_fields, "guid"),
            )
        )
    return MasterRows(groups=tuple(groups), customers=tuple(customers))


def _ledger_entry_amount(record: Mapping[str, Any], tally: TallyDef, position: int) -> str | None:
    entries = as_records(get_field_value(record, tally.voucher_fields.aliases("ledger_entries")))
    if len(entries) <= position:
        return None
    return element_text(get_field_value(entries[position], ("AMOUNT",)))


def map_vouchers(batch: VoucherBatch, tally: TallyDef, clock: Clock) -> list[VoucherRow]:
    """
    Reduce each voucher to canonical fields, looked up row by row.

    Debit and credit fall back to the AMOUNT of the first and second ledger
    entries when the voucher carries no debit/credit leaf.
    """
    fields = tally.voucher_fields
    rows: list[VoucherRow] = []
    for record in batch.vouchers:
        raw_phone = _field_text(record, fields, "phone")
        debit = _field_text(record, fields, "debit")
        if debit is None:
            debit = _ledger_entry_amount(record, tally, 0)
        credit = _field_text(record, fields, "credit")
        if credit is None:
            credit = _ledger_entry_amount(record, tally, 1)
        rows.append(
            VoucherRow(
                phone=normalize_phone(raw_phone) or None,
                name=_field_text(record, fields, "name"),
                voucher_no=_field_text(record, fields, "voucher_no"),
                voucher_type=_field_text(record, fields, "voucher_type"),
                entry_date=parse_date(_field_text(record, fields, "date"), clock),
                debit=debit,
                credit=credit,
                balance=_field_text(record, fields, "balance"),
                amount=_field_text(record, fields, "amount"),
                reference=_field_text(record, fields, "reference"),
                mode=_field_text(record, fields, "mode"),
            )
        )
    return rows
