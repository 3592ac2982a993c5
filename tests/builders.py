"""Builders for Tally XML exports used across the ingestion tests."""


def envelope(body: str, header: str = "<HEADER><TALLYREQUEST>Import Data</TALLYREQUEST></HEADER>") -> str:
    return f'<?xml version="1.0" encoding="UTF-8"?>\n<ENVELOPE>{header}<BODY>{body}</BODY></ENVELOPE>'


def import_data(*messages: str) -> str:
    """Wrap message bodies as IMPORTDATA/REQUESTDATA/TALLYMESSAGE elements."""
    inner = "".join(f'<TALLYMESSAGE xmlns:UDF="TallyUDF">{m}</TALLYMESSAGE>' for m in messages)
    return envelope(f"<IMPORTDATA><REQUESTDATA>{inner}</REQUESTDATA></IMPORTDATA>")


def group_xml(name: str, parent: str = "Primary") -> str:
    return f'<GROUP NAME="{name}" ACTION="Create"><PARENT>{parent}</PARENT></GROUP>'


def ledger_xml(name: str, phone: str | None = None, parent: str = "Sundry Debtors", guid: str | None = None) -> str:
    parts = [f"<PARENT>{parent}</PARENT>"]
    if phone is not None:
        parts.append(f"<LEDGERMOBILE>{phone}</LEDGERMOBILE>")
    if guid is not None:
        parts.append(f"<GUID>{guid}</GUID>")
    return f'<LEDGER NAME="{name}" ACTION="Create">{"".join(parts)}</LEDGER>'


def voucher_xml(
    voucher_no: str | None,
    phone: str | None,
    voucher_type: str = "Sales",
    date: str = "20240401",
    debit: str | None = "1500.00",
    credit: str | None = "0",
    balance: str | None = "1500.00",
    amount: str | None = None,
    party: str = "Ravi Traders",
) -> str:
    fields = {
        "DATE": date,
        "VOUCHERTYPENAME": voucher_type,
        "VOUCHERNUMBER": voucher_no,
        "PARTYLEDGERNAME": party,
        "PARTYMOBILE": phone,
        "DEBIT": debit,
        "CREDIT": credit,
        "BALANCE": balance,
        "AMOUNT": amount,
    }
    inner = "".join(f"<{k}>{v}</{k}>" for k, v in fields.items() if v is not None)
    return f'<VOUCHER VCHTYPE="{voucher_type}" ACTION="Create">{inner}</VOUCHER>'


MASTERS_XML = import_data(
    group_xml("Sundry Debtors", parent="Current Assets"),
    ledger_xml("Ravi Traders", phone="+91 98765 43210", guid="guid-ravi"),
    ledger_xml("Sita Stores", phone="09123456789", guid="guid-sita"),
    ledger_xml("Cash", parent="Cash-in-Hand"),
)
