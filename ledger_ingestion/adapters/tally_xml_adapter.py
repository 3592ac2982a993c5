"""
Tally XML source adapter.

Reads an ``ENVELOPE/BODY`` export and yields one flattened dict per message.
Message collections are looked up at the known nesting paths, in order:

    BODY/IMPORTDATA/REQUESTDATA/TALLYMESSAGE   (master and voucher exports)
    BODY/DATA/TALLYMESSAGE                     (report-style exports)
    BODY/DATA/COLLECTION/VOUCHER               (voucher collection export)
    BODY/DATA/COLLECTION/LEDGER                (ledger collection export)

Flattening rules: attributes become ``@NAME`` keys; a child with no element
children becomes its stripped text, or a dict with ``#text`` when it also
carries attributes; repeated child tags become lists.  Text is never
converted to numbers, so Tally's ``YYYYMMDD`` dates stay strings.

``parse_tally_file`` classifies the messages into the closed
``MasterBatch | VoucherBatch`` result.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator

from lxml import etree

from ledger_ingestion.domain.types import MasterBatch, TallyBatch, VoucherBatch
from ledger_kernel.exceptions import MalformedInputError

MESSAGE_PATHS: tuple[tuple[str, bool], ...] = (
    # (path relative to BODY, elements are wrapped messages)
    ("IMPORTDATA/REQUESTDATA/TALLYMESSAGE", True),
    ("DATA/TALLYMESSAGE", True),
    ("DATA/COLLECTION/VOUCHER", False),
    ("DATA/COLLECTION/LEDGER", False),
)

TEXT_KEY = "#text"


def _local(tag: Any) -> str:
    return etree.QName(tag).localname


def flatten_element(el: Any) -> dict[str, Any]:
    """Flatten one element into a dict (see module docstring for rules)."""
    out: dict[str, Any] = {}
    for name, value in el.attrib.items():
        out[f"@{_local(name)}"] = value

    repeated: set[str] = set()
    for child in el:
        if not isinstance(child.tag, str):
            continue  # comments, processing instructions
        tag = _local(child.tag)
        if len(child):
            value: Any = flatten_element(child)
        elif child.attrib:
            value = flatten_element(child)
            text = (child.text or "").strip()
            if text:
                value[TEXT_KEY] = text
        else:
            value = (child.text or "").strip()

        if tag in repeated:
            out[tag].append(value)
        elif tag in out:
            out[tag] = [out[tag], value]
            repeated.add(tag)
        else:
            out[tag] = value
    return out


def element_text(value: Any) -> str | None:
    """
    First non-empty text inside a flattened value.

    Strings are returned stripped; dicts yield ``#text`` or their first
    non-empty nested text (attributes skipped); lists yield their first
    non-empty element text.
    """
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        return text or None
    if isinstance(value, dict):
        if value.get(TEXT_KEY):
            return str(value[TEXT_KEY]).strip() or None
        for key, nested in value.items():
            if key.startswith("@"):
                continue
            text = element_text(nested)
            if text:
                return text
        return None
    if isinstance(value, list):
        for item in value:
            text = element_text(item)
            if text:
                return text
        return None
    return str(value)


def as_records(value: Any) -> list[dict[str, Any]]:
    """Normalize a flattened child (absent, single, repeated) to a list of dicts."""
    if value is None:
        return []
    if isinstance(value, dict):
        return [value]
    if isinstance(value, list):
        return [v for v in value if isinstance(v, dict)]
    return []


def _load_root(source_path: Path) -> Any:
    parser = etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        huge_tree=True,
        remove_comments=True,
    )
    try:
        tree = etree.parse(str(source_path), parser)
    except etree.XMLSyntaxError as exc:
        raise MalformedInputError(
            f"Invalid Tally XML: {exc}", filename=source_path.name
        ) from exc
    return tree.getroot()


def _find_body(root: Any, filename: str) -> Any:
    if _local(root.tag) != "ENVELOPE":
        raise MalformedInputError(
            "Invalid Tally XML: Missing ENVELOPE or BODY tag.", filename=filename
        )
    for child in root:
        if isinstance(child.tag, str) and _local(child.tag) == "BODY":
            return child
    raise MalformedInputError(
        "Invalid Tally XML: Missing ENVELOPE or BODY tag.", filename=filename
    )


class TallyXmlAdapter:
    """
    Read Tally XML exports as one dict per message.

    Wrapped messages (TALLYMESSAGE) flatten to ``{"GROUP": {...}}`` style
    dicts; bare collection elements are wrapped under their own tag so both
    variants have the same shape.
    """

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        source_path = Path(source_path)
        body = _find_body(_load_root(source_path), source_path.name)
        for path, wrapped in MESSAGE_PATHS:
            elements = body.findall(path)
            if not elements:
                continue
            for el in elements:
                if wrapped:
                    yield flatten_element(el)
                else:
                    yield {_local(el.tag): flatten_element(el)}
            return
        raise MalformedInputError(
            "No TALLYMESSAGE or VOUCHER data found in XML.", filename=source_path.name
        )


def classify_messages(messages: list[dict[str, Any]], filename: str | None = None) -> TallyBatch:
    """
    Classify flattened messages.

    Any GROUP or LEDGER makes the batch a MasterBatch; otherwise any VOUCHER
    makes it a VoucherBatch.

    Raises:
        MalformedInputError: if no message holds a group, ledger or voucher.
    """
    groups: list[dict[str, Any]] = []
    ledgers: list[dict[str, Any]] = []
    vouchers: list[dict[str, Any]] = []
    for message in messages:
        groups.extend(as_records(message.get("GROUP")))
        ledgers.extend(as_records(message.get("LEDGER")))
        vouchers.extend(as_records(message.get("VOUCHER")))

    if groups or ledgers:
        return MasterBatch(
            groups=tuple(groups), ledgers=tuple(ledgers), message_count=len(messages)
        )
    if vouchers:
        return VoucherBatch(vouchers=tuple(vouchers), message_count=len(messages))
    raise MalformedInputError(
        "Tally XML contains no GROUP, LEDGER or VOUCHER records.", filename=filename
    )


def parse_tally_file(source_path: Path, adapter: TallyXmlAdapter | None = None) -> TallyBatch:
    """Read and classify a Tally export in one step."""
    adapter = adapter or TallyXmlAdapter()
    source_path = Path(source_path)
    messages = list(adapter.read(source_path, {}))
    return classify_messages(messages, filename=source_path.name)
