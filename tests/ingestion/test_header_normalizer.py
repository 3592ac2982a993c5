"""Tests for alias-driven header lookup."""

from hypothesis import given
from hypothesis import strategies as st

from ledger_config.schema import AliasTable
from ledger_ingestion.mapping.headers import (
    build_header_map,
    find_header,
    get_field_value,
    normalize_field_name,
    union_headers,
)

CUSTOMER_ALIASES = AliasTable.from_mapping(
    {
        "name": ["Party Name", "Customer Name", "Name"],
        "phone": ["Mobile No", "Phone Number", "Contact", "Mobile", "Phone"],
    }
)


class TestNormalizeFieldName:
    def test_case_and_punctuation_ignored(self):
        assert normalize_field_name("Mobile No") == "mobileno"
        assert normalize_field_name("MOBILE_NO") == "mobileno"
        assert normalize_field_name("@NAME") == "name"
        assert normalize_field_name("Price/Unit") == "priceunit"

    @given(st.text())
    def test_output_is_lowercase_alphanumeric(self, name):
        out = normalize_field_name(name)
        assert all(c in "abcdefghijklmnopqrstuvwxyz0123456789" for c in out)
        assert normalize_field_name(out) == out


class TestFindHeader:
    def test_returns_raw_header(self):
        assert find_header(["PARTY NAME", "Mobile"], ["Party Name"]) == "PARTY NAME"

    def test_earlier_alias_wins_over_earlier_header(self):
        headers = ["Phone", "Mobile No"]
        assert find_header(headers, CUSTOMER_ALIASES.aliases("phone")) == "Mobile No"

    def test_not_found(self):
        assert find_header(["Amount"], ["Party Name"]) is None


class TestBuildHeaderMap:
    def test_maps_each_key_once(self):
        header_map = build_header_map(["Customer Name", "contact", "GSTIN"], CUSTOMER_ALIASES)
        assert header_map == {"name": "Customer Name", "phone": "contact"}

    def test_union_headers_preserves_first_seen_order(self):
        rows = [{"a": 1, "b": 2}, {"c": 3, "a": 4}]
        assert union_headers(rows) == ["a", "b", "c"]


class TestGetFieldValue:
    def test_row_lookup_through_aliases(self):
        row = {"VOUCHERNUMBER": "S-1", "PARTYMOBILE": "9876543210"}
        assert get_field_value(row, ["VoucherNo", "VoucherNumber"]) == "S-1"
        assert get_field_value(row, ["Mobile", "PARTYMOBILE"]) == "9876543210"

    def test_missing_is_none(self):
        assert get_field_value({"X": 1}, ["Y"]) is None
