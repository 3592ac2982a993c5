"""Tests for phone-keyed identity resolution."""

from decimal import Decimal

import pytest
from sqlalchemy import select

from ledger_ingestion.domain.types import CustomerCandidate
from ledger_ingestion.services import IdentityResolver
from ledger_ingestion.services.identity_resolver import chunked
from ledger_ingestion.services.reconciler import invoice_status
from ledger_kernel.db.engine import session_scope
from ledger_kernel.models.customer import Customer


def test_chunked():
    assert [list(c) for c in chunked([1, 2, 3, 4, 5], 2)] == [[1, 2], [3, 4], [5]]
    assert list(chunked([], 3)) == []


class TestResolve:
    def test_creates_missing_and_returns_all(self, session_factory, session):
        with session_scope(session_factory) as s:
            first = IdentityResolver(s).resolve(
                [CustomerCandidate("Ravi Traders", "9876543210", "g-1")], "tally"
            )
        with session_scope(session_factory) as s:
            second = IdentityResolver(s, chunk_size=1).resolve(
                [
                    CustomerCandidate("Ravi (renamed)", "9876543210"),
                    CustomerCandidate("Sita Stores", "9123456789"),
                ],
                "tally",
            )

        assert second["9876543210"] == first["9876543210"]
        assert set(second) == {"9876543210", "9123456789"}
        ravi = session.scalars(select(Customer).where(Customer.phone == "9876543210")).one()
        assert ravi.name == "Ravi Traders"
        assert ravi.external_id == "g-1"

    def test_first_candidate_per_phone_wins(self, session_factory, session):
        with session_scope(session_factory) as s:
            IdentityResolver(s).resolve(
                [CustomerCandidate("First", "9876543210"), CustomerCandidate("Second", "9876543210")],
                "tally",
            )
        assert [c.name for c in session.scalars(select(Customer))] == ["First"]

    def test_empty(self, session_factory):
        with session_scope(session_factory) as s:
            assert IdentityResolver(s).resolve([], "tally") == {}

    def test_resolve_existing_never_creates(self, session_factory, session):
        with session_scope(session_factory) as s:
            assert IdentityResolver(s).resolve_existing(["9876543210", "", None]) == {}
        assert session.scalars(select(Customer)).all() == []


@pytest.mark.parametrize(
    "text, paid, balance, expected",
    [
        ("Paid", "0", "100", "paid"),
        (" UNPAID ", "50", "0", "unpaid"),
        ("Partially Paid", "0", "0", "partial"),
        ("overdue", "0", "100", "unpaid"),
        (None, "40", "60", "partial"),
        (None, "100", "0", "paid"),
    ],
)
def test_invoice_status(text, paid, balance, expected):
    assert invoice_status(text, Decimal(paid), Decimal(balance)) == expected
