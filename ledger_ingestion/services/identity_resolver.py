"""
Identity resolver: phone number -> customer id.

The customer's 10-digit phone is the identity key shared by every source.
``resolve`` creates missing customers (insert ... on conflict do nothing on
the unique phone column, so concurrent resolvers of the same phone converge
on one row) and then reads back the ids.  ``resolve_existing`` only looks up.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Sequence, TypeVar
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_ingestion.domain.types import CustomerCandidate
from ledger_kernel.db.engine import dialect_insert
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.customer import Customer

logger = get_logger("ingestion.identity_resolver")

DEFAULT_CHUNK_SIZE = 500

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


class IdentityResolver:
    def __init__(self, session: Session, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self._session = session
        self._chunk_size = chunk_size

    def resolve(self, candidates: Iterable[CustomerCandidate], source: str) -> dict[str, UUID]:
        """
        Return ``{phone: customer_id}`` for every candidate, creating customers
        that do not exist yet.  An existing customer keeps its name and source;
        when a phone appears more than once the first candidate wins.
        """
        unique: dict[str, CustomerCandidate] = {}
        for candidate in candidates:
            unique.setdefault(candidate.phone, candidate)
        if not unique:
            return {}

        for chunk in chunked(list(unique.values()), self._chunk_size):
            stmt = dialect_insert(self._session, Customer.__table__).values(
                [
                    {
                        "id": uuid4(),
                        "name": c.name,
                        "phone": c.phone,
                        "source": source,
                        "external_id": c.external_id,
                    }
                    for c in chunk
                ]
            )
            self._session.execute(stmt.on_conflict_do_nothing(index_elements=["phone"]))

        resolved = self.resolve_existing(unique.keys())
        logger.debug(
            "identities_resolved",
            extra={"candidates": len(unique), "resolved": len(resolved)},
        )
        return resolved

    def resolve_existing(self, phones: Iterable[str]) -> dict[str, UUID]:
        """Return ``{phone: customer_id}`` for the phones already on file."""
        wanted = sorted({p for p in phones if p})
        found: dict[str, UUID] = {}
        for chunk in chunked(wanted, self._chunk_size):
            rows = self._session.execute(
                select(Customer.phone, Customer.id).where(Customer.phone.in_(chunk))
            ).all()
            found.update({phone: customer_id for phone, customer_id in rows})
        return found
