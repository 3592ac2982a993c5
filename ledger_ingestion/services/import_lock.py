"""
Import lock: a persisted ``is_importing`` flag guarding markup imports.

Acquisition is a single conditional UPDATE (``value`` false -> true) whose
rowcount tells the caller whether it won; two concurrent callers can never
both see rowcount 1.  Each operation runs in its own short transaction so the
flag is visible to other processes immediately, independent of the import's
own chunk transactions.

The ``first_import_done`` flag lives in the same table and gates voucher
imports until a master import has succeeded.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import timedelta
from typing import Iterator, Protocol
from uuid import uuid4

from sqlalchemy import and_, or_, select, update
from sqlalchemy.orm import Session, sessionmaker

from ledger_ingestion.models.meta import FIRST_IMPORT_DONE, IS_IMPORTING, ImportMetaModel
from ledger_kernel.db.engine import dialect_insert, session_scope
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.exceptions import ConcurrencyRejectedError
from ledger_kernel.logging_config import get_logger

logger = get_logger("ingestion.import_lock")


class ImportGate(Protocol):
    """What the markup workflow needs from the lock."""

    def acquire(self) -> bool:
        ...

    def release(self) -> None:
        ...

    def is_masters_done(self) -> bool:
        ...

    def mark_masters_done(self) -> None:
        ...

    def hold(self):
        ...


class ImportLock:
    """Database-backed ImportGate."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Clock | None = None,
        stale_after_seconds: int | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._stale_after = stale_after_seconds

    def _ensure_flags(self, session: Session) -> None:
        stmt = dialect_insert(session, ImportMetaModel.__table__).values(
            [
                {"id": uuid4(), "key": IS_IMPORTING, "value": False},
                {"id": uuid4(), "key": FIRST_IMPORT_DONE, "value": False},
            ]
        )
        session.execute(stmt.on_conflict_do_nothing(index_elements=["key"]))

    def _flag(self, key: str) -> bool:
        with session_scope(self._session_factory) as session:
            value = session.scalars(
                select(ImportMetaModel.value).where(ImportMetaModel.key == key)
            ).first()
        return bool(value)

    def _set_flag(self, session: Session, key: str, value: bool):
        return session.execute(
            update(ImportMetaModel)
            .where(ImportMetaModel.key == key)
            .values(value=value, value_changed_at=self._clock.now())
        )

    def acquire(self) -> bool:
        """Flip ``is_importing`` to true if it is false (or stale). True on success."""
        now = self._clock.now()
        condition = ImportMetaModel.value.is_(False)
        if self._stale_after is not None:
            cutoff = now - timedelta(seconds=self._stale_after)
            condition = or_(condition, ImportMetaModel.value_changed_at < cutoff)

        with session_scope(self._session_factory) as session:
            self._ensure_flags(session)
            result = session.execute(
                update(ImportMetaModel)
                .where(and_(ImportMetaModel.key == IS_IMPORTING, condition))
                .values(value=True, value_changed_at=now)
                .execution_options(synchronize_session=False)
            )
            acquired = result.rowcount == 1

        if acquired:
            logger.info("import_lock_acquired")
        else:
            logger.warning("import_lock_rejected")
        return acquired

    def release(self) -> None:
        with session_scope(self._session_factory) as session:
            self._set_flag(session, IS_IMPORTING, False)
        logger.info("import_lock_released")

    def is_importing(self) -> bool:
        return self._flag(IS_IMPORTING)

    def is_masters_done(self) -> bool:
        return self._flag(FIRST_IMPORT_DONE)

    def mark_masters_done(self) -> None:
        with session_scope(self._session_factory) as session:
            self._ensure_flags(session)
            self._set_flag(session, FIRST_IMPORT_DONE, True)
        logger.info("masters_marked_done")

    @contextmanager
    def hold(self) -> Iterator[None]:
        """
        Hold the lock for the duration of the block.

        Raises:
            ConcurrencyRejectedError: another import holds the lock.
        """
        if not self.acquire():
            raise ConcurrencyRejectedError()
        try:
            yield
        finally:
            self.release()
