"""Database layer: declarative base, column types, engine and session scope."""

from ledger_kernel.db.base import Base, DecimalType, TimestampedBase, UUIDString
from ledger_kernel.db.engine import (
    create_tables,
    dialect_insert,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
    session_scope,
)

__all__ = [
    "Base",
    "DecimalType",
    "TimestampedBase",
    "UUIDString",
    "create_tables",
    "dialect_insert",
    "drop_tables",
    "get_session_factory",
    "init_engine_from_url",
    "reset_engine",
    "session_scope",
]
