"""
Module: ledger_kernel.db.base
Responsibility: Declarative base classes and portable column types for every
    ORM model in the system.
Architecture position: Kernel > DB.  Lowest-level import target; model files
    in ledger_kernel and ledger_ingestion import from here.  MUST NOT import
    from models/, selectors/ or the ingestion packages.

Invariants enforced:
    - UUID primary keys: every model inherits a uuid4-generated primary key.
    - Decimal precision: Python Decimal maps to DecimalType, which is
      Numeric(38, 9) on PostgreSQL and an exact decimal string elsewhere.
      Monetary amounts never pass through float on any backend.
    - Timestamps: TimestampedBase provides created_at / updated_at.

Failure modes:
    - IntegrityError on duplicate primary key (uuid4 collision, not expected).
    - InvalidOperation from DecimalType if a non-numeric value is bound.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, Date, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """
    UUID type stored as String(36) for cross-database portability.

    Guarantees:
        - process_bind_param: UUID -> str on INSERT/UPDATE.
        - process_result_value: str -> UUID on SELECT.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return PyUUID(str(value))
        return None


class DecimalType(TypeDecorator):
    """
    Exact decimal column.

    Contract:
        PostgreSQL stores NUMERIC(38, 9).  Dialects without a native decimal
        (SQLite) store the canonical string form of the Decimal, so a value
        read back compares equal to the value written.

    Guarantees:
        - Bound values are coerced through Decimal(str(value)).
        - Result values are always Decimal (or None).
    """

    impl = Numeric(38, 9)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(Numeric(38, 9, asdecimal=True))
        return dialect.type_descriptor(String(64))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = value if isinstance(value, Decimal) else Decimal(str(value))
        if dialect.name == "postgresql":
            return value
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, Decimal):
            return value
        return Decimal(str(value))


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - id is always a uuid4-generated UUID stored as String(36).
        - Decimal maps to DecimalType.
        - datetime maps to DateTime(timezone=True); date maps to Date.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: DecimalType(),
        datetime: DateTime(timezone=True),
        date: Date(),
        PyUUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )


class TimestampedBase(Base):
    """
    Abstract base with creation/modification timestamps.

    created_at is server NOW() unless the caller supplies a value (services
    pass the injected clock's time so ordering is deterministic under test).
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


UUID = PyUUID
