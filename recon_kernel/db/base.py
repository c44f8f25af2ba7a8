"""
recon_kernel.db.base -- declarative base for the reconciliation schema.

Every table keys its rows by a uuid4 stored as text, so SQLite (tests) and
PostgreSQL hold identical ids.  Quantities, unit costs and values are
``Decimal`` on the Python side and ``Numeric(38, 9)`` in the database:
ledger conversion factors and weighted-average costs need the nine places,
and float never reaches a column.  Unnamed constraints get deterministic
names from the naming convention below, so both backends report the same
constraint in IntegrityErrors.

Nothing here imports models, services or selectors.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import DateTime, MetaData, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_N_name)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class UUIDString(TypeDecorator):
    """Canonical 36-character UUID text; binds UUIDs or strings, loads UUIDs."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        # Selectors receive batch ids from callers as text as often as UUIDs
        return str(value if isinstance(value, PyUUID) else PyUUID(str(value)))

    def process_result_value(self, value, dialect):
        return PyUUID(value) if value is not None else None


class Base(DeclarativeBase):
    """Base for every reconciliation table: uuid4 ``id`` plus column type map."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
    }

    id: Mapped[PyUUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Rows people create and edit: periods, batches, catalog entries, overrides.

    ``created_by_id`` stays empty unless the caller knows its operator; the
    reconciliation core has no authentication.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
    )
    created_by_id: Mapped[PyUUID | None] = mapped_column(UUIDString())
