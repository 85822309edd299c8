"""
Module: rental_kernel.db.base
Responsibility: declarative base shared by every table of the back office:
    string-stored UUID keys, the column type map for money and dates, and
    the audit columns carried by contracts and payment rows.
Architecture position: Kernel > DB.  Imported by every ORM module; imports
    nothing from the rest of the project.

Column conventions:
    - Keys are uuid4 values stored as 36-character strings so that SQLite
      and PostgreSQL hold identical data.
    - ``Decimal`` columns are Numeric(18, 2).  Rent, late fees, deductions
      and payouts are currency amounts with two places.
    - ``date`` columns hold calendar days (due dates, contract bounds);
      ``datetime`` columns are timezone-aware instants (approval, audit).
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import Date, DateTime, Integer, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """Stores ``uuid.UUID`` as its canonical string and parses it back on load."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, PyUUID):
            return value
        return PyUUID(value)


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        PyUUID: UUIDString(),
        Decimal: Numeric(18, 2),
        date: Date,
        datetime: DateTime(timezone=True),
        int: Integer,
    }

    id: Mapped[PyUUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Adds who/when columns to a table.

    ``created_at`` and ``updated_at`` are filled by the database clock.  The
    actor columns stay nullable because console jobs (contract expiry, data
    imports) write rows without a signed-in user.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )
    created_by_id: Mapped[PyUUID | None] = mapped_column(nullable=True)
    updated_by_id: Mapped[PyUUID | None] = mapped_column(nullable=True)


UUID = PyUUID
