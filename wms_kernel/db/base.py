"""
Module: wms_kernel.db.base
Responsibility: Declarative base class and portable column types for the
    snapshot tables.
Architecture position: Kernel > DB. Lowest-level import target for
    models/. MUST NOT import from models/, services/, selectors/, domain/,
    or outer layers.

Invariants enforced:
    - Decimal quantities are stored as exact decimal text, never float,
      so SQLite and PostgreSQL round-trip them identically.
    - Timestamps are stored as UTC and always come back timezone-aware.

Failure modes:
    - decimal.InvalidOperation if a stored quantity column was written by
      something other than this layer and is not numeric text.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import DateTime, String
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator


class DecimalString(TypeDecorator):
    """
    Decimal stored as String(64) for cross-database portability.

    Contract:
        Decimal -> str on bind, str -> Decimal on load. No float round trip.
    """

    impl = String(64)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return Decimal(value)
        return None


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime, normalised to UTC.

    SQLite drops tzinfo on DateTime columns; values are stored as naive UTC
    and re-tagged on load.
    """

    impl = DateTime()
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=UTC)


class Base(DeclarativeBase):
    """
    Declarative base for all snapshot tables.

    Contract:
        Every ORM model inherits from Base. Primary keys are the string ids
        assigned by the kernel, so Base does not define one.

    Guarantees:
        - Decimal maps to DecimalString.
        - datetime maps to UTCDateTime.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: DecimalString(),
        datetime: UTCDateTime(),
    }
