"""
Module: wms_kernel.models.snapshot
Responsibility: ORM persistence for one inventory snapshot: products, bins,
    stock batches and ledger transactions.
Architecture position: Kernel > Models. May import from db/base.py only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.
    Conversion to and from domain records lives in
    wms_services.snapshot_repository.

Invariants enforced:
    - Primary keys are the kernel-assigned string ids.
    - One bin row per bin code (unique constraint).
    - Batch locations are stored as the pipe-separated bin-code list used
      by the flat row shape.

Failure modes:
    - IntegrityError on duplicate ids or duplicate bin codes.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from wms_kernel.db.base import Base


class ProductRow(Base):
    """Product-master entry."""

    __tablename__ = "products"

    code: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    default_unit: Mapped[str] = mapped_column(String(50))
    default_category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    min_stock_level: Mapped[Decimal]


class BinRow(Base):
    """Catalog bin with its advisory status."""

    __tablename__ = "bins"

    __table_args__ = (
        UniqueConstraint("bin_code", name="uq_bins_bin_code"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    bin_code: Mapped[str] = mapped_column(String(64))
    rack: Mapped[str] = mapped_column(String(32))
    bay: Mapped[int]
    level: Mapped[str] = mapped_column(String(16))
    status: Mapped[str] = mapped_column(String(16))


class BatchRow(Base):
    """
    Stock batch.

    Non-goals:
        Quantity positivity is enforced by the kernel record, not by a
        database constraint.
    """

    __tablename__ = "stock_batches"

    __table_args__ = (
        Index("idx_stock_batches_product", "product_code"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    product_code: Mapped[str] = mapped_column(String(100))
    product_name: Mapped[str] = mapped_column(String(255), default="")
    quantity: Mapped[Decimal]
    unit: Mapped[str] = mapped_column(String(50))
    category: Mapped[str] = mapped_column(String(100), default="")
    locations: Mapped[str] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime]
    last_counted_at: Mapped[datetime | None] = mapped_column(nullable=True)


class TransactionRow(Base):
    """Ledger entry. Rows are inserted, never updated in place."""

    __tablename__ = "transactions"

    __table_args__ = (
        Index("idx_transactions_product_date", "product_code", "date"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    date: Mapped[datetime]
    type: Mapped[str] = mapped_column(String(16))
    product_code: Mapped[str] = mapped_column(String(100))
    product_name: Mapped[str] = mapped_column(String(255), default="")
    category: Mapped[str] = mapped_column(String(100), default="")
    quantity: Mapped[Decimal]
    unit: Mapped[str] = mapped_column(String(50))
    location_info: Mapped[str] = mapped_column(Text, default="")
    notes: Mapped[str] = mapped_column(Text, default="")
    batch_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
