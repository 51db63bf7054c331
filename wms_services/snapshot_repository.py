"""
wms_services.snapshot_repository -- Persist and load full inventory snapshots.

Responsibility:
    Reference implementation of the external persistence boundary: write a
    whole InventorySnapshot to SQL tables and read it back.

Architecture position:
    Services -- I/O adapter over wms_kernel.models and wms_kernel.db.

Invariants enforced:
    - ``save`` replaces the stored snapshot in one transaction (delete all,
      insert all, commit or roll back).
    - Records round-trip through the same flat field names as ``to_row``.

Failure modes:
    - RuntimeError if the engine has not been initialized.
    - IntegrityError on duplicate ids or bin codes (nothing is written).
"""

from __future__ import annotations

from sqlalchemy import delete, select

from wms_kernel.db.engine import session_scope
from wms_kernel.domain.locations import Location, format_locations, parse_locations
from wms_kernel.domain.records import (
    Bin,
    BinStatus,
    InventorySnapshot,
    Product,
    StockBatch,
    Transaction,
    TransactionType,
)
from wms_kernel.logging_config import get_logger
from wms_kernel.models.snapshot import BatchRow, BinRow, ProductRow, TransactionRow

logger = get_logger("services.snapshot_repository")


class SnapshotRepository:
    """Stores exactly one snapshot: the latest saved."""

    def save(self, snapshot: InventorySnapshot) -> None:
        with session_scope() as session:
            for model in (TransactionRow, BatchRow, BinRow, ProductRow):
                session.execute(delete(model))
            session.add_all(_product_row(p) for p in snapshot.products or ())
            session.add_all(_bin_row(b) for b in snapshot.bins or ())
            session.add_all(_batch_row(b) for b in snapshot.batches)
            session.add_all(_transaction_row(t) for t in snapshot.transactions or ())

        logger.info("snapshot_saved", extra={
            "products": len(snapshot.products or ()),
            "batches": len(snapshot.batches),
            "bins": len(snapshot.bins or ()),
            "transactions": len(snapshot.transactions or ()),
        })

    def load(self) -> InventorySnapshot:
        with session_scope() as session:
            products = tuple(
                _product(r) for r in session.scalars(select(ProductRow).order_by(ProductRow.code))
            )
            bins = tuple(
                _bin(r) for r in session.scalars(
                    select(BinRow).order_by(BinRow.rack, BinRow.bay, BinRow.level)
                )
            )
            batches = tuple(
                _batch(r) for r in session.scalars(select(BatchRow).order_by(BatchRow.id))
            )
            transactions = tuple(
                _transaction(r) for r in session.scalars(
                    select(TransactionRow).order_by(TransactionRow.date, TransactionRow.id)
                )
            )
        return InventorySnapshot(
            products=products, batches=batches, bins=bins, transactions=transactions,
        )


def _product_row(p: Product) -> ProductRow:
    return ProductRow(
        code=p.code,
        name=p.name,
        default_unit=p.default_unit,
        default_category=p.default_category,
        min_stock_level=p.min_stock_level,
    )


def _product(r: ProductRow) -> Product:
    return Product(
        code=r.code,
        name=r.name,
        default_unit=r.default_unit,
        default_category=r.default_category,
        min_stock_level=r.min_stock_level,
    )


def _bin_row(b: Bin) -> BinRow:
    return BinRow(
        id=b.id,
        bin_code=b.bin_code,
        rack=b.location.rack,
        bay=b.location.bay,
        level=str(b.location.level),
        status=b.status.value,
    )


def _bin(r: BinRow) -> Bin:
    return Bin(
        id=r.id,
        location=Location(rack=r.rack, bay=r.bay, level=r.level),
        status=BinStatus(r.status),
    )


def _batch_row(b: StockBatch) -> BatchRow:
    return BatchRow(
        id=b.id,
        product_code=b.product_code,
        product_name=b.product_name,
        quantity=b.quantity,
        unit=b.unit,
        category=b.category,
        locations=format_locations(b.locations),
        notes=b.notes,
        updated_at=b.updated_at,
        last_counted_at=b.last_counted_at,
    )


def _batch(r: BatchRow) -> StockBatch:
    return StockBatch(
        id=r.id,
        product_code=r.product_code,
        quantity=r.quantity,
        unit=r.unit,
        category=r.category,
        locations=parse_locations(r.locations),
        updated_at=r.updated_at,
        product_name=r.product_name,
        notes=r.notes,
        last_counted_at=r.last_counted_at,
    )


def _transaction_row(t: Transaction) -> TransactionRow:
    return TransactionRow(
        id=t.id,
        date=t.date,
        type=t.type.value,
        product_code=t.product_code,
        product_name=t.product_name,
        category=t.category,
        quantity=t.quantity,
        unit=t.unit,
        location_info=t.location_info,
        notes=t.notes,
        batch_id=t.batch_id,
    )


def _transaction(r: TransactionRow) -> Transaction:
    return Transaction(
        id=r.id,
        date=r.date,
        type=TransactionType(r.type),
        product_code=r.product_code,
        quantity=r.quantity,
        unit=r.unit,
        location_info=r.location_info,
        notes=r.notes,
        product_name=r.product_name,
        category=r.category,
        batch_id=r.batch_id,
    )
