"""
wms_services.transfer_service -- Execute bin-to-bin transfers.

Responsibility:
    Look up the source batch and any same-product batch already at the
    destination, ask the TransferPlanner which case applies, and carry the
    plan out through the stock ledger's primitives.

Architecture position:
    Services -- stateful orchestration over engines + kernel.

Invariants enforced:
    - Conservation: the product's total quantity is identical before and
      after every transfer.
    - No fragmentation: a merge leaves one batch of the product at the
      destination bin.
    - Exactly one MOVE entry with quantity 0 per transfer. Its ``batch_id``
      is the batch holding the moved stock afterwards (the merge target,
      the relocated source, or the new split batch).
    - The whole transfer runs in one unit of work.

Failure modes:
    - InvalidQuantityError / InsufficientStockError from the planner.
    - UnknownBatchError: source id unknown.
    - UnknownBinError / BinDisabledError: destination rejected.
    - SameLocationTransferError: destination is the source's own bin.
    - LedgerInconsistencyError: the applied plan changed the product total;
      the unit of work rolls everything back.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from wms_engines.transfer import TransferKind, TransferPlan, TransferPlanner
from wms_kernel.domain.locations import Location
from wms_kernel.domain.records import StockBatch, Transaction, TransactionType
from wms_kernel.domain.values import ZERO
from wms_kernel.exceptions import LedgerInconsistencyError
from wms_kernel.logging_config import LogContext, get_logger
from wms_kernel.services.inventory_store import InventoryStore

logger = get_logger("services.transfer")


@dataclass(frozen=True)
class TransferResult:
    plan: TransferPlan
    source: StockBatch | None
    destination: StockBatch
    transaction: Transaction

    @property
    def kind(self) -> TransferKind:
        return self.plan.kind


class TransferService:
    """Transfers over one store."""

    def __init__(self, store: InventoryStore, planner: TransferPlanner | None = None):
        self._store = store
        self._planner = planner or TransferPlanner()

    def transfer(
        self,
        source_batch_id: str,
        destination: Location,
        quantity: Decimal | int | str,
        *,
        notes: str | None = None,
        occurred_at: datetime | None = None,
    ) -> TransferResult:
        stock = self._store.stock
        with LogContext.bind(batch_id=source_batch_id), self._store.unit_of_work():
            source = stock.require(source_batch_id)
            total_before = stock.total_quantity(source.product_code)
            stock.check_destination(destination)
            existing = stock.batch_at(source.product_code, destination)
            if existing is not None and existing.id == source.id:
                existing = None

            plan = self._planner.plan(
                source=source,
                destination=destination,
                quantity=quantity,
                existing=existing,
            )

            if plan.kind is TransferKind.MERGE:
                target = stock.adjust_quantity(plan.target_batch_id, plan.quantity, record=False).after
                remaining = stock.adjust_quantity(source.id, -plan.quantity, record=False).after
            elif plan.kind is TransferKind.RELOCATE:
                target = stock.relocate(source.id, destination, record=False)
                remaining = target
            else:
                remaining = stock.adjust_quantity(source.id, -plan.quantity, record=False).after
                target = stock.create_batch(
                    source.product_code,
                    plan.quantity,
                    destination,
                    unit=source.unit,
                    category=source.category,
                    product_name=source.product_name,
                    notes=source.notes,
                    record=False,
                )

            total_after = stock.total_quantity(source.product_code)
            if total_after != total_before:
                logger.error("transfer_not_conserved", extra={
                    "product_code": source.product_code,
                    "total_before": str(total_before),
                    "total_after": str(total_after),
                })
                raise LedgerInconsistencyError(source.product_code, total_before, total_after)

            source_text = source.primary_location.legacy_key if source.primary_location else "Unknown"
            entry = stock.journal(
                TransactionType.MOVE,
                source,
                ZERO,
                location_info=(
                    f"Moved {plan.quantity} {source.unit} from {source_text} "
                    f"to {destination.legacy_key}"
                ),
                notes=notes,
                occurred_at=occurred_at,
                batch_id=target.id,
            )

        logger.info("transfer_completed", extra={
            "kind": plan.kind.value,
            "source_batch_id": source.id,
            "target_batch_id": target.id,
            "quantity": str(plan.quantity),
            "destination": destination.bin_code,
        })
        return TransferResult(plan=plan, source=remaining, destination=target, transaction=entry)
