"""
Module: wms_kernel.services.stock_ledger
Responsibility:
    The authoritative collection of stock batches and the primitive
    mutations on them (create, adjust, relocate, delete, set, count), each
    paired with its Transaction Ledger entry.
Architecture position:
    Kernel > Services. May import domain/ and sibling kernel services.
    Planners in wms_engines never call this directly; wms_services applies
    their plans through the primitives here.

Invariants enforced:
    - POSITIVE_BATCHES: a batch whose quantity reaches zero is removed in
      the same call, and the removal is reported on the returned
      BatchMutation (``deleted``).
    - LEDGER_PAIRING: every quantity or location change appends exactly one
      Transaction, unless the caller passes ``record=False`` and appends
      the paired entry itself (transfers, which log a single MOVE).
    - Validation happens before mutation: a failed call leaves batches and
      ledger untouched.

Failure modes:
    - InvalidQuantityError: non-positive create/adjust amounts.
    - InsufficientStockError: an adjustment that would go below zero.
    - UnknownBatchError: batch id not present.
    - UnknownBinError: destination not in the bin catalog.
    - BinDisabledError: destination disabled while ``enforce_active_bins``.

Audit relevance:
    The ledger entry carries the product name, unit and category as the
    product master defines them at append time, falling back to the
    batch's own values for products the master does not know.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from wms_kernel.domain.clock import Clock, SystemClock
from wms_kernel.domain.locations import Location
from wms_kernel.domain.records import (
    DEFAULT_UNIT,
    Product,
    StockBatch,
    Transaction,
    TransactionType,
)
from wms_kernel.domain.values import ZERO, as_quantity, positive_quantity
from wms_kernel.exceptions import (
    BinDisabledError,
    InsufficientStockError,
    InvalidQuantityError,
    UnknownBatchError,
)
from wms_kernel.logging_config import get_logger
from wms_kernel.services.bin_catalog import BinCatalog
from wms_kernel.services.transaction_ledger import TransactionLedger

logger = get_logger("services.stock_ledger")

DEFAULT_NOTE = "System Entry"
COUNT_VERIFIED_NOTE = "Cycle Count Verified"
COUNT_VARIANCE_NOTE = "Cycle Count Variance"

_OWN_BATCH = object()


def _new_id() -> str:
    return str(uuid4())


@dataclass(frozen=True, slots=True)
class BatchMutation:
    """
    Outcome of a primitive batch mutation.

    ``after`` is None when the mutation removed the batch; ``transaction``
    is None when no entry was appended (unchanged quantity, or
    ``record=False``).
    """

    batch_id: str
    before: StockBatch | None
    after: StockBatch | None
    transaction: Transaction | None = None

    @property
    def deleted(self) -> bool:
        return self.before is not None and self.after is None

    @property
    def batch(self) -> StockBatch | None:
        return self.after


class StockLedger:
    """
    Batch store with paired ledger writes.

    Contract:
        All public mutators validate first, then mutate, then append. They
        are not locked here; InventoryStore.unit_of_work provides the
        critical section for compound operations.
    Non-goals:
        Deciding which batches to draw from or whether a transfer merges
        (that is planning, done in wms_engines).
    """

    def __init__(
        self,
        catalog: BinCatalog,
        transactions: TransactionLedger,
        products: Mapping[str, Product] | None = None,
        clock: Clock | None = None,
        enforce_active_bins: bool = False,
        id_factory: Callable[[], str] = _new_id,
    ):
        self._catalog = catalog
        self._transactions = transactions
        self._products: Mapping[str, Product] = products if products is not None else {}
        self._clock = clock or SystemClock()
        self._enforce_active_bins = enforce_active_bins
        self._new_id = id_factory
        self._batches: dict[str, StockBatch] = {}

    # -- queries ----------------------------------------------------------

    def __len__(self) -> int:
        return len(self._batches)

    def __iter__(self) -> Iterator[StockBatch]:
        return iter(tuple(self._batches.values()))

    def __contains__(self, batch_id: object) -> bool:
        return batch_id in self._batches

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def enforce_active_bins(self) -> bool:
        return self._enforce_active_bins

    def batches(self) -> list[StockBatch]:
        return list(self._batches.values())

    def get(self, batch_id: str) -> StockBatch | None:
        return self._batches.get(batch_id)

    def require(self, batch_id: str) -> StockBatch:
        found = self._batches.get(batch_id)
        if found is None:
            raise UnknownBatchError(batch_id)
        return found

    def batches_for_product(self, product_code: str) -> list[StockBatch]:
        return [b for b in self._batches.values() if b.product_code == product_code]

    def batch_at(self, product_code: str, location: Location) -> StockBatch | None:
        """The batch of ``product_code`` whose primary location is ``location``."""
        for batch in self._batches.values():
            if batch.product_code == product_code and batch.is_at(location):
                return batch
        return None

    def batches_at(self, location: Location) -> list[StockBatch]:
        return [b for b in self._batches.values() if location in b.locations]

    def total_quantity(self, product_code: str) -> Decimal:
        return sum((b.quantity for b in self.batches_for_product(product_code)), ZERO)

    def totals(self) -> dict[str, Decimal]:
        result: dict[str, Decimal] = {}
        for batch in self._batches.values():
            result[batch.product_code] = result.get(batch.product_code, ZERO) + batch.quantity
        return result

    def check_destination(self, location: Location) -> None:
        """
        Validate that stock may be placed at ``location``.

        Raises:
            UnknownBinError: location is not in the catalog.
            BinDisabledError: the bin is disabled and enforcement is on.
        """
        target = self._catalog.require(location)
        if self._enforce_active_bins and not target.is_active:
            raise BinDisabledError(target.bin_code)

    # -- primitives -------------------------------------------------------

    def create_batch(
        self,
        product_code: str,
        quantity: Decimal | int | str,
        location: Location,
        *,
        unit: str | None = None,
        category: str | None = None,
        product_name: str | None = None,
        notes: str | None = None,
        occurred_at: datetime | None = None,
        record: bool = True,
        entry_note: str | None = None,
    ) -> StockBatch:
        """
        Receive ``quantity`` of ``product_code`` into a new batch at ``location``.

        Unit, category and name default to the product master, then to
        ``pcs`` / empty. Logs INBOUND +quantity.
        """
        qty = positive_quantity(quantity)
        self.check_destination(location)
        product = self._products.get(product_code)

        batch = StockBatch(
            id=self._new_id(),
            product_code=product_code,
            quantity=qty,
            unit=unit or (product.default_unit if product else DEFAULT_UNIT),
            category=category or (product.default_category if product and product.default_category else ""),
            locations=(location,),
            updated_at=self._clock.now(),
            product_name=product_name or (product.name if product else ""),
            notes=notes,
        )
        self._batches[batch.id] = batch
        logger.info("batch_created", extra={
            "batch_id": batch.id,
            "product_code": product_code,
            "quantity": str(qty),
            "bin_code": location.bin_code,
        })
        if record:
            self.journal(
                TransactionType.INBOUND, batch, qty,
                notes=entry_note or notes, occurred_at=occurred_at,
            )
        return batch

    def adjust_quantity(
        self,
        batch_id: str,
        delta: Decimal | int | str,
        *,
        tx_type: TransactionType = TransactionType.ADJUSTMENT,
        notes: str | None = None,
        occurred_at: datetime | None = None,
        record: bool = True,
    ) -> BatchMutation:
        """
        Add ``delta`` (signed, non-zero) to a batch.

        A result of exactly zero deletes the batch; the returned mutation
        has ``deleted`` set. A negative result raises and changes nothing.
        """
        amount = as_quantity(delta)
        if amount == ZERO:
            raise InvalidQuantityError(amount, "adjustment must be non-zero")
        before = self.require(batch_id)
        remaining = before.quantity + amount
        if remaining < ZERO:
            raise InsufficientStockError(
                requested=-amount,
                available=before.quantity,
                batch_id=batch_id,
                product_code=before.product_code,
            )

        after = self._write_quantity(before, remaining)
        entry = None
        if record:
            entry = self.journal(
                tx_type, before, amount,
                notes=notes, occurred_at=occurred_at,
                batch_id=batch_id if after is not None else None,
            )
        return BatchMutation(batch_id, before, after, entry)

    def relocate(
        self,
        batch_id: str,
        destination: Location,
        *,
        notes: str | None = None,
        occurred_at: datetime | None = None,
        record: bool = True,
    ) -> StockBatch:
        """Move a whole batch in place. Same id, new location. Logs MOVE 0."""
        before = self.require(batch_id)
        self.check_destination(destination)
        after = replace(before, locations=(destination,), updated_at=self._clock.now())
        self._batches[batch_id] = after
        logger.info("batch_relocated", extra={
            "batch_id": batch_id,
            "from": before.location_text,
            "to": destination.bin_code,
        })
        if record:
            self.journal(
                TransactionType.MOVE, after, ZERO,
                location_info=f"Moved: {before.location_text} -> {destination.legacy_key}",
                notes=notes, occurred_at=occurred_at,
            )
        return after

    def delete_batch(
        self,
        batch_id: str,
        *,
        notes: str | None = "Deleted Record",
        occurred_at: datetime | None = None,
    ) -> BatchMutation:
        """Remove a batch regardless of quantity. Logs DELETE -quantity."""
        before = self.require(batch_id)
        del self._batches[batch_id]
        logger.info("batch_deleted", extra={
            "batch_id": batch_id,
            "product_code": before.product_code,
            "quantity": str(before.quantity),
        })
        entry = self.journal(
            TransactionType.DELETE, before, -before.quantity,
            notes=notes, occurred_at=occurred_at, batch_id=None,
        )
        return BatchMutation(batch_id, before, None, entry)

    def set_quantity(
        self,
        batch_id: str,
        new_quantity: Decimal | int | str,
        *,
        notes: str | None = "Edit Entry Form",
        occurred_at: datetime | None = None,
    ) -> BatchMutation:
        """Overwrite a batch quantity, logging the difference as ADJUSTMENT."""
        target = as_quantity(new_quantity)
        if target < ZERO:
            raise InvalidQuantityError(target, "quantity cannot be negative")
        before = self.require(batch_id)
        diff = target - before.quantity
        if diff == ZERO:
            return BatchMutation(batch_id, before, before, None)
        return self.adjust_quantity(
            batch_id, diff, notes=notes, occurred_at=occurred_at,
        )

    def record_count(
        self,
        batch_id: str,
        counted: Decimal | int | str,
        *,
        occurred_at: datetime | None = None,
    ) -> BatchMutation:
        """
        Record a cycle count against a batch.

        A match logs COUNT 0. A variance adjusts the batch and logs an
        ADJUSTMENT of the signed difference; a count of zero removes it.
        """
        counted_qty = as_quantity(counted)
        if counted_qty < ZERO:
            raise InvalidQuantityError(counted_qty, "count cannot be negative")
        before = self.require(batch_id)
        diff = counted_qty - before.quantity
        now = self._clock.now()

        if diff == ZERO:
            after = replace(before, last_counted_at=now)
            self._batches[batch_id] = after
            entry = self.journal(
                TransactionType.COUNT, after, ZERO,
                notes=COUNT_VERIFIED_NOTE, occurred_at=occurred_at,
            )
            return BatchMutation(batch_id, before, after, entry)

        after = self._write_quantity(before, counted_qty)
        if after is not None:
            after = replace(after, last_counted_at=now)
            self._batches[batch_id] = after
        entry = self.journal(
            TransactionType.ADJUSTMENT, before, diff,
            notes=COUNT_VARIANCE_NOTE, occurred_at=occurred_at,
            batch_id=batch_id if after is not None else None,
        )
        logger.info("cycle_count_variance", extra={
            "batch_id": batch_id,
            "expected": str(before.quantity),
            "counted": str(counted_qty),
        })
        return BatchMutation(batch_id, before, after, entry)

    # -- ledger pairing ---------------------------------------------------

    def journal(
        self,
        tx_type: TransactionType,
        batch: StockBatch,
        quantity: Decimal,
        *,
        location_info: str | None = None,
        notes: str | None = None,
        occurred_at: datetime | None = None,
        batch_id: str | None | object = _OWN_BATCH,
    ) -> Transaction:
        """
        Append the ledger entry describing a change to ``batch``.

        ``batch_id`` defaults to the batch's own id; pass None for entries
        whose batch no longer exists, or another id for merges.
        """
        product = self._products.get(batch.product_code)
        entry = Transaction(
            id=self._new_id(),
            date=occurred_at or self._clock.now(),
            type=tx_type,
            product_code=batch.product_code,
            quantity=quantity,
            unit=(product.default_unit if product and product.default_unit else batch.unit),
            location_info=location_info if location_info is not None else batch.location_text,
            notes=notes or DEFAULT_NOTE,
            product_name=product.name if product else batch.product_name,
            category=(product.default_category if product and product.default_category else batch.category),
            batch_id=batch.id if batch_id is _OWN_BATCH else batch_id,
        )
        return self._transactions.append(entry)

    # -- internal ---------------------------------------------------------

    def _write_quantity(self, batch: StockBatch, quantity: Decimal) -> StockBatch | None:
        if quantity == ZERO:
            del self._batches[batch.id]
            logger.info("batch_depleted", extra={
                "batch_id": batch.id,
                "product_code": batch.product_code,
            })
            return None
        updated = replace(batch, quantity=quantity, updated_at=self._clock.now())
        self._batches[batch.id] = updated
        return updated

    def _replace_all(self, batches: Mapping[str, StockBatch]) -> None:
        """Swap the whole batch map. InventoryStore only."""
        self._batches = dict(batches)

    def _snapshot_state(self) -> dict[str, StockBatch]:
        return dict(self._batches)

    def _use_products(self, products: Mapping[str, Product]) -> None:
        self._products = products
