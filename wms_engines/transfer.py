"""
Module: wms_engines.transfer
Responsibility:
    Classify a bin-to-bin transfer into merge, relocate or split and
    compute its effects, without touching any state.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import wms_kernel/domain and sibling engine modules.

Invariants enforced:
    - 0 < quantity <= source.quantity.
    - Cases are evaluated in order: an existing batch of the same product
      at the destination always wins (MERGE); otherwise a full move
      relocates the source in place (RELOCATE); otherwise the source is
      split (SPLIT).
    - Conservation: for every case, the quantity leaving the source equals
      the quantity arriving at the destination.

Failure modes:
    - InvalidQuantityError: quantity <= 0.
    - InsufficientStockError: quantity > source.quantity.
    - SameLocationTransferError: destination is the source's own bin.
    - ValueError: ``existing`` is not a different batch of the same
      product at the destination.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from wms_engines.tracer import traced_engine
from wms_kernel.domain.locations import Location
from wms_kernel.domain.records import StockBatch
from wms_kernel.domain.values import positive_quantity
from wms_kernel.exceptions import InsufficientStockError, SameLocationTransferError


class TransferKind(str, Enum):
    MERGE = "merge"
    RELOCATE = "relocate"
    SPLIT = "split"


@dataclass(frozen=True, slots=True)
class TransferPlan:
    """
    What a transfer will do.

    ``target_batch_id`` is the batch that holds the moved stock afterwards:
    the destination batch for MERGE, the source itself for RELOCATE, and
    None for SPLIT (the new batch id is assigned when applied).
    """

    kind: TransferKind
    source_batch_id: str
    product_code: str
    destination: Location
    quantity: Decimal
    source_remaining: Decimal
    target_batch_id: str | None = None

    @property
    def source_depleted(self) -> bool:
        return self.source_remaining == 0


class TransferPlanner:
    """Chooses the transfer case. Stateless."""

    @traced_engine("transfer", "1.0", fingerprint_fields=("quantity", "destination"))
    def plan(
        self,
        *,
        source: StockBatch,
        destination: Location,
        quantity: Decimal | int | str,
        existing: StockBatch | None = None,
    ) -> TransferPlan:
        """
        Args:
            source: The batch stock leaves.
            destination: Target bin.
            quantity: Units to move.
            existing: The batch of the same product already at
                ``destination``, if any.
        """
        qty = positive_quantity(quantity)
        if qty > source.quantity:
            raise InsufficientStockError(
                requested=qty,
                available=source.quantity,
                batch_id=source.id,
                product_code=source.product_code,
            )
        if source.is_at(destination):
            raise SameLocationTransferError(source.id, destination.bin_code)

        remaining = source.quantity - qty
        common = dict(
            source_batch_id=source.id,
            product_code=source.product_code,
            destination=destination,
            quantity=qty,
            source_remaining=remaining,
        )

        if existing is not None:
            if (
                existing.id == source.id
                or existing.product_code != source.product_code
                or not existing.is_at(destination)
            ):
                raise ValueError(
                    f"Batch {existing.id} is not a merge target for {source.id} "
                    f"at {destination.bin_code}"
                )
            return TransferPlan(kind=TransferKind.MERGE, target_batch_id=existing.id, **common)

        if remaining == 0:
            return TransferPlan(kind=TransferKind.RELOCATE, target_batch_id=source.id, **common)
        return TransferPlan(kind=TransferKind.SPLIT, **common)
