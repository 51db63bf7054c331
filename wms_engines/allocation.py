"""
Module: wms_engines.allocation
Responsibility:
    Decide which batches an outbound request draws from, and how much
    from each, without touching any state.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import wms_kernel/domain and sibling engine modules.

Invariants enforced:
    - Batches are walked in ascending best-location score; ties keep the
      caller's order (stable sort).
    - take = min(available, remaining) per batch; no line exceeds the
      batch's available quantity.
    - fulfilled + shortfall == requested.
    - Quantities already claimed by other pending plans reduce a batch's
      available quantity before it is considered.

Failure modes:
    - InvalidQuantityError if ``requested`` <= 0.
    - A shortfall is NOT an error: the plan reports ``fulfilled <
      requested`` and the caller decides.

Usage:
    allocator = OutboundAllocator(scorer)
    plan = allocator.plan(product_code="X", requested=Decimal("7"), batches=batches)
    plan.lines  # [PickLine(batch_id="1", quantity=5), PickLine(batch_id="2", quantity=2)]
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal

from wms_engines.priority import LocationPriorityScorer
from wms_engines.tracer import traced_engine
from wms_kernel.domain.locations import Location
from wms_kernel.domain.records import StockBatch
from wms_kernel.domain.values import ZERO, positive_quantity
from wms_kernel.logging_config import get_logger

logger = get_logger("engines.allocation")


@dataclass(frozen=True, slots=True)
class PickLine:
    """One batch to draw from and how much to take."""

    batch_id: str
    quantity: Decimal
    location: Location | None = None


@dataclass(frozen=True)
class PickPlan:
    """
    The allocator's proposed breakdown for one outbound request.

    ``plan_id`` is assigned by the outbound service when a plan is
    reserved; plans straight from the allocator have none.
    """

    product_code: str
    requested: Decimal
    lines: tuple[PickLine, ...]
    plan_id: str | None = None

    @property
    def fulfilled(self) -> Decimal:
        return sum((line.quantity for line in self.lines), ZERO)

    @property
    def shortfall(self) -> Decimal:
        return self.requested - self.fulfilled

    @property
    def is_complete(self) -> bool:
        return self.fulfilled == self.requested

    def claims(self) -> dict[str, Decimal]:
        """Quantity claimed per batch id."""
        result: dict[str, Decimal] = {}
        for line in self.lines:
            result[line.batch_id] = result.get(line.batch_id, ZERO) + line.quantity
        return result


class OutboundAllocator:
    """
    Greedy priority-ordered allocator.

    Contract:
        Same inputs -> same plan. Never mutates batches.
    """

    def __init__(self, scorer: LocationPriorityScorer):
        self._scorer = scorer

    def order_batches(self, batches: Sequence[StockBatch]) -> list[StockBatch]:
        """Batches sorted most-preferred-to-drain first."""
        return sorted(batches, key=lambda b: self._scorer.best_score(b.locations))

    @traced_engine("allocation", "1.0", fingerprint_fields=("product_code", "requested"))
    def plan(
        self,
        *,
        product_code: str,
        requested: Decimal | int | str,
        batches: Sequence[StockBatch],
        claimed: Mapping[str, Decimal] | None = None,
    ) -> PickPlan:
        """
        Plan an outbound request for ``requested`` units of ``product_code``.

        Args:
            batches: Candidate batches; other products are ignored.
            claimed: Quantity per batch id already held by pending plans.
        """
        wanted = positive_quantity(requested)
        claimed = claimed or {}
        candidates = [b for b in batches if b.product_code == product_code]

        remaining = wanted
        lines: list[PickLine] = []
        for batch in self.order_batches(candidates):
            if remaining <= ZERO:
                break
            available = batch.quantity - claimed.get(batch.id, ZERO)
            if available <= ZERO:
                continue
            take = min(available, remaining)
            lines.append(PickLine(batch.id, take, batch.primary_location))
            remaining -= take

        result = PickPlan(product_code=product_code, requested=wanted, lines=tuple(lines))
        if not result.is_complete:
            logger.info("allocation_shortfall", extra={
                "product_code": product_code,
                "requested": str(wanted),
                "fulfilled": str(result.fulfilled),
            })
        return result
