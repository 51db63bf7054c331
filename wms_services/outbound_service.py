"""
wms_services.outbound_service -- Apply pick plans with pending-claim bookkeeping.

Responsibility:
    Turn outbound requests into allocator plans that respect quantities
    already claimed by other not-yet-applied plans, and apply plans (or
    caller-chosen pick lines) to the stock ledger with one OUTBOUND entry
    per line.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    Composes OutboundAllocator (planning) and InventoryStore (mutation).

Invariants enforced:
    - available = total batch quantity - quantity claimed by pending plans.
      Planning and reserving run inside the store's unit of work, so the
      check-then-claim step cannot interleave with another writer.
    - Apply is all-or-nothing: every line is validated before the first
      batch changes, and the whole apply runs in one unit of work.
    - Each applied line appends exactly one OUTBOUND entry of -quantity.

Failure modes:
    - InvalidQuantityError: requested <= 0.
    - UnknownBatchError: a line names a batch that no longer exists.
    - InsufficientStockError: a line asks for more than the batch has
      available (stale plan, or explicit lines over-drawing a batch).
    - UnknownPlanError: commit/release of an unknown plan id.

Audit relevance:
    OUTBOUND entries record the batch id and its location text at the time
    of the pick.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from wms_engines.allocation import OutboundAllocator, PickLine, PickPlan
from wms_kernel.domain.records import Transaction, TransactionType
from wms_kernel.domain.values import ZERO, as_quantity
from wms_kernel.exceptions import InsufficientStockError, UnknownPlanError
from wms_kernel.logging_config import LogContext, get_logger
from wms_kernel.services.inventory_store import InventoryStore

logger = get_logger("services.outbound")


def _new_plan_id() -> str:
    return str(uuid4())


@dataclass(frozen=True)
class OutboundResult:
    """What an applied plan removed."""

    lines: tuple[PickLine, ...]
    transactions: tuple[Transaction, ...]
    depleted_batch_ids: tuple[str, ...]

    @property
    def total_removed(self) -> Decimal:
        return sum((line.quantity for line in self.lines), ZERO)


class OutboundService:
    """
    Outbound picking over one store.

    Contract:
        Pending plans live in this service, not in the store. A snapshot
        load does not clear them; ``apply``/``commit`` re-validate every
        line against live batches.
    """

    def __init__(
        self,
        store: InventoryStore,
        allocator: OutboundAllocator,
        id_factory: Callable[[], str] = _new_plan_id,
    ):
        self._store = store
        self._allocator = allocator
        self._new_id = id_factory
        self._pending: dict[str, PickPlan] = {}

    # -- queries ----------------------------------------------------------

    def pending_plans(self) -> list[PickPlan]:
        return list(self._pending.values())

    def claimed(self, exclude_plan_id: str | None = None) -> dict[str, Decimal]:
        """Quantity per batch id held by pending plans."""
        totals: dict[str, Decimal] = {}
        for plan_id, plan in self._pending.items():
            if plan_id == exclude_plan_id:
                continue
            for batch_id, qty in plan.claims().items():
                totals[batch_id] = totals.get(batch_id, ZERO) + qty
        return totals

    def available(self, product_code: str) -> Decimal:
        claims = self.claimed()
        return sum(
            (
                max(b.quantity - claims.get(b.id, ZERO), ZERO)
                for b in self._store.stock.batches_for_product(product_code)
            ),
            ZERO,
        )

    # -- planning ---------------------------------------------------------

    def plan(self, product_code: str, requested: Decimal | int | str) -> PickPlan:
        """Plan without claiming. Pending plans' quantities are excluded."""
        with self._store.unit_of_work():
            return self._allocator.plan(
                product_code=product_code,
                requested=requested,
                batches=self._store.stock.batches_for_product(product_code),
                claimed=self.claimed(),
            )

    def reserve(self, product_code: str, requested: Decimal | int | str) -> PickPlan:
        """Plan and hold the quantities until ``commit`` or ``release``."""
        with self._store.unit_of_work():
            draft = self.plan(product_code, requested)
            plan = PickPlan(
                product_code=draft.product_code,
                requested=draft.requested,
                lines=draft.lines,
                plan_id=self._new_id(),
            )
            self._pending[plan.plan_id] = plan
        logger.info("pick_plan_reserved", extra={
            "plan_id": plan.plan_id,
            "product_code": product_code,
            "requested": str(plan.requested),
            "fulfilled": str(plan.fulfilled),
        })
        return plan

    def release(self, plan_id: str) -> PickPlan:
        with self._store.unit_of_work():
            plan = self._pending.pop(plan_id, None)
        if plan is None:
            raise UnknownPlanError(plan_id)
        logger.info("pick_plan_released", extra={"plan_id": plan_id})
        return plan

    # -- applying ---------------------------------------------------------

    def commit(
        self,
        plan_id: str,
        *,
        notes: str | None = None,
        occurred_at: datetime | None = None,
    ) -> OutboundResult:
        """Apply a reserved plan and drop it from the pending set."""
        with LogContext.bind(plan_id=plan_id), self._store.unit_of_work():
            plan = self._pending.get(plan_id)
            if plan is None:
                raise UnknownPlanError(plan_id)
            result = self._apply_lines(
                plan.lines, notes=notes, occurred_at=occurred_at, exclude_plan_id=plan_id,
            )
            del self._pending[plan_id]
        return result

    def apply(
        self,
        plan: PickPlan,
        *,
        notes: str | None = None,
        occurred_at: datetime | None = None,
    ) -> OutboundResult:
        """Apply a plan that was not reserved (or re-apply a fresh one)."""
        with self._store.unit_of_work():
            return self._apply_lines(
                plan.lines, notes=notes, occurred_at=occurred_at,
                exclude_plan_id=plan.plan_id,
            )

    def process_lines(
        self,
        lines: Iterable[PickLine | tuple[str, Decimal | int | str]],
        *,
        notes: str | None = None,
        occurred_at: datetime | None = None,
    ) -> OutboundResult:
        """
        Apply caller-chosen ``(batch_id, quantity)`` picks.

        Lines with quantity <= 0 are skipped.
        """
        picks: list[PickLine] = []
        for line in lines:
            if isinstance(line, PickLine):
                batch_id, qty = line.batch_id, line.quantity
            else:
                batch_id, qty = line
            qty = as_quantity(qty)
            if qty <= ZERO:
                continue
            picks.append(PickLine(batch_id, qty))
        with self._store.unit_of_work():
            return self._apply_lines(tuple(picks), notes=notes, occurred_at=occurred_at)

    def _apply_lines(
        self,
        lines: tuple[PickLine, ...],
        *,
        notes: str | None,
        occurred_at: datetime | None,
        exclude_plan_id: str | None = None,
    ) -> OutboundResult:
        stock = self._store.stock
        others = self.claimed(exclude_plan_id=exclude_plan_id)

        wanted: dict[str, Decimal] = {}
        for line in lines:
            wanted[line.batch_id] = wanted.get(line.batch_id, ZERO) + line.quantity
        for batch_id, qty in wanted.items():
            batch = stock.require(batch_id)
            available = batch.quantity - others.get(batch_id, ZERO)
            if qty > available:
                raise InsufficientStockError(
                    requested=qty,
                    available=max(available, ZERO),
                    batch_id=batch_id,
                    product_code=batch.product_code,
                )

        entries: list[Transaction] = []
        depleted: list[str] = []
        applied: list[PickLine] = []
        for line in lines:
            mutation = stock.adjust_quantity(
                line.batch_id,
                -line.quantity,
                tx_type=TransactionType.OUTBOUND,
                notes=notes,
                occurred_at=occurred_at,
            )
            entries.append(mutation.transaction)
            applied.append(PickLine(line.batch_id, line.quantity, mutation.before.primary_location))
            if mutation.deleted:
                depleted.append(line.batch_id)

        result = OutboundResult(tuple(applied), tuple(entries), tuple(depleted))
        logger.info("outbound_applied", extra={
            "line_count": len(applied),
            "total_removed": str(result.total_removed),
            "depleted": len(depleted),
        })
        return result
