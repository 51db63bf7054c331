"""
wms_services.reconciliation -- Policy for accepting a remote snapshot.

Responsibility:
    Decide whether a snapshot pulled from an external store may replace
    local state, sanitize legacy bin addresses in it, merge remote bin
    statuses onto the configured catalog, and hand the result to
    InventoryStore.load_snapshot.

Architecture position:
    Services -- the persistence boundary. Thresholds come from
    wms_config; the kernel only provides the atomic swap.

Invariants enforced:
    - Shrink guard: when local holds more than ``min_local_batches``
      batches and remote holds fewer than ``shrink_ratio * local``, the
      snapshot is rejected unless forced.
    - Rejection never touches the store.
    - Evaluation and load happen inside one unit of work.
    - Only bin status flags are taken from the remote side; the bin layout
      always comes from local configuration.

Failure modes:
    - SnapshotRejectedError from ``apply`` on a rejected decision.
    - DuplicateBinCodeError from the store if the merged catalog is
      inconsistent (store untouched).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum

from wms_config.schema import WarehouseConfiguration
from wms_kernel.domain.locations import Level, Location
from wms_kernel.domain.records import InventorySnapshot, ReferenceReport, StockBatch
from wms_kernel.exceptions import SnapshotRejectedError
from wms_kernel.logging_config import get_logger
from wms_kernel.services.bin_catalog import BinCatalog
from wms_kernel.services.inventory_store import InventoryStore

logger = get_logger("services.reconciliation")


class ReconciliationOutcome(str, Enum):
    ACCEPT = "accept"
    REJECT_SHRINK = "reject_shrink"
    FORCED = "forced"


@dataclass(frozen=True)
class ReconciliationDecision:
    outcome: ReconciliationOutcome
    local_batches: int
    remote_batches: int
    threshold: Decimal

    @property
    def accepted(self) -> bool:
        return self.outcome is not ReconciliationOutcome.REJECT_SHRINK


@dataclass(frozen=True)
class ReconciliationResult:
    decision: ReconciliationDecision
    report: ReferenceReport
    bins_status_changed: int
    locations_rewritten: int


class LegacyLocationRules:
    """
    Rewrites historical rack names onto the current layout.

    An aliased rack listed in ``ground_to_level_one`` also has its ground
    level moved to level 1, since the new zone has no floor level.
    """

    def __init__(
        self,
        rack_aliases: Mapping[str, str],
        ground_to_level_one: Sequence[str] = (),
    ):
        self._aliases = dict(rack_aliases)
        self._ground_to_one = frozenset(ground_to_level_one)

    def rewrite(self, location: Location) -> Location:
        target = self._aliases.get(location.rack)
        if target is None:
            return location
        level = location.level
        if target in self._ground_to_one and level.is_ground:
            level = Level(1)
        return Location(rack=target, bay=location.bay, level=level)

    def sanitize_batch(self, batch: StockBatch) -> StockBatch:
        rewritten = tuple(self.rewrite(loc) for loc in batch.locations)
        if rewritten == batch.locations:
            return batch
        return replace(batch, locations=rewritten)


class SnapshotReconciler:
    """
    Explicit reconciliation policy with a documented threshold.

    Contract:
        ``evaluate`` is pure. ``apply`` is the only method that writes,
        and only through ``InventoryStore.load_snapshot``.
    """

    def __init__(
        self,
        shrink_ratio: Decimal = Decimal("0.5"),
        min_local_batches: int = 5,
        legacy_rules: LegacyLocationRules | None = None,
    ):
        self.shrink_ratio = Decimal(shrink_ratio)
        self.min_local_batches = min_local_batches
        self.legacy_rules = legacy_rules or LegacyLocationRules({})

    @classmethod
    def from_config(cls, config: WarehouseConfiguration) -> SnapshotReconciler:
        return cls(
            shrink_ratio=config.reconciliation.shrink_ratio,
            min_local_batches=config.reconciliation.min_local_batches,
            legacy_rules=LegacyLocationRules(
                config.legacy.alias_map(), config.legacy.ground_to_level_one,
            ),
        )

    def evaluate(
        self,
        local: InventorySnapshot,
        remote: InventorySnapshot,
        force: bool = False,
    ) -> ReconciliationDecision:
        local_count = local.batch_count
        remote_count = remote.batch_count
        threshold = self.shrink_ratio * local_count
        shrinks = local_count > self.min_local_batches and remote_count < threshold

        if not shrinks:
            outcome = ReconciliationOutcome.ACCEPT
        elif force:
            outcome = ReconciliationOutcome.FORCED
        else:
            outcome = ReconciliationOutcome.REJECT_SHRINK
        return ReconciliationDecision(outcome, local_count, remote_count, threshold)

    def sanitize(self, snapshot: InventorySnapshot) -> tuple[InventorySnapshot, int]:
        """Rewrite legacy locations; returns the snapshot and rewrite count."""
        batches = []
        rewritten = 0
        for batch in snapshot.batches:
            clean = self.legacy_rules.sanitize_batch(batch)
            if clean is not batch:
                rewritten += 1
            batches.append(clean)
        return replace(snapshot, batches=tuple(batches)), rewritten

    def apply(
        self,
        store: InventoryStore,
        remote: InventorySnapshot,
        force: bool = False,
    ) -> ReconciliationResult:
        with store.unit_of_work():
            decision = self.evaluate(store.snapshot(), remote, force)
            if not decision.accepted:
                logger.warning("snapshot_rejected", extra={
                    "local_batches": decision.local_batches,
                    "remote_batches": decision.remote_batches,
                    "threshold": str(decision.threshold),
                })
                raise SnapshotRejectedError(
                    decision.local_batches,
                    decision.remote_batches,
                    f"remote below {self.shrink_ratio} of local",
                )

            clean, rewritten = self.sanitize(remote)
            merged = BinCatalog(store.catalog.bins())
            changed = merged.merge_statuses(remote.bins or ())
            report = store.load_snapshot(replace(clean, bins=tuple(merged.bins())))

        logger.info("snapshot_reconciled", extra={
            "outcome": decision.outcome.value,
            "local_batches": decision.local_batches,
            "remote_batches": decision.remote_batches,
            "locations_rewritten": rewritten,
            "bins_status_changed": changed,
        })
        return ReconciliationResult(decision, report, changed, rewritten)
