"""
Module: wms_kernel.selectors.stock_selector
Responsibility:
    Read-only reporting queries over an InventoryStore: per-product
    summaries, low stock, top movers, dead stock, bin occupancy and fuzzy
    bin-code search.
Architecture position:
    Kernel > Selectors. Reads the store; never mutates it.

Invariants enforced:
    - Read-only: no selector method calls a store mutator.
    - All totals are derived from live batches or ledger entries at query
      time; nothing is cached.

Failure modes:
    - None. Empty stores produce empty results.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from wms_kernel.domain.locations import Location
from wms_kernel.domain.records import (
    DEFAULT_UNIT,
    Bin,
    StockBatch,
    TransactionType,
    parse_timestamp,
)
from wms_kernel.domain.values import ZERO
from wms_kernel.services.inventory_store import InventoryStore

DEFAULT_REPORT_LIMIT = 5
DEFAULT_DEAD_STOCK_DAYS = 30


@dataclass(frozen=True)
class ProductSummary:
    """Aggregated stock for one product across all its batches."""

    product_code: str
    name: str
    quantity: Decimal
    unit: str
    bin_codes: tuple[str, ...]
    min_stock_level: Decimal

    @property
    def is_low(self) -> bool:
        return self.min_stock_level > ZERO and self.quantity < self.min_stock_level


@dataclass(frozen=True)
class MoverRow:
    product_code: str
    name: str
    outbound_quantity: Decimal
    unit: str


@dataclass(frozen=True)
class BinOccupancy:
    """A catalog bin and the batches currently held there."""

    bin: Bin
    batches: tuple[StockBatch, ...]

    @property
    def is_empty(self) -> bool:
        return not self.batches

    @property
    def bin_code(self) -> str:
        return self.bin.bin_code


class StockSelector:
    """
    Selector for dashboard and lookup queries.

    Contract:
        Accepts a store from the caller and only reads from it.
    """

    def __init__(self, store: InventoryStore):
        self.store = store

    def summary(self) -> list[ProductSummary]:
        """One row per product that currently has stock, in first-seen order."""
        totals: dict[str, Decimal] = {}
        first: dict[str, StockBatch] = {}
        bins: dict[str, list[str]] = {}
        for batch in self.store.stock.batches():
            code = batch.product_code
            if code not in first:
                first[code] = batch
                totals[code] = ZERO
                bins[code] = []
            totals[code] += batch.quantity
            for loc in batch.locations:
                if loc.legacy_key not in bins[code]:
                    bins[code].append(loc.legacy_key)

        rows = []
        for code, batch in first.items():
            product = self.store.product(code)
            rows.append(ProductSummary(
                product_code=code,
                name=product.name if product else batch.product_name,
                quantity=totals[code],
                unit=batch.unit,
                bin_codes=tuple(bins[code]),
                min_stock_level=product.min_stock_level if product else ZERO,
            ))
        return rows

    def low_stock(self) -> list[ProductSummary]:
        """Products with a reorder threshold set and stock below it."""
        return [row for row in self.summary() if row.is_low]

    def top_movers(self, limit: int = DEFAULT_REPORT_LIMIT) -> list[MoverRow]:
        """Products ranked by total outbound volume, highest first."""
        volumes: dict[str, Decimal] = {}
        for entry in self.store.transactions.of_type(TransactionType.OUTBOUND):
            volumes[entry.product_code] = volumes.get(entry.product_code, ZERO) + abs(entry.quantity)

        rows = []
        for code, qty in volumes.items():
            product = self.store.product(code)
            rows.append(MoverRow(
                product_code=code,
                name=product.name if product else code,
                outbound_quantity=qty,
                unit=product.default_unit if product else DEFAULT_UNIT,
            ))
        rows.sort(key=lambda r: r.outbound_quantity, reverse=True)
        return rows[:limit]

    def dead_stock(
        self,
        days: int = DEFAULT_DEAD_STOCK_DAYS,
        limit: int = DEFAULT_REPORT_LIMIT,
        now: datetime | None = None,
    ) -> list[StockBatch]:
        """Batches not updated for ``days`` days, oldest first."""
        cutoff = (parse_timestamp(now) or self.store.clock.now()) - timedelta(days=days)
        stale = [b for b in self.store.stock.batches() if b.updated_at < cutoff]
        stale.sort(key=lambda b: b.updated_at)
        return stale[:limit]

    def occupancy(self, rack: str | None = None) -> list[BinOccupancy]:
        """Every catalog bin (optionally one rack) with its batches."""
        held: dict[Location, list[StockBatch]] = {}
        for batch in self.store.stock.batches():
            for loc in batch.locations:
                held.setdefault(loc, []).append(batch)
        return [
            BinOccupancy(b, tuple(held.get(b.location, ())))
            for b in self.store.catalog.bins()
            if rack is None or b.location.rack == rack
        ]

    def search_bins(self, term: str) -> list[Bin]:
        """
        Fuzzy bin-code search.

        ``g11``, ``g011`` and ``G-01-1`` all find ``G-01-1``. Whitespace in
        the term is ignored; matching is case-insensitive substring.
        """
        needle = "".join(term.split()).lower()
        if not needle:
            return []
        return [b for b in self.store.catalog.bins() if _matches(b.location, needle)]


def _matches(location: Location, needle: str) -> bool:
    rack = location.rack.lower()
    level = str(location.level).lower()
    variants = (
        location.bin_code.lower(),
        f"{rack}{location.bay:02d}{level}",
        f"{rack}{location.bay}{level}",
        f"{rack}{location.bay}",
    )
    return any(needle in v for v in variants)
