"""
Module: wms_kernel.services.inventory_store
Responsibility:
    The single owner of warehouse state: product master, bin catalog,
    stock batches and transaction ledger. Provides the critical section for
    compound operations, atomic snapshot load, the cascading product rename,
    and the ledger/state consistency check.
Architecture position:
    Kernel > Services. Composes bin_catalog, stock_ledger and
    transaction_ledger. Planners and orchestration services receive the
    store as an explicit dependency.

Invariants enforced:
    - Compound atomicity: ``unit_of_work()`` holds a re-entrant lock and
      restores batches, bins, products and ledger entries if an exception
      escapes the outermost block.
    - ``load_snapshot`` is all-or-nothing: every record is decoded and the
      new catalog validated before any current state is replaced.
    - ``rename_product`` rewrites the master entry, every batch and every
      historical transaction in one unit of work.
    - LEDGER_CONSISTENCY: ``verify_consistency`` compares replayed ledger
      balances against live batch totals.

Failure modes:
    - DuplicateProductCodeError / UnknownProductError from rename_product.
    - DuplicateBinCodeError from load_snapshot (state untouched).
    - LedgerInconsistencyError from verify_consistency.

Audit relevance:
    Orphan batches and transactions in a loaded snapshot are tolerated and
    reported through ReferenceReport, never silently dropped.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace
from decimal import Decimal

from wms_kernel.domain.clock import Clock, SystemClock
from wms_kernel.domain.records import (
    InventorySnapshot,
    Product,
    ReferenceReport,
    StockBatch,
    Transaction,
)
from wms_kernel.domain.values import ZERO
from wms_kernel.exceptions import (
    DuplicateProductCodeError,
    LedgerInconsistencyError,
    UnknownProductError,
)
from wms_kernel.logging_config import get_logger
from wms_kernel.services.bin_catalog import BinCatalog
from wms_kernel.services.stock_ledger import StockLedger
from wms_kernel.services.transaction_ledger import TransactionLedger

logger = get_logger("services.inventory_store")


@dataclass(frozen=True, slots=True)
class RenameResult:
    old_code: str
    new_code: str
    batches_updated: int
    transactions_updated: int


class InventoryStore:
    """
    Explicit store object replacing ambient component state.

    Contract:
        Reads may happen at any time. Writers that touch more than one
        collection run inside ``unit_of_work()``.
    Guarantees:
        A reader holding the lock never observes a batch change without its
        paired ledger entry.
    """

    def __init__(
        self,
        catalog: BinCatalog,
        products: Iterable[Product] = (),
        clock: Clock | None = None,
        enforce_active_bins: bool = False,
    ):
        self._lock = threading.RLock()
        self._depth = 0
        self._clock = clock or SystemClock()
        self._products: dict[str, Product] = {p.code: p for p in products}
        self._catalog = catalog
        self._transactions = TransactionLedger()
        self._stock = StockLedger(
            catalog,
            self._transactions,
            products=self._products,
            clock=self._clock,
            enforce_active_bins=enforce_active_bins,
        )

    # -- components -------------------------------------------------------

    @property
    def catalog(self) -> BinCatalog:
        return self._catalog

    @property
    def stock(self) -> StockLedger:
        return self._stock

    @property
    def transactions(self) -> TransactionLedger:
        return self._transactions

    @property
    def clock(self) -> Clock:
        return self._clock

    # -- product master ---------------------------------------------------

    def products(self) -> list[Product]:
        return list(self._products.values())

    def product(self, code: str) -> Product | None:
        return self._products.get(code)

    def upsert_product(self, product: Product) -> Product:
        """Insert or replace a product-master entry, keyed by code."""
        with self.unit_of_work():
            self._products[product.code] = product
        return product

    def is_known_product(self, code: str) -> bool:
        """True if the code appears in the master, any batch, or the ledger."""
        if code in self._products:
            return True
        if self._stock.batches_for_product(code):
            return True
        return any(t.product_code == code for t in self._transactions)

    # -- critical section -------------------------------------------------

    @contextmanager
    def unit_of_work(self) -> Iterator[InventoryStore]:
        """
        Run a compound operation atomically.

        Re-entrant: only the outermost block captures and restores state.
        """
        with self._lock:
            outermost = self._depth == 0
            if outermost:
                saved_batches = self._stock._snapshot_state()
                saved_bins = self._catalog._snapshot_state()
                saved_products = dict(self._products)
                saved_ledger = self._transactions.entries()
            self._depth += 1
            try:
                yield self
            except BaseException:
                if outermost:
                    self._stock._replace_all(saved_batches)
                    self._catalog._replace_all(saved_bins)
                    self._products.clear()
                    self._products.update(saved_products)
                    self._transactions._replace_all(saved_ledger)
                    logger.warning("unit_of_work_rolled_back", extra={
                        "ledger_length": len(saved_ledger),
                    })
                raise
            finally:
                self._depth -= 1

    # -- snapshots --------------------------------------------------------

    def snapshot(self) -> InventorySnapshot:
        """Consistent copy of the full state, taken under the lock."""
        with self._lock:
            return InventorySnapshot(
                products=tuple(self._products.values()),
                batches=tuple(self._stock.batches()),
                bins=tuple(self._catalog.bins()),
                transactions=self._transactions.entries(),
            )

    def load_snapshot(self, snapshot: InventorySnapshot) -> ReferenceReport:
        """
        Replace all state with ``snapshot`` in one swap.

        Collections the snapshot does not supply (``None``) keep their local
        contents, and an empty ``bins`` keeps the current catalog. Everything
        is validated before the swap, so a failure leaves the store as it was.
        """
        with self._lock:
            new_catalog = BinCatalog(snapshot.bins) if snapshot.bins else None
            if snapshot.products is None:
                new_products = dict(self._products)
            else:
                new_products = {p.code: p for p in snapshot.products}
            if snapshot.transactions is None:
                new_transactions = self._transactions.entries()
            else:
                new_transactions = tuple(snapshot.transactions)
            new_batches = {b.id: b for b in snapshot.batches}
            report = self._reference_report(
                snapshot.batches, new_transactions, new_products,
                new_catalog or self._catalog,
            )

            if new_catalog is not None:
                self._catalog._replace_all(new_catalog._snapshot_state())
            self._products.clear()
            self._products.update(new_products)
            self._stock._replace_all(new_batches)
            self._transactions._replace_all(new_transactions)

        logger.info("snapshot_loaded", extra={
            "products": len(new_products),
            "batches": len(new_batches),
            "bins": len(self._catalog),
            "transactions": len(new_transactions),
            "products_kept": snapshot.products is None,
            "transactions_kept": snapshot.transactions is None,
            "orphan_product_batches": len(report.orphan_product_batches),
            "orphan_location_batches": len(report.orphan_location_batches),
        })
        return report

    @staticmethod
    def _reference_report(
        batches: tuple[StockBatch, ...],
        transactions: tuple[Transaction, ...],
        products: dict[str, Product],
        catalog: BinCatalog,
    ) -> ReferenceReport:
        batch_codes = {b.product_code for b in batches}
        orphan_products = tuple(
            b.id for b in batches if b.product_code not in products
        )
        orphan_locations = tuple(
            b.id for b in batches
            if not b.locations or any(loc not in catalog for loc in b.locations)
        )
        orphan_txns = tuple(
            t.id for t in transactions
            if t.product_code not in products and t.product_code not in batch_codes
        )
        return ReferenceReport(
            orphan_product_batches=orphan_products,
            orphan_location_batches=orphan_locations,
            orphan_product_transactions=orphan_txns,
        )

    # -- cascading rename -------------------------------------------------

    def rename_product(self, old_code: str, new_code: str) -> RenameResult:
        """
        Change a product code everywhere it is referenced.

        Rewrites the master entry, every batch and every historical
        transaction atomically.

        Raises:
            DuplicateProductCodeError: ``new_code`` is already in use.
            UnknownProductError: ``old_code`` is referenced nowhere.
        """
        new_code = new_code.strip()
        if not new_code:
            raise ValueError("New product code is required")
        if old_code == new_code:
            return RenameResult(old_code, new_code, 0, 0)

        with self.unit_of_work():
            if self.is_known_product(new_code):
                raise DuplicateProductCodeError(new_code)
            if not self.is_known_product(old_code):
                raise UnknownProductError(old_code)

            existing = self._products.pop(old_code, None)
            if existing is not None:
                self._products[new_code] = replace(existing, code=new_code)

            batches = self._stock._snapshot_state()
            batch_count = 0
            for batch_id, batch in batches.items():
                if batch.product_code == old_code:
                    batches[batch_id] = replace(batch, product_code=new_code)
                    batch_count += 1
            self._stock._replace_all(batches)

            tx_count = self._transactions._rewrite_product_code(old_code, new_code)

        logger.info("product_renamed", extra={
            "old_code": old_code,
            "new_code": new_code,
            "batches_updated": batch_count,
            "transactions_updated": tx_count,
        })
        return RenameResult(old_code, new_code, batch_count, tx_count)

    # -- consistency ------------------------------------------------------

    def discrepancies(self) -> dict[str, tuple[Decimal, Decimal]]:
        """Products whose ledger balance and stock total differ."""
        with self._lock:
            ledger = self._transactions.balances()
            stock = self._stock.totals()
        result: dict[str, tuple[Decimal, Decimal]] = {}
        for code in sorted(set(ledger) | set(stock)):
            balance = ledger.get(code, ZERO)
            total = stock.get(code, ZERO)
            if balance != total:
                result[code] = (balance, total)
        return result

    def verify_consistency(self) -> None:
        """
        Raise on the first product whose replayed balance != live total.

        Raises:
            LedgerInconsistencyError
        """
        for code, (balance, total) in self.discrepancies().items():
            logger.error("ledger_inconsistent", extra={
                "product_code": code,
                "ledger_balance": str(balance),
                "stock_total": str(total),
            })
            raise LedgerInconsistencyError(code, balance, total)
