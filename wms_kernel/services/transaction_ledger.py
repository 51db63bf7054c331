"""
Module: wms_kernel.services.transaction_ledger
Responsibility:
    Append-only event log of every stock-affecting operation, with running
    balance reconstruction by chronological replay.
Architecture position:
    Kernel > Services. May import domain/ only.

Invariants enforced:
    - APPEND_ONLY: entries are frozen Transactions; the ledger has no
      update or delete operation.
    - Replay ordering: balances are computed after a stable sort by ``date``
      ascending, never by insertion order, so backdated entries land in
      the right place.
    - Display ordering (most-recent-first) is a separate sort used only
      for presentation.

Failure modes:
    - None at append time beyond Transaction construction (InvalidQuantityError
      for a non-finite quantity).

Audit relevance:
    ``running_balance`` is the ledger side of the LEDGER_CONSISTENCY
    invariant; InventoryStore.verify_consistency compares it against live
    batch totals.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal

from wms_kernel.domain.records import Transaction, TransactionType, parse_timestamp
from wms_kernel.domain.values import ZERO
from wms_kernel.logging_config import get_logger

logger = get_logger("services.transaction_ledger")


@dataclass(frozen=True, slots=True)
class BalancedEntry:
    """A transaction paired with its product's balance after replay."""

    transaction: Transaction
    balance_after: Decimal


class TransactionLedger:
    """
    Append-only list of transactions.

    Contract:
        ``append`` is the only write. Reads never mutate; sorted views are
        always fresh lists.
    """

    def __init__(self, entries: Iterable[Transaction] = ()):
        self._entries: list[Transaction] = list(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(tuple(self._entries))

    def append(self, entry: Transaction) -> Transaction:
        """Append ``entry`` and return it unchanged."""
        self._entries.append(entry)
        logger.info("transaction_appended", extra={
            "transaction_id": entry.id,
            "type": entry.type.value,
            "product_code": entry.product_code,
            "quantity": str(entry.quantity),
            "batch_id": entry.batch_id,
        })
        return entry

    def entries(self) -> tuple[Transaction, ...]:
        """Entries in insertion order."""
        return tuple(self._entries)

    def entries_for(self, product_code: str) -> list[Transaction]:
        return [t for t in self._entries if t.product_code == product_code]

    def chronological(self, product_code: str | None = None) -> list[Transaction]:
        """Entries sorted by date ascending; ties keep insertion order."""
        source = self._entries if product_code is None else self.entries_for(product_code)
        return sorted(source, key=lambda t: t.date)

    def display_order(self, product_code: str | None = None) -> list[Transaction]:
        """Most-recent-first, for presentation only."""
        return list(reversed(self.chronological(product_code)))

    def running_balance(self, product_code: str, as_of: datetime | None = None) -> Decimal:
        """
        Replay all entries for ``product_code`` in date order and sum them.

        When ``as_of`` is given, only entries dated at or before it count.
        A naive ``as_of`` is read as UTC, like every ledger date.
        """
        as_of = parse_timestamp(as_of)
        balance = ZERO
        for entry in self.chronological(product_code):
            if as_of is not None and entry.date > as_of:
                break
            balance += entry.quantity
        return balance

    def balances(self, as_of: datetime | None = None) -> dict[str, Decimal]:
        """Replayed balance for every product that appears in the ledger."""
        as_of = parse_timestamp(as_of)
        totals: dict[str, Decimal] = {}
        for entry in self.chronological():
            if as_of is not None and entry.date > as_of:
                break
            totals[entry.product_code] = totals.get(entry.product_code, ZERO) + entry.quantity
        return totals

    def history(self, product_code: str | None = None) -> list[BalancedEntry]:
        """
        Chronological entries, each with its product's balance after it.

        Balances are computed over the full history before filtering, so a
        filtered view still shows true running totals.
        """
        running: dict[str, Decimal] = {}
        result: list[BalancedEntry] = []
        for entry in self.chronological():
            running[entry.product_code] = running.get(entry.product_code, ZERO) + entry.quantity
            if product_code is None or entry.product_code == product_code:
                result.append(BalancedEntry(entry, running[entry.product_code]))
        return result

    def of_type(self, *types: TransactionType) -> list[Transaction]:
        wanted = set(types)
        return [t for t in self._entries if t.type in wanted]

    # -- store-internal ---------------------------------------------------

    def _rewrite_product_code(self, old_code: str, new_code: str) -> int:
        """Replace entries for a renamed product. Called only by InventoryStore."""
        count = 0
        for i, entry in enumerate(self._entries):
            if entry.product_code == old_code:
                self._entries[i] = replace(entry, product_code=new_code)
                count += 1
        return count

    def _replace_all(self, entries: Iterable[Transaction]) -> None:
        """Swap the whole entry list. Snapshot load and rollback only."""
        self._entries = list(entries)
