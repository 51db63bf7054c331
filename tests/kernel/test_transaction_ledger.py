"""
Tests for the append-only transaction ledger and chronological replay.
"""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from itertools import count

from wms_kernel.domain.records import Transaction, TransactionType
from wms_kernel.services.transaction_ledger import TransactionLedger

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
_ids = count(1)


def _entry(minutes: int, qty, product: str = "X", tx_type=TransactionType.ADJUSTMENT):
    return Transaction(
        id=f"t{next(_ids)}",
        date=T0 + timedelta(minutes=minutes),
        type=tx_type,
        product_code=product,
        quantity=Decimal(str(qty)),
        unit="kg",
        location_info="A-1-1",
    )


class TestReplay:
    def setup_method(self):
        self.receipt = _entry(0, 10, tx_type=TransactionType.INBOUND)
        self.topup = _entry(10, 5)
        self.pick = _entry(20, -3, tx_type=TransactionType.OUTBOUND)

    def test_balance_independent_of_insertion_order(self):
        ledger = TransactionLedger([self.pick, self.receipt, self.topup])
        assert ledger.running_balance("X") == Decimal("12")

    def test_balance_as_of(self):
        ledger = TransactionLedger([self.pick, self.receipt, self.topup])
        assert ledger.running_balance("X", as_of=self.topup.date) == Decimal("15")
        assert ledger.running_balance("X", as_of=T0 - timedelta(days=1)) == Decimal("0")

    def test_unknown_product_balance_is_zero(self):
        assert TransactionLedger([self.receipt]).running_balance("Q") == Decimal("0")

    def test_balances_per_product(self):
        ledger = TransactionLedger([self.receipt, _entry(5, 7, product="Y")])
        assert ledger.balances() == {"X": Decimal("10"), "Y": Decimal("7")}

    def test_chronological_ties_keep_insertion_order(self):
        a = _entry(30, 1)
        b = _entry(30, 2)
        ledger = TransactionLedger([b, a])
        assert [t.id for t in ledger.chronological()] == [b.id, a.id]

    def test_naive_dates_and_as_of_are_utc(self):
        naive = Transaction(
            id="naive", date=datetime(2024, 1, 1, 12, 5), type=TransactionType.OUTBOUND,
            product_code="X", quantity=Decimal("-2"), unit="kg", location_info="A-1-1",
        )
        ledger = TransactionLedger([self.receipt, naive, self.topup])

        assert naive.date.tzinfo is UTC
        assert ledger.running_balance("X") == Decimal("13")
        assert ledger.running_balance("X", as_of=datetime(2024, 1, 1, 12, 5)) == Decimal("8")
        assert ledger.balances(as_of=datetime(2024, 1, 1, 12, 0)) == {"X": Decimal("10")}
        assert [t.id for t in ledger.display_order()] == [self.topup.id, "naive", self.receipt.id]

    def test_iso_text_date_is_parsed(self):
        entry = Transaction(
            id="iso", date="2024-01-01T12:00:00", type=TransactionType.INBOUND,
            product_code="X", quantity="1", unit="kg", location_info="",
        )
        assert entry.date == T0


class TestViews:
    def setup_method(self):
        self.receipt = _entry(0, 10, tx_type=TransactionType.INBOUND)
        self.other = _entry(5, 4, product="Y", tx_type=TransactionType.INBOUND)
        self.pick = _entry(20, -3, tx_type=TransactionType.OUTBOUND)
        self.ledger = TransactionLedger([self.pick, self.other, self.receipt])

    def test_display_order_is_most_recent_first(self):
        assert [t.id for t in self.ledger.display_order()] == [
            self.pick.id, self.other.id, self.receipt.id,
        ]

    def test_history_running_balances(self):
        history = self.ledger.history("X")
        assert [(h.transaction.id, h.balance_after) for h in history] == [
            (self.receipt.id, Decimal("10")),
            (self.pick.id, Decimal("7")),
        ]

    def test_history_unfiltered(self):
        assert len(self.ledger.history()) == 3

    def test_of_type(self):
        assert self.ledger.of_type(TransactionType.OUTBOUND) == [self.pick]
        assert len(self.ledger.of_type(TransactionType.INBOUND, TransactionType.OUTBOUND)) == 3

    def test_entries_are_insertion_ordered(self):
        assert self.ledger.entries() == (self.pick, self.other, self.receipt)


class TestAppend:
    def test_append_returns_entry_and_logs(self, captured_logs):
        ledger = TransactionLedger()
        entry = _entry(0, 10, tx_type=TransactionType.INBOUND)
        assert ledger.append(entry) is entry
        assert len(ledger) == 1

        logs = [r for r in captured_logs() if r["message"] == "transaction_appended"]
        assert logs[0]["transaction_id"] == entry.id
        assert logs[0]["type"] == "INBOUND"

    def test_iteration_is_a_copy(self):
        ledger = TransactionLedger([_entry(0, 1)])
        for _ in ledger:
            ledger.append(_entry(1, 1))
        assert len(ledger) == 2
