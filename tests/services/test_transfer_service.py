"""
Tests for TransferService: merge, relocate and split with one MOVE entry.
"""

from dataclasses import replace
from decimal import Decimal

import pytest

from wms_engines.transfer import TransferKind, TransferPlanner
from wms_kernel.domain.locations import parse_bin_code as loc
from wms_kernel.domain.records import TransactionType
from wms_kernel.exceptions import (
    BinDisabledError,
    InsufficientStockError,
    LedgerInconsistencyError,
    SameLocationTransferError,
    UnknownBinError,
)
from wms_services.transfer_service import TransferService
from wms_services.warehouse import build_warehouse


def _moves(store):
    return store.transactions.of_type(TransactionType.MOVE)


class TestMerge:
    def test_partial_merge(self, transfers, store, receive):
        source = receive("X", 10, "A-01-1")
        target = receive("X", 6, "B-01-1")

        result = transfers.transfer(source.id, loc("B-01-1"), 4)

        assert result.kind is TransferKind.MERGE
        assert result.destination.id == target.id
        assert result.destination.quantity == Decimal("10")
        assert result.source.quantity == Decimal("6")
        assert len(store.stock.batches_for_product("X")) == 2
        assert store.stock.total_quantity("X") == Decimal("16")

        (move,) = _moves(store)
        assert move.quantity == Decimal("0")
        assert move.batch_id == target.id
        assert move.location_info == "Moved 4 kg from A-1-1 to B-1-1"
        store.verify_consistency()

    def test_full_merge_removes_source(self, transfers, store, receive):
        source = receive("X", 10, "A-01-1")
        target = receive("X", 6, "B-01-1")

        result = transfers.transfer(source.id, loc("B-01-1"), 10)

        assert result.source is None
        assert source.id not in store.stock
        assert store.stock.batches_for_product("X") == [result.destination]
        assert result.destination.id == target.id
        assert store.stock.total_quantity("X") == Decimal("16")


class TestRelocate:
    def test_full_move_keeps_batch_id(self, transfers, store, receive):
        source = receive("X", 10, "A-01-1")

        result = transfers.transfer(source.id, loc("C-03-Floor"), 10)

        assert result.kind is TransferKind.RELOCATE
        assert result.destination.id == source.id
        assert result.source == result.destination
        assert store.stock.require(source.id).locations == (loc("C-03-Floor"),)
        assert len(_moves(store)) == 1
        assert _moves(store)[0].batch_id == source.id

    def test_other_product_at_destination_does_not_merge(self, transfers, store, receive):
        source = receive("X", 10, "A-01-1")
        receive("Y", 60, "B-01-1")
        result = transfers.transfer(source.id, loc("B-01-1"), 10)
        assert result.kind is TransferKind.RELOCATE
        assert len(store.stock.batches_at(loc("B-01-1"))) == 2


class TestSplit:
    def test_partial_move_creates_batch(self, transfers, store, receive):
        source = receive("X", 10, "A-01-1", unit="bag", category="WIP", notes="lot 7")

        result = transfers.transfer(source.id, loc("B-01-1"), "2.5")

        assert result.kind is TransferKind.SPLIT
        new = result.destination
        assert new.id != source.id
        assert new.quantity == Decimal("2.5")
        assert (new.unit, new.category, new.notes) == ("bag", "WIP", "lot 7")
        assert result.source.quantity == Decimal("7.5")

        (move,) = _moves(store)
        assert move.batch_id == new.id
        assert move.location_info == "Moved 2.5 bag from A-1-1 to B-1-1"
        inbound = store.transactions.of_type(TransactionType.INBOUND)
        assert len(inbound) == 1
        store.verify_consistency()


class TestRejections:
    def test_same_bin(self, transfers, store, receive):
        source = receive("X", 10, "A-01-1")
        with pytest.raises(SameLocationTransferError):
            transfers.transfer(source.id, loc("A-01-1"), 1)
        assert _moves(store) == []

    def test_unknown_bin(self, transfers, receive):
        source = receive("X", 10, "A-01-1")
        with pytest.raises(UnknownBinError):
            transfers.transfer(source.id, loc("Q-01-1"), 1)

    def test_more_than_source(self, transfers, store, receive):
        source = receive("X", 10, "A-01-1")
        with pytest.raises(InsufficientStockError):
            transfers.transfer(source.id, loc("B-01-1"), 11)
        assert store.stock.require(source.id).quantity == Decimal("10")

    def test_disabled_bin_with_enforcement(self, config, products, clock):
        warehouse = build_warehouse(
            replace(config, enforce_active_bins=True), products=products, clock=clock,
        )
        stock = warehouse.store.stock
        source = stock.create_batch("X", 10, loc("A-01-1"))
        warehouse.store.catalog.toggle_status(loc("B-01-1"))

        with pytest.raises(BinDisabledError):
            warehouse.transfers.transfer(source.id, loc("B-01-1"), 5)
        assert stock.require(source.id).quantity == Decimal("10")
        assert stock.batches_at(loc("B-01-1")) == []


class TestConservationCheck:
    def test_non_conserving_plan_is_rolled_back(self, store, receive):
        source = receive("X", 10, "A-01-1")
        foreign = receive("Y", 2, "B-01-1")

        class _ForeignTargetPlanner(TransferPlanner):
            def plan(self, **kwargs):
                honest = super().plan(**kwargs)
                return replace(honest, kind=TransferKind.MERGE, target_batch_id=foreign.id)

        service = TransferService(store, planner=_ForeignTargetPlanner())
        before = store.snapshot()

        with pytest.raises(LedgerInconsistencyError) as exc_info:
            service.transfer(source.id, loc("C-01-1"), 4)

        assert exc_info.value.product_code == "X"
        assert exc_info.value.ledger_balance == Decimal("10")
        assert exc_info.value.stock_total == Decimal("6")
        assert store.snapshot() == before
        assert _moves(store) == []


class TestLogging:
    def test_transfer_completed_logged(self, transfers, receive, captured_logs):
        source = receive("X", 10, "A-01-1")
        transfers.transfer(source.id, loc("B-01-1"), 3)
        done = [r for r in captured_logs() if r["message"] == "transfer_completed"]
        assert done[0]["kind"] == "split"
        assert done[0]["quantity"] == "3"
