"""
Tests for InventoryStore: units of work, snapshot load, cascading rename
and ledger/state consistency.
"""

from dataclasses import replace
from decimal import Decimal

import pytest

from wms_kernel.domain.locations import parse_bin_code as loc
from wms_kernel.domain.records import (
    Bin,
    InventorySnapshot,
    Product,
    StockBatch,
    Transaction,
    TransactionType,
)
from wms_kernel.exceptions import (
    DuplicateBinCodeError,
    DuplicateProductCodeError,
    LedgerInconsistencyError,
    UnknownProductError,
)


class _Boom(Exception):
    pass


class TestUnitOfWork:
    def test_exception_restores_all_state(self, store, receive):
        kept = receive("X", 10, "A-01-1")
        catalog_before = store.catalog.bins()

        with pytest.raises(_Boom):
            with store.unit_of_work():
                store.stock.adjust_quantity(kept.id, -4)
                store.stock.create_batch("Y", 3, loc("B-01-1"))
                store.catalog.toggle_status(loc("A-01-1"))
                store.upsert_product(Product("N", "New"))
                raise _Boom()

        assert store.stock.batches() == [kept]
        assert store.catalog.bins() == catalog_before
        assert store.product("N") is None
        assert len(store.transactions) == 1

    def test_nested_blocks_roll_back_together(self, store, receive):
        receive("X", 10, "A-01-1")
        with pytest.raises(_Boom):
            with store.unit_of_work():
                store.stock.create_batch("X", 1, loc("B-01-1"))
                with store.unit_of_work():
                    store.stock.create_batch("X", 1, loc("C-01-1"))
                raise _Boom()
        assert len(store.stock) == 1
        store.verify_consistency()

    def test_outer_rollback_undoes_rename(self, store, receive):
        receive("X", 10, "A-01-1")
        with pytest.raises(_Boom):
            with store.unit_of_work():
                store.rename_product("X", "X2")
                raise _Boom()

        assert {b.product_code for b in store.stock.batches()} == {"X"}
        assert {t.product_code for t in store.transactions} == {"X"}
        assert store.product("X") is not None
        assert store.product("X2") is None
        store.verify_consistency()

    def test_outer_rollback_undoes_snapshot_load(self, store, receive):
        receive("X", 10, "A-01-1")
        before = store.snapshot()
        with pytest.raises(_Boom):
            with store.unit_of_work():
                store.load_snapshot(InventorySnapshot(products=(), transactions=()))
                raise _Boom()

        assert store.snapshot() == before
        store.verify_consistency()

    def test_success_keeps_changes(self, store):
        with store.unit_of_work():
            store.stock.create_batch("X", 2, loc("A-01-1"))
        assert store.stock.total_quantity("X") == Decimal("2")


class TestProductMaster:
    def test_upsert_replaces(self, store):
        store.upsert_product(Product("X", "Premium Rice", "kg"))
        assert store.product("X").name == "Premium Rice"

    def test_known_from_ledger_only(self, store, receive):
        batch = receive("Q", 1, "A-01-1")
        store.stock.delete_batch(batch.id)
        assert store.is_known_product("Q")
        assert not store.is_known_product("W")


class TestRenameProduct:
    def test_rename_cascades(self, store, receive):
        a = receive("X", 10, "A-01-1")
        receive("X", 5, "B-01-1")
        store.stock.adjust_quantity(a.id, -2)

        result = store.rename_product("X", "X-RICE")
        assert (result.batches_updated, result.transactions_updated) == (2, 3)
        assert store.product("X") is None
        assert store.product("X-RICE").name == "Sushi Rice"
        assert {b.product_code for b in store.stock.batches()} == {"X-RICE"}
        assert {t.product_code for t in store.transactions} == {"X-RICE"}
        store.verify_consistency()

    def test_rename_to_existing_code(self, store):
        with pytest.raises(DuplicateProductCodeError):
            store.rename_product("X", "Y")
        assert store.product("X") is not None

    def test_rename_to_code_only_in_ledger(self, store, receive):
        batch = receive("Q", 1, "A-01-1")
        store.stock.delete_batch(batch.id)
        with pytest.raises(DuplicateProductCodeError):
            store.rename_product("X", "Q")

    def test_rename_unknown(self, store):
        with pytest.raises(UnknownProductError):
            store.rename_product("NOPE", "NEW")

    def test_blank_new_code(self, store):
        with pytest.raises(ValueError):
            store.rename_product("X", "  ")

    def test_same_code_is_noop(self, store):
        result = store.rename_product("X", "X")
        assert result.batches_updated == 0
        assert store.product("X") is not None


class TestSnapshots:
    def test_round_trip_through_snapshot(self, store, receive):
        receive("X", 10, "A-01-1")
        receive("Y", 4, "B-02-Floor")
        snapshot = store.snapshot()

        store.stock.create_batch("Z", 1, loc("C-01-1"))
        report = store.load_snapshot(snapshot)

        assert report.is_clean
        assert store.snapshot() == snapshot

    def test_empty_bins_keep_current_catalog(self, store):
        size = len(store.catalog)
        store.load_snapshot(InventorySnapshot(products=(Product("X", "Rice"),)))
        assert len(store.catalog) == size
        assert [p.code for p in store.products()] == ["X"]

    def test_orphans_are_reported_not_dropped(self, store, clock):
        orphan = StockBatch(
            id="o1", product_code="GHOST", quantity=Decimal("2"), unit="pcs",
            category="", locations=(loc("Q-09-1"),), updated_at=clock.now(),
        )
        unplaced = replace(orphan, id="o2", product_code="X", locations=())
        stray = Transaction(
            id="t1", date=clock.now(), type=TransactionType.INBOUND,
            product_code="W", quantity=Decimal("1"), unit="pcs", location_info="",
        )
        snapshot = InventorySnapshot(
            products=tuple(store.products()),
            batches=(orphan, unplaced),
            transactions=(stray,),
        )

        report = store.load_snapshot(snapshot)

        assert report.orphan_product_batches == ("o1",)
        assert report.orphan_location_batches == ("o1", "o2")
        assert report.orphan_product_transactions == ("t1",)
        assert len(store.stock) == 2

    def test_invalid_snapshot_leaves_store_untouched(self, store, receive):
        receive("X", 10, "A-01-1")
        before = store.snapshot()
        bad = InventorySnapshot(bins=(Bin("1", loc("A-01-1")), Bin("2", loc("A-01-1"))))

        with pytest.raises(DuplicateBinCodeError):
            store.load_snapshot(bad)
        assert store.snapshot() == before

    def test_unsupplied_collections_keep_local_copies(self, store, receive):
        batch = receive("X", 10, "A-01-1")
        products_before = store.products()
        ledger_before = store.transactions.entries()

        report = store.load_snapshot(InventorySnapshot(batches=(batch,)))

        assert report.is_clean
        assert store.products() == products_before
        assert store.transactions.entries() == ledger_before
        store.verify_consistency()

    def test_supplied_empty_collections_replace(self, store, receive):
        batch = receive("X", 10, "A-01-1")
        store.load_snapshot(InventorySnapshot(products=(), batches=(batch,), transactions=()))

        assert store.products() == []
        assert len(store.transactions) == 0
        assert store.discrepancies() == {"X": (Decimal("0"), Decimal("10"))}

    def test_loaded_products_feed_ledger_entries(self, store):
        store.load_snapshot(InventorySnapshot(products=(Product("K", "Kombu", "sheet"),)))
        store.stock.create_batch("K", 1, loc("A-01-1"))
        assert store.transactions.entries()[-1].unit == "sheet"


class TestConsistency:
    def test_consistent_after_operations(self, store, receive):
        a = receive("X", 10, "A-01-1")
        store.stock.adjust_quantity(a.id, -3)
        store.stock.relocate(a.id, loc("B-01-1"))
        store.stock.record_count(a.id, 6)
        assert store.discrepancies() == {}
        store.verify_consistency()

    def test_unpaired_change_detected(self, store, receive):
        a = receive("X", 10, "A-01-1")
        store.stock.adjust_quantity(a.id, 5, record=False)

        assert store.discrepancies() == {"X": (Decimal("10"), Decimal("15"))}
        with pytest.raises(LedgerInconsistencyError) as exc_info:
            store.verify_consistency()
        assert exc_info.value.product_code == "X"
