"""
Hypothesis-based fuzzing of the stock kernel.

Random sequences of receipts, picks, transfers, adjustments and counts are
applied through the public services. Rejections are expected; whatever
succeeds must leave the store internally consistent:

- Replayed ledger balances equal live batch totals per product.
- No live batch holds a zero or negative quantity.
- A transfer never changes the product's total quantity.
- Bin-code parsing either yields a Location or raises InvalidBinCodeError.
"""

from decimal import Decimal

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from wms_kernel.domain.locations import Location, parse_bin_code
from wms_kernel.domain.records import Product
from wms_kernel.domain.values import ZERO
from wms_kernel.exceptions import InvalidBinCodeError, WarehouseKernelError
from wms_services.warehouse import build_warehouse

BIN_CODES = ["S-01-1", "T-02-3", "R-03-2", "A-01-1", "B-02-Floor", "J-12-3"]

PRODUCTS = (
    Product("X", "Sushi Rice", "kg", "RAW"),
    Product("Y", "Nori Sheets", "pack", "RAW"),
)

operations = st.lists(
    st.tuples(
        st.sampled_from(["receive", "pick", "transfer", "adjust", "count", "reserve"]),
        st.sampled_from(["X", "Y"]),
        st.integers(min_value=1, max_value=20),
        st.sampled_from(BIN_CODES),
    ),
    max_size=30,
)


def _apply(warehouse, op, product, qty, code):
    stock = warehouse.store.stock
    batches = stock.batches_for_product(product)
    location = parse_bin_code(code)

    if op == "receive":
        stock.create_batch(product, qty, location)
    elif op == "pick":
        plan = warehouse.outbound.plan(product, qty)
        if plan.lines:
            warehouse.outbound.apply(plan)
    elif op == "reserve":
        warehouse.outbound.reserve(product, qty)
    elif op == "transfer" and batches:
        before = stock.total_quantity(product)
        try:
            warehouse.transfers.transfer(batches[0].id, location, qty)
        finally:
            assert stock.total_quantity(product) == before
    elif op == "adjust" and batches:
        stock.adjust_quantity(batches[-1].id, -qty)
    elif op == "count" and batches:
        stock.record_count(batches[0].id, qty)


class TestRandomOperationSequences:
    @given(ops=operations)
    @settings(
        max_examples=150,
        deadline=None,
        suppress_health_check=[HealthCheck.too_slow],
    )
    def test_store_stays_consistent(self, config, ops):
        warehouse = build_warehouse(config, products=PRODUCTS)
        for op in ops:
            try:
                _apply(warehouse, *op)
            except WarehouseKernelError:
                pass

        store = warehouse.store
        store.verify_consistency()
        assert all(b.quantity > ZERO for b in store.stock.batches())
        for batch in store.stock.batches():
            assert batch.primary_location in store.catalog

    @given(ops=operations)
    @settings(
        max_examples=50,
        deadline=None,
        suppress_health_check=[HealthCheck.too_slow],
    )
    def test_snapshot_reload_is_lossless(self, config, ops):
        warehouse = build_warehouse(config, products=PRODUCTS)
        for op in ops:
            try:
                _apply(warehouse, *op)
            except WarehouseKernelError:
                pass

        snapshot = warehouse.store.snapshot()
        fresh = build_warehouse(config, products=PRODUCTS)
        report = fresh.store.load_snapshot(snapshot)

        assert report.is_clean
        assert fresh.store.stock.totals() == warehouse.store.stock.totals()
        fresh.store.verify_consistency()


class TestBinCodeParsing:
    @given(text=st.text(max_size=30))
    @settings(max_examples=300)
    def test_parse_never_crashes(self, text):
        try:
            result = parse_bin_code(text)
        except InvalidBinCodeError:
            return
        assert isinstance(result, Location)

    @given(
        rack=st.text(alphabet="ABCDEFGHJSTRZ-", min_size=1, max_size=6).filter(
            lambda r: r.strip("-") == r
        ),
        bay=st.integers(min_value=1, max_value=999),
        level=st.one_of(st.none(), st.integers(min_value=1, max_value=99)),
    )
    @settings(max_examples=200)
    def test_bin_code_reparses(self, rack, bay, level):
        location = Location(rack, bay, "Floor" if level is None else level)
        assert parse_bin_code(location.bin_code) == location
        assert parse_bin_code(location.legacy_key) == location


class TestQuantityFuzzing:
    @given(qty=st.decimals(min_value=Decimal("0.001"), max_value=Decimal("1000"), places=3))
    @settings(max_examples=100, deadline=None)
    def test_split_conserves_fractional_quantities(self, config, qty):
        warehouse = build_warehouse(config, products=PRODUCTS)
        stock = warehouse.store.stock
        source = stock.create_batch("X", Decimal("1000"), parse_bin_code("A-01-1"))

        warehouse.transfers.transfer(source.id, parse_bin_code("B-01-1"), qty)

        assert stock.total_quantity("X") == Decimal("1000")
        warehouse.store.verify_consistency()
