"""
wms_services.warehouse -- Wiring entrypoint.

Builds a ready-to-use warehouse from configuration: catalog, store,
scorer, allocator, and the services over them.

Usage:
    from wms_services.warehouse import build_warehouse

    wh = build_warehouse()
    batch = wh.store.stock.create_batch("X", 10, parse_bin_code("A-01-1"))
    plan = wh.outbound.plan("X", 4)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from wms_config import get_active_config
from wms_config.bridges import build_scorer, build_zone_layouts
from wms_config.schema import WarehouseConfiguration
from wms_engines.allocation import OutboundAllocator
from wms_engines.priority import LocationPriorityScorer
from wms_engines.transfer import TransferPlanner
from wms_kernel.domain.clock import Clock
from wms_kernel.domain.records import Product
from wms_kernel.logging_config import get_logger
from wms_kernel.selectors.stock_selector import StockSelector
from wms_kernel.services.bin_catalog import BinCatalog
from wms_kernel.services.inventory_store import InventoryStore
from wms_services.outbound_service import OutboundService
from wms_services.reconciliation import SnapshotReconciler
from wms_services.transfer_service import TransferService

logger = get_logger("services.warehouse")


@dataclass
class Warehouse:
    config: WarehouseConfiguration
    store: InventoryStore
    scorer: LocationPriorityScorer
    outbound: OutboundService
    transfers: TransferService
    reconciler: SnapshotReconciler
    selector: StockSelector


def build_warehouse(
    config: WarehouseConfiguration | None = None,
    products: Iterable[Product] = (),
    clock: Clock | None = None,
) -> Warehouse:
    """Assemble a warehouse from ``config`` (default: the active config)."""
    config = config or get_active_config()
    catalog = BinCatalog.generate(build_zone_layouts(config))
    store = InventoryStore(
        catalog,
        products=products,
        clock=clock,
        enforce_active_bins=config.enforce_active_bins,
    )
    scorer = build_scorer(config)
    warehouse = Warehouse(
        config=config,
        store=store,
        scorer=scorer,
        outbound=OutboundService(store, OutboundAllocator(scorer)),
        transfers=TransferService(store, TransferPlanner()),
        reconciler=SnapshotReconciler.from_config(config),
        selector=StockSelector(store),
    )
    logger.info("warehouse_built", extra={
        "config_id": config.config_id,
        "checksum": config.checksum,
        "bin_count": len(catalog),
    })
    return warehouse
