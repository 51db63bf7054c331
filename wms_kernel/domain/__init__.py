"""
Pure domain layer.

Value objects and records with NO dependencies on:
- ORM (SQLAlchemy)
- Configuration
- I/O

All domain objects are immutable. Time comes only from an injected Clock.
"""

from wms_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from wms_kernel.domain.locations import (
    GROUND_LABEL,
    Level,
    Location,
    ZoneClass,
    ZoneLayout,
    parse_bin_code,
)
from wms_kernel.domain.records import (
    Bin,
    BinStatus,
    InventorySnapshot,
    Product,
    ReferenceReport,
    StockBatch,
    Transaction,
    TransactionType,
)
from wms_kernel.domain.values import ZERO, as_quantity, positive_quantity

__all__ = [
    "Bin",
    "BinStatus",
    "Clock",
    "DeterministicClock",
    "GROUND_LABEL",
    "InventorySnapshot",
    "Level",
    "Location",
    "Product",
    "ReferenceReport",
    "StockBatch",
    "SystemClock",
    "Transaction",
    "TransactionType",
    "ZERO",
    "ZoneClass",
    "ZoneLayout",
    "as_quantity",
    "parse_bin_code",
    "positive_quantity",
]
