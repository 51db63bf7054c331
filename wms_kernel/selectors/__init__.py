"""Selectors for the warehouse kernel (read side)."""

from wms_kernel.selectors.stock_selector import (
    BinOccupancy,
    MoverRow,
    ProductSummary,
    StockSelector,
)

__all__ = ["BinOccupancy", "MoverRow", "ProductSummary", "StockSelector"]
