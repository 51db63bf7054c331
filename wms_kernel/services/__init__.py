"""Services for the warehouse kernel (write side)."""

from wms_kernel.services.bin_catalog import BinCatalog, generate_catalog
from wms_kernel.services.inventory_store import InventoryStore, RenameResult
from wms_kernel.services.stock_ledger import BatchMutation, StockLedger
from wms_kernel.services.transaction_ledger import BalancedEntry, TransactionLedger

__all__ = [
    "BalancedEntry",
    "BatchMutation",
    "BinCatalog",
    "InventoryStore",
    "RenameResult",
    "StockLedger",
    "TransactionLedger",
    "generate_catalog",
]
