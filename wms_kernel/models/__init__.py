"""ORM rows for the persisted inventory snapshot."""

from wms_kernel.models.snapshot import BatchRow, BinRow, ProductRow, TransactionRow

__all__ = ["BatchRow", "BinRow", "ProductRow", "TransactionRow"]
