"""
Typed Exception Hierarchy for the Warehouse Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Stock operations fail for a handful of precise reasons (bad quantity, not
enough stock, unknown batch or bin). Callers such as forms, map views and
sync jobs need to show an exact message ("only 6 of 10 available at
A-01-1") without parsing strings. Every error therefore has:

  1. A TYPED exception class (catch by type, not message)
  2. A CODE attribute (machine-readable, API-safe)
  3. Structured DATA stored as attributes (ids, requested vs. available)

Example:
    try:
        transfers.transfer(batch_id, destination, qty)
    except InsufficientStockError as e:
        show_error(f"Only {e.available} available, tried {e.requested}")
    except WarehouseKernelError as e:
        show_error(e.code)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    WarehouseKernelError (base)
    |
    +-- QuantityError
    |   +-- InvalidQuantityError
    |   +-- InsufficientStockError
    |
    +-- LookupFailure
    |   +-- UnknownBatchError
    |   +-- UnknownBinError
    |   +-- UnknownProductError
    |   +-- UnknownPlanError
    |
    +-- CatalogError
    |   +-- DuplicateBinCodeError
    |   +-- InvalidBinCodeError
    |   +-- BinDisabledError
    |   +-- DuplicateProductCodeError
    |
    +-- LedgerError
    |   +-- LedgerInconsistencyError
    |
    +-- SnapshotError
    |   +-- SnapshotRejectedError
    |
    +-- TransferError
        +-- SameLocationTransferError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category   | Code                    | When Raised
-----------|-------------------------|------------------------------------------
Quantity   | INVALID_QUANTITY        | Zero/negative/non-finite quantity
           | INSUFFICIENT_STOCK      | Requested more than the batch holds
-----------|-------------------------|------------------------------------------
Lookup     | UNKNOWN_BATCH           | Batch id does not exist
           | UNKNOWN_BIN             | Location not in the bin catalog
           | UNKNOWN_PRODUCT         | Product code referenced nowhere
           | UNKNOWN_PLAN            | Pending pick plan id does not exist
-----------|-------------------------|------------------------------------------
Catalog    | DUPLICATE_BIN_CODE      | Two bins render the same bin code
           | INVALID_BIN_CODE        | Text is not RACK-BAY-LEVEL
           | BIN_DISABLED            | Stock sent to a disabled bin (opt-in)
           | DUPLICATE_PRODUCT_CODE  | Rename target code already exists
-----------|-------------------------|------------------------------------------
Ledger     | LEDGER_INCONSISTENT     | Replayed balance != live batch total
-----------|-------------------------|------------------------------------------
Snapshot   | SNAPSHOT_REJECTED       | Reconciliation refused a remote snapshot
-----------|-------------------------|------------------------------------------
Transfer   | SAME_LOCATION_TRANSFER  | Destination is the batch's own bin

Allocation shortfalls are NOT errors: a pick plan reports
``fulfilled < requested`` and the caller decides.

===============================================================================
"""

from decimal import Decimal


class WarehouseKernelError(Exception):
    """
    Base exception for all warehouse kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "WAREHOUSE_KERNEL_ERROR"


# Quantity-related exceptions


class QuantityError(WarehouseKernelError):
    """Base exception for quantity validation errors."""

    code: str = "QUANTITY_ERROR"


class InvalidQuantityError(QuantityError):
    """Quantity is zero, negative, or not a finite number."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, quantity: object, reason: str = "must be greater than zero"):
        self.quantity = quantity
        self.reason = reason
        super().__init__(f"Invalid quantity {quantity!r}: {reason}")


class InsufficientStockError(QuantityError):
    """Requested quantity exceeds what is available."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        requested: Decimal,
        available: Decimal,
        batch_id: str | None = None,
        product_code: str | None = None,
    ):
        self.requested = requested
        self.available = available
        self.batch_id = batch_id
        self.product_code = product_code
        subject = f"batch {batch_id}" if batch_id else f"product {product_code}"
        super().__init__(
            f"Insufficient stock in {subject}: requested {requested}, "
            f"available {available}"
        )


# Lookup exceptions


class LookupFailure(WarehouseKernelError):
    """Base exception for references to records that do not exist."""

    code: str = "LOOKUP_FAILURE"


class UnknownBatchError(LookupFailure):
    """Batch with given id was not found."""

    code: str = "UNKNOWN_BATCH"

    def __init__(self, batch_id: str):
        self.batch_id = batch_id
        super().__init__(f"Batch not found: {batch_id}")


class UnknownBinError(LookupFailure):
    """Location is not part of the bin catalog."""

    code: str = "UNKNOWN_BIN"

    def __init__(self, bin_code: str):
        self.bin_code = bin_code
        super().__init__(f"Bin not found: {bin_code}")


class UnknownProductError(LookupFailure):
    """Product code is not referenced by the master, batches, or ledger."""

    code: str = "UNKNOWN_PRODUCT"

    def __init__(self, product_code: str):
        self.product_code = product_code
        super().__init__(f"Product not found: {product_code}")


class UnknownPlanError(LookupFailure):
    """Pending pick plan with given id was not found."""

    code: str = "UNKNOWN_PLAN"

    def __init__(self, plan_id: str):
        self.plan_id = plan_id
        super().__init__(f"Pick plan not found: {plan_id}")


# Catalog exceptions


class CatalogError(WarehouseKernelError):
    """Base exception for bin and product catalog integrity errors."""

    code: str = "CATALOG_ERROR"


class DuplicateBinCodeError(CatalogError):
    """Two bins in one catalog share the same bin code."""

    code: str = "DUPLICATE_BIN_CODE"

    def __init__(self, bin_code: str):
        self.bin_code = bin_code
        super().__init__(f"Duplicate bin code in catalog: {bin_code}")


class InvalidBinCodeError(CatalogError):
    """Text does not follow the RACK-BAY-LEVEL grammar."""

    code: str = "INVALID_BIN_CODE"

    def __init__(self, text: str, reason: str):
        self.text = text
        self.reason = reason
        super().__init__(f"Invalid bin code {text!r}: {reason}")


class BinDisabledError(CatalogError):
    """Stock was directed into a disabled bin while enforcement is on."""

    code: str = "BIN_DISABLED"

    def __init__(self, bin_code: str):
        self.bin_code = bin_code
        super().__init__(f"Bin {bin_code} is disabled")


class DuplicateProductCodeError(CatalogError):
    """Product code already exists in the product master."""

    code: str = "DUPLICATE_PRODUCT_CODE"

    def __init__(self, product_code: str):
        self.product_code = product_code
        super().__init__(f"Product code already exists: {product_code}")


# Ledger exceptions


class LedgerError(WarehouseKernelError):
    """Base exception for transaction ledger errors."""

    code: str = "LEDGER_ERROR"


class LedgerInconsistencyError(LedgerError):
    """
    Replayed ledger balance does not match the live batch total.

    This means a batch was changed without its paired ledger entry (or the
    reverse). Investigate before accepting further writes.
    """

    code: str = "LEDGER_INCONSISTENT"

    def __init__(self, product_code: str, ledger_balance: Decimal, stock_total: Decimal):
        self.product_code = product_code
        self.ledger_balance = ledger_balance
        self.stock_total = stock_total
        super().__init__(
            f"Ledger balance {ledger_balance} for {product_code} does not match "
            f"stock total {stock_total}"
        )


# Snapshot exceptions


class SnapshotError(WarehouseKernelError):
    """Base exception for snapshot load/save errors."""

    code: str = "SNAPSHOT_ERROR"


class SnapshotRejectedError(SnapshotError):
    """Reconciliation policy refused to replace local state."""

    code: str = "SNAPSHOT_REJECTED"

    def __init__(self, local_batches: int, remote_batches: int, reason: str):
        self.local_batches = local_batches
        self.remote_batches = remote_batches
        self.reason = reason
        super().__init__(
            f"Snapshot rejected ({reason}): remote has {remote_batches} batches, "
            f"local has {local_batches}"
        )


# Transfer exceptions


class TransferError(WarehouseKernelError):
    """Base exception for transfers that cannot be planned."""

    code: str = "TRANSFER_ERROR"


class SameLocationTransferError(TransferError):
    """Source and destination of a transfer are the same bin."""

    code: str = "SAME_LOCATION_TRANSFER"

    def __init__(self, batch_id: str, bin_code: str):
        self.batch_id = batch_id
        self.bin_code = bin_code
        super().__init__(f"Batch {batch_id} is already at {bin_code}")
