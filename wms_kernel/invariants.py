"""
Kernel Invariants Contract.

These invariants are structural law. They are hardcoded in the stock
ledger, transaction ledger and store. No configuration setting may
override them.

This module exists solely to declare these invariants explicitly. The
enforcement is distributed across StockLedger, TransactionLedger,
BinCatalog, InventoryStore and TransferService.
"""

from enum import Enum, unique


@unique
class KernelInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel.

    Each value names one structural guarantee that the kernel provides
    unconditionally. Configuration may influence *where* stock may go, but
    never *whether* these rules apply.
    """

    CONSERVATION = "conservation"
    """A transfer never changes the total quantity of a product across all
    batches. Enforced by TransferService."""

    POSITIVE_BATCHES = "positive_batches"
    """A live batch always has quantity > 0. Any operation that drives a
    batch to zero deletes it. Enforced by StockLedger."""

    LEDGER_PAIRING = "ledger_pairing"
    """Every change to a batch's quantity or location is paired with exactly
    one ledger entry in the same unit of work. Enforced by StockLedger and
    InventoryStore.unit_of_work()."""

    LEDGER_CONSISTENCY = "ledger_consistency"
    """For every product, the replayed ledger balance equals the sum of live
    batch quantities. Checked by InventoryStore.verify_consistency()."""

    APPEND_ONLY = "append_only"
    """Transactions are frozen once appended; the ledger exposes no update
    or delete. Enforced by TransactionLedger."""

    SINGLE_BATCH_PER_BIN = "single_batch_per_bin"
    """Transfers merge into an existing batch of the same product at the
    destination rather than creating a second one. Enforced by
    TransferPlanner."""

    UNIQUE_BIN_CODES = "unique_bin_codes"
    """Every (rack, bay, level) triple appears once in the bin catalog.
    Enforced by BinCatalog."""


# All invariants as a frozenset for programmatic checks.
ALL_KERNEL_INVARIANTS: frozenset[KernelInvariant] = frozenset(KernelInvariant)

# The kernel package may not import from these packages.
# This is enforced by tests/architecture/test_kernel_boundary.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "wms_engines",
    "wms_services",
    "wms_config",
)
