"""
Warehouse Kernel

An in-memory, single-writer stock engine with:
- Deterministic bin catalog generated from zone configuration
- Batch-level stock ledger that never holds empty batches
- Append-only transaction ledger with chronological balance replay
- Atomic units of work (no partial state on failure)
"""

__version__ = "0.1.0"
