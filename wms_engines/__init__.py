"""
Module: wms_engines
Responsibility:
    Package entrypoint that re-exports the pure planning engines. This is
    the canonical import surface for wms_services.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import wms_kernel/domain, wms_kernel/exceptions and
    wms_kernel/logging_config (and sibling engine modules).
    MUST NOT import wms_services or wms_config.

Invariants enforced:
    - Purity: engines NEVER read the clock and never mutate the batches
      they are given.
    - Decimal-only quantities.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Every planning call is traced via ``@traced_engine`` (see
    ``wms_engines.tracer``), emitting WMS_ENGINE_TRACE records.
"""

from wms_engines.allocation import OutboundAllocator, PickLine, PickPlan
from wms_engines.priority import EMPTY_SCORE, LocationPriorityScorer
from wms_engines.tracer import compute_input_fingerprint, traced_engine
from wms_engines.transfer import TransferKind, TransferPlan, TransferPlanner

__all__ = [
    "EMPTY_SCORE",
    "LocationPriorityScorer",
    "OutboundAllocator",
    "PickLine",
    "PickPlan",
    "TransferKind",
    "TransferPlan",
    "TransferPlanner",
    "compute_input_fingerprint",
    "traced_engine",
]
