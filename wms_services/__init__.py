"""
wms_services -- stateful orchestration over the kernel and engines.

Outbound picking, transfers, snapshot reconciliation, SQL snapshot
persistence, and the ``build_warehouse()`` wiring entrypoint.
"""

from wms_services.outbound_service import OutboundResult, OutboundService
from wms_services.reconciliation import (
    LegacyLocationRules,
    ReconciliationDecision,
    ReconciliationOutcome,
    SnapshotReconciler,
)
from wms_services.snapshot_repository import SnapshotRepository
from wms_services.transfer_service import TransferResult, TransferService
from wms_services.warehouse import Warehouse, build_warehouse

__all__ = [
    "LegacyLocationRules",
    "OutboundResult",
    "OutboundService",
    "ReconciliationDecision",
    "ReconciliationOutcome",
    "SnapshotReconciler",
    "SnapshotRepository",
    "TransferResult",
    "TransferService",
    "Warehouse",
    "build_warehouse",
]
