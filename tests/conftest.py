"""
Pytest fixtures for the warehouse kernel test suite.

Provides:
- Structured logging configuration and log capture
- A deterministic clock
- A warehouse built from the default configuration
- Small helpers for locations and seeded batches
"""

import json
import logging
from decimal import Decimal
from io import StringIO

import pytest

from wms_config import get_active_config
from wms_kernel.domain.clock import DeterministicClock
from wms_kernel.domain.locations import Location, parse_bin_code
from wms_kernel.domain.records import Product
from wms_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from wms_services.warehouse import build_warehouse


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture wms_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, transfers):
            transfers.transfer(...)
            logs = captured_logs()
            assert any(r["message"] == "transfer_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("wms_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Domain helpers
# =============================================================================


def _loc(code: str) -> Location:
    """Shorthand for parse_bin_code in tests."""
    return parse_bin_code(code)


@pytest.fixture
def clock():
    return DeterministicClock()


@pytest.fixture
def products():
    return [
        Product(code="X", name="Sushi Rice", default_unit="kg", default_category="RAW"),
        Product(code="Y", name="Nori Sheets", default_unit="pack", default_category="RAW",
                min_stock_level=Decimal("50")),
        Product(code="Z", name="Soy Sauce", default_unit="btl", default_category="FG"),
    ]


# =============================================================================
# Warehouse fixtures
# =============================================================================


@pytest.fixture(scope="session")
def config():
    return get_active_config()


@pytest.fixture
def warehouse(config, products, clock):
    return build_warehouse(config, products=products, clock=clock)


@pytest.fixture
def store(warehouse):
    return warehouse.store


@pytest.fixture
def stock(store):
    return store.stock


@pytest.fixture
def outbound(warehouse):
    return warehouse.outbound


@pytest.fixture
def transfers(warehouse):
    return warehouse.transfers


@pytest.fixture
def receive(stock, clock):
    """
    Create a batch and advance the clock so ledger dates are strictly
    increasing in receipt order.
    """

    def _receive(product_code: str, qty, code: str, **kwargs):
        batch = stock.create_batch(product_code, Decimal(str(qty)), _loc(code), **kwargs)
        clock.tick()
        return batch

    return _receive
