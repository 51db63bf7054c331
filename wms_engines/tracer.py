"""
wms_engines.tracer -- invocation tracing for the pure planners.

Responsibility:
    ``@traced_engine`` wraps a planner method and, after it returns, emits
    one WMS_ENGINE_TRACE record naming the engine, its version, a
    fingerprint of the selected keyword inputs and the wall time taken.

Architecture position:
    Engines -- support code. Emits a log record and nothing else; logs on
    ``wms_kernel.engines.tracer`` through the kernel logger factory.

Invariants enforced:
    - Same inputs, same fingerprint: mappings are keyed in sorted order,
      sequences keep their order, Decimals and batches render through a
      stable text form.
    - A planner that raises emits no trace; the exception propagates
      untouched.
"""

from __future__ import annotations

import functools
import hashlib
import time
from collections.abc import Callable, Mapping, Sequence
from typing import Any, TypeVar

from wms_kernel.domain.records import StockBatch
from wms_kernel.logging_config import get_logger

logger = get_logger("engines.tracer")

TRACE_TYPE = "WMS_ENGINE_TRACE"
FINGERPRINT_LENGTH = 16

F = TypeVar("F", bound=Callable[..., Any])


def _stable_text(value: Any) -> str:
    if value is None:
        return "~"
    if isinstance(value, StockBatch):
        locations = ",".join(loc.bin_code for loc in value.locations)
        return f"batch({value.id};{value.product_code};{value.quantity};{locations})"
    if isinstance(value, Mapping):
        inner = ",".join(
            f"{key}={_stable_text(value[key])}" for key in sorted(value, key=str)
        )
        return "{" + inner + "}"
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        return "[" + ",".join(_stable_text(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: Sequence[str],
    kwargs: Mapping[str, Any],
) -> str:
    """Truncated SHA-256 over ``name=value`` for each named keyword argument."""
    digest = hashlib.sha256()
    for name in fingerprint_fields:
        digest.update(f"{name}={_stable_text(kwargs.get(name))};".encode())
    return digest.hexdigest()[:FINGERPRINT_LENGTH]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: Sequence[str] = (),
) -> Callable[[F], F]:
    """Emit a WMS_ENGINE_TRACE record after each successful call."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(TRACE_TYPE, extra={
                "trace_type": TRACE_TYPE,
                "engine_name": engine_name,
                "engine_version": engine_version,
                "input_fingerprint": (
                    compute_input_fingerprint(fingerprint_fields, kwargs)
                    if fingerprint_fields else ""
                ),
                "duration_ms": round(elapsed_ms, 3),
                "function": func.__qualname__,
            })
            return result

        return wrapper  # type: ignore[return-value]

    return decorator
