"""
wms_config -- single public entrypoint for warehouse configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``. Returns a frozen ``WarehouseConfiguration``.
    YAML loading is internal tooling and never exposed to callers.

Architecture position:
    Configuration -- sits above ``wms_kernel`` and below ``wms_services``.
    The kernel MUST NEVER import from ``wms_config``; bridges in this
    package translate configuration into kernel-compatible inputs.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - Validation before use: unique zone names, bay counts in range,
      non-empty unique levels, known zone classes.
    - Deterministic checksum: the same YAML always produces the same
      SHA-256 checksum.

Failure modes:
    - ``FileNotFoundError`` -- configuration file missing.
    - ``yaml.YAMLError`` -- malformed YAML.
    - ``ValueError`` -- validation failures (all errors listed).

Audit relevance:
    Every successful call emits a ``WMS_CONFIG_TRACE`` log entry with the
    config id, version, checksum and zone count.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path

from wms_config.loader import compute_checksum, load_yaml_file, parse_configuration
from wms_config.schema import WarehouseConfiguration
from wms_config.validator import validate_configuration

_logger = logging.getLogger("wms_kernel.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(config_path: Path | str | None = None) -> WarehouseConfiguration:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: Override path to a configuration YAML file.
            Defaults to wms_config/sets/default.yaml.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If configuration validation fails.
    """
    path = Path(config_path) if config_path is not None else _DEFAULT_CONFIG_PATH
    data = load_yaml_file(path)
    config = parse_configuration(data)

    validation = validate_configuration(config)
    if not validation.is_valid:
        raise ValueError(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in validation.errors)
        )

    config = replace(config, checksum=compute_checksum(data))

    _logger.info(
        "WMS_CONFIG_TRACE",
        extra={
            "trace_type": "WMS_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "zone_count": len(config.zones),
            "source": str(path),
        },
    )
    return config


__all__ = ["WarehouseConfiguration", "get_active_config"]
