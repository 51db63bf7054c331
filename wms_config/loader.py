"""
Configuration Loader (``wms_config.loader``).

Responsibility
--------------
Loads the YAML configuration file and parses it into the frozen
``wms_config.schema`` types. This is build/test tooling; runtime callers
use ``wms_config.get_active_config()``.

Invariants enforced
-------------------
* Required keys raise ``KeyError``; there are no silent defaults for them.
* ``standard_racks`` expands into one ZoneDef per rack name, in order.
* ``compute_checksum`` is a deterministic SHA-256 over canonical JSON.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Wrong value types  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from wms_config.schema import (
    LegacySettings,
    ReconciliationSettings,
    WarehouseConfiguration,
    ZoneDef,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _parse_levels(name: str, raw: Any) -> tuple[str, ...]:
    if not isinstance(raw, (list, tuple)):
        raise ValueError(f"Zone {name}: levels must be a list, got {raw!r}")
    return tuple(str(level) for level in raw)


def parse_zone(name: str, data: dict[str, Any]) -> ZoneDef:
    """Parse one entry of the ``zones`` mapping."""
    bays = data["bays"]
    if isinstance(bays, bool) or not isinstance(bays, int):
        raise ValueError(f"Zone {name}: bays must be an integer, got {bays!r}")
    return ZoneDef(
        name=str(name),
        bays=bays,
        levels=_parse_levels(name, data["levels"]),
        zone_class=str(data.get("zone_class", "standard")),
    )


def parse_standard_racks(data: dict[str, Any]) -> list[ZoneDef]:
    """Expand the ``standard_racks`` block into one ZoneDef per rack."""
    bays = data["bays"]
    levels = data["levels"]
    return [
        parse_zone(str(name), {"bays": bays, "levels": levels, "zone_class": "standard"})
        for name in data["names"]
    ]


def parse_reconciliation(data: dict[str, Any] | None) -> ReconciliationSettings:
    if not data:
        return ReconciliationSettings()
    return ReconciliationSettings(
        shrink_ratio=Decimal(str(data.get("shrink_ratio", "0.5"))),
        min_local_batches=int(data.get("min_local_batches", 5)),
    )


def parse_legacy(data: dict[str, Any] | None) -> LegacySettings:
    if not data:
        return LegacySettings()
    aliases = data.get("rack_aliases") or {}
    return LegacySettings(
        rack_aliases=tuple((str(k), str(v)) for k, v in aliases.items()),
        ground_to_level_one=tuple(str(r) for r in data.get("ground_to_level_one") or ()),
    )


def parse_configuration(data: dict[str, Any]) -> WarehouseConfiguration:
    """Parse a whole configuration document (without checksum)."""
    zones = [parse_zone(name, z) for name, z in (data.get("zones") or {}).items()]
    if data.get("standard_racks"):
        zones.extend(parse_standard_racks(data["standard_racks"]))
    return WarehouseConfiguration(
        config_id=str(data["config_id"]),
        version=int(data.get("version", 1)),
        zones=tuple(zones),
        enforce_active_bins=bool(data.get("enforce_active_bins", False)),
        reconciliation=parse_reconciliation(data.get("reconciliation")),
        legacy=parse_legacy(data.get("legacy")),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
