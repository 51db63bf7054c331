"""
WarehouseConfiguration schema.

Typed, frozen form of the YAML configuration. The loader parses YAML into
these types; bridges turn them into kernel and engine inputs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class ZoneDef:
    """One zone: name, bay count, ordered levels and allocation class."""

    name: str
    bays: int
    levels: tuple[str, ...]
    zone_class: str = "standard"


@dataclass(frozen=True)
class ReconciliationSettings:
    """Threshold for rejecting a remote snapshot that would shrink local state."""

    shrink_ratio: Decimal = Decimal("0.5")
    min_local_batches: int = 5


@dataclass(frozen=True)
class LegacySettings:
    """Rewrites applied to historical bin addresses on snapshot load."""

    rack_aliases: tuple[tuple[str, str], ...] = ()
    ground_to_level_one: tuple[str, ...] = ()

    def alias_map(self) -> dict[str, str]:
        return dict(self.rack_aliases)


@dataclass(frozen=True)
class WarehouseConfiguration:
    """The runtime configuration artifact returned by get_active_config()."""

    config_id: str
    version: int
    zones: tuple[ZoneDef, ...]
    enforce_active_bins: bool = False
    reconciliation: ReconciliationSettings = field(default_factory=ReconciliationSettings)
    legacy: LegacySettings = field(default_factory=LegacySettings)
    checksum: str = ""

    @property
    def zone_names(self) -> tuple[str, ...]:
        return tuple(z.name for z in self.zones)

    def zone(self, name: str) -> ZoneDef | None:
        for z in self.zones:
            if z.name == name:
                return z
        return None
