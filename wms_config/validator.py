"""
Structural validation of a WarehouseConfiguration.

Collects every problem rather than stopping at the first, so a bad file
reports all its errors at once.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from wms_config.schema import WarehouseConfiguration
from wms_kernel.domain.locations import MAX_BAY, Level, ZoneClass


@dataclass(frozen=True)
class ValidationResult:
    errors: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def validate_configuration(config: WarehouseConfiguration) -> ValidationResult:
    errors: list[str] = []
    known_classes = {c.value for c in ZoneClass}

    if not config.zones:
        errors.append("at least one zone is required")

    seen: set[str] = set()
    for zone in config.zones:
        if not zone.name.strip():
            errors.append("zone name must not be blank")
        if zone.name in seen:
            errors.append(f"duplicate zone name {zone.name!r}")
        seen.add(zone.name)

        if not 1 <= zone.bays <= MAX_BAY:
            errors.append(f"zone {zone.name}: bays must be between 1 and {MAX_BAY}")
        if zone.zone_class not in known_classes:
            errors.append(f"zone {zone.name}: unknown zone_class {zone.zone_class!r}")
        if not zone.levels:
            errors.append(f"zone {zone.name}: levels must not be empty")

        parsed: list[Level] = []
        for raw in zone.levels:
            try:
                parsed.append(Level.parse(raw))
            except ValueError as e:
                errors.append(f"zone {zone.name}: {e}")
        if len(set(parsed)) != len(parsed):
            errors.append(f"zone {zone.name}: duplicate levels")

    ratio = config.reconciliation.shrink_ratio
    if not Decimal("0") < ratio <= Decimal("1"):
        errors.append(f"reconciliation.shrink_ratio must be in (0, 1], got {ratio}")
    if config.reconciliation.min_local_batches < 0:
        errors.append("reconciliation.min_local_batches must be >= 0")

    for rack in config.legacy.ground_to_level_one:
        if rack not in seen:
            errors.append(f"legacy.ground_to_level_one names unknown zone {rack!r}")
    for alias, target in config.legacy.rack_aliases:
        if target not in seen:
            errors.append(f"legacy alias {alias!r} points to unknown zone {target!r}")

    return ValidationResult(errors=tuple(errors))
