"""
Config -> Kernel Bridges.

Functions that convert a WarehouseConfiguration into kernel and engine
inputs. These live in wms_config (the producer) because the kernel must
NEVER import wms_config.

Usage:
    from wms_config.bridges import build_zone_layouts, build_scorer

    config = get_active_config()
    catalog = BinCatalog.generate(build_zone_layouts(config))
    scorer = build_scorer(config)
"""

from __future__ import annotations

from wms_config.schema import WarehouseConfiguration
from wms_engines.priority import LocationPriorityScorer
from wms_kernel.domain.locations import Level, ZoneClass, ZoneLayout


def build_zone_layouts(config: WarehouseConfiguration) -> tuple[ZoneLayout, ...]:
    """One ZoneLayout per configured zone, in configuration order."""
    return tuple(
        ZoneLayout(
            name=zone.name,
            bay_count=zone.bays,
            levels=tuple(Level.parse(level) for level in zone.levels),
            zone_class=ZoneClass(zone.zone_class),
        )
        for zone in config.zones
    )


def build_zone_classes(config: WarehouseConfiguration) -> dict[str, ZoneClass]:
    return {zone.name: ZoneClass(zone.zone_class) for zone in config.zones}


def build_scorer(config: WarehouseConfiguration) -> LocationPriorityScorer:
    return LocationPriorityScorer(build_zone_classes(config))
