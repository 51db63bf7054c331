"""
Module: wms_engines.priority
Responsibility:
    Rank storage locations by a fixed weighting so that staging and reserve
    areas drain before standard racks.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import wms_kernel/domain.

Invariants enforced:
    - Total: every valid Location scores a finite integer.
    - Dominance: a difference in a more significant term outweighs any
      combination of less significant terms
      (zone class > level > bay > rack name).
    - An empty location list scores EMPTY_SCORE, larger than any real score.

Failure modes:
    - None. Racks missing from the zone table score as STANDARD with the
      worst rack rank.

Usage:
    scorer = LocationPriorityScorer({"S": ZoneClass.STAGING, "A": ZoneClass.STANDARD})
    scorer.best_score(batch.locations)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from wms_kernel.domain.locations import Location, ZoneClass

ZONE_WEIGHT = 100_000_000
LEVEL_WEIGHT = 1_000_000
BAY_WEIGHT = 1_000
UNKNOWN_RACK_RANK = 999

# Larger than any score a real location can produce.
EMPTY_SCORE = 10 * ZONE_WEIGHT


class LocationPriorityScorer:
    """
    Deterministic location ranking; lower is drained first.

    Contract:
        ``score(location)`` combines
        ``zone_rank*1e8 + level_ordinal*1e6 + bay*1e3 + rack_rank``.
        Ground ranks below every numeric level. ``rack_rank`` is the rack's
        alphabetical position among configured zones.
    Non-goals:
        Weighting by quantity, age or pick-path distance.
    """

    def __init__(self, zone_classes: Mapping[str, ZoneClass]):
        self._zone_classes = {name: ZoneClass(cls) for name, cls in zone_classes.items()}
        self._rack_ranks = {name: i for i, name in enumerate(sorted(self._zone_classes))}

    def zone_class(self, rack: str) -> ZoneClass:
        return self._zone_classes.get(rack, ZoneClass.STANDARD)

    def score(self, location: Location) -> int:
        return (
            self.zone_class(location.rack).rank * ZONE_WEIGHT
            + location.level.ordinal * LEVEL_WEIGHT
            + location.bay * BAY_WEIGHT
            + self._rack_ranks.get(location.rack, UNKNOWN_RACK_RANK)
        )

    def best_score(self, locations: Iterable[Location]) -> int:
        """Lowest score among ``locations``; EMPTY_SCORE when there are none."""
        return min((self.score(loc) for loc in locations), default=EMPTY_SCORE)

    def sort_locations(self, locations: Iterable[Location]) -> list[Location]:
        return sorted(locations, key=self.score)
