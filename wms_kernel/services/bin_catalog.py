"""
Module: wms_kernel.services.bin_catalog
Responsibility:
    Hold the universe of valid storage locations, generated deterministically
    from the zone-configuration table, and manage the advisory active/disabled
    flag on each bin.
Architecture position:
    Kernel > Services. May import domain/ only.

Invariants enforced:
    - UNIQUE_BIN_CODES: every (rack, bay, level) appears once; a duplicate
      raises DuplicateBinCodeError at construction.
    - Generation is deterministic: same layouts -> same bins in same order.
    - Toggling only flips the status flag; the bin keeps its id and address.

Failure modes:
    - DuplicateBinCodeError on duplicate locations.
    - UnknownBinError from ``require``/``toggle_status`` for unknown locations.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import replace
from uuid import uuid4

from wms_kernel.domain.locations import Location, ZoneLayout, parse_bin_code
from wms_kernel.domain.records import Bin, BinStatus
from wms_kernel.exceptions import DuplicateBinCodeError, UnknownBinError
from wms_kernel.logging_config import get_logger

logger = get_logger("services.bin_catalog")


def _new_bin_id() -> str:
    return str(uuid4())


def generate_catalog(
    layouts: Sequence[ZoneLayout],
    previous: Iterable[Bin] = (),
    id_factory: Callable[[], str] = _new_bin_id,
) -> list[Bin]:
    """
    Enumerate every (zone, bay, level) combination defined by ``layouts``.

    Bins present in ``previous`` keep their id and status, so regenerating
    after a configuration change does not reset disabled flags. Bins in
    ``previous`` that the layouts no longer define are dropped.
    """
    carried = {b.location: b for b in previous}
    bins: list[Bin] = []
    for layout in layouts:
        for location in layout.locations():
            existing = carried.get(location)
            if existing is not None:
                bins.append(existing)
            else:
                bins.append(Bin(id=id_factory(), location=location))

    logger.info("bin_catalog_generated", extra={
        "zone_count": len(layouts),
        "bin_count": len(bins),
        "carried_over": sum(1 for b in bins if b.location in carried),
    })
    return bins


class BinCatalog:
    """
    The set of valid bins, keyed by location.

    Contract:
        Disabled bins remain structurally valid destinations; whether they
        may receive stock is decided by the stock ledger's enforcement flag.
    """

    def __init__(self, bins: Iterable[Bin] = ()):
        self._bins: dict[Location, Bin] = {}
        for b in bins:
            if b.location in self._bins:
                logger.error("bin_catalog_duplicate", extra={"bin_code": b.bin_code})
                raise DuplicateBinCodeError(b.bin_code)
            self._bins[b.location] = b

    @classmethod
    def generate(
        cls,
        layouts: Sequence[ZoneLayout],
        previous: Iterable[Bin] = (),
        id_factory: Callable[[], str] = _new_bin_id,
    ) -> BinCatalog:
        return cls(generate_catalog(layouts, previous=previous, id_factory=id_factory))

    # -- queries ----------------------------------------------------------

    def __len__(self) -> int:
        return len(self._bins)

    def __iter__(self) -> Iterator[Bin]:
        return iter(self._bins.values())

    def __contains__(self, location: object) -> bool:
        return location in self._bins

    def bins(self) -> list[Bin]:
        return list(self._bins.values())

    def active_bins(self) -> list[Bin]:
        return [b for b in self._bins.values() if b.is_active]

    def get(self, location: Location) -> Bin | None:
        return self._bins.get(location)

    def require(self, location: Location) -> Bin:
        found = self._bins.get(location)
        if found is None:
            raise UnknownBinError(location.bin_code)
        return found

    def find_by_code(self, bin_code: str) -> Bin:
        """Look up a bin by its code (padded or unpadded bay)."""
        return self.require(parse_bin_code(bin_code))

    # -- mutations --------------------------------------------------------

    def toggle_status(self, location: Location) -> Bin:
        """Flip active/disabled on one bin and return the updated bin."""
        updated = self.require(location).toggled()
        self._bins[location] = updated
        logger.info("bin_status_toggled", extra={
            "bin_code": updated.bin_code,
            "status": updated.status.value,
        })
        return updated

    def set_status(self, location: Location, status: BinStatus) -> Bin:
        current = self.require(location)
        if current.status is status:
            return current
        updated = replace(current, status=status)
        self._bins[location] = updated
        return updated

    def merge_statuses(self, remote_bins: Iterable[Bin]) -> int:
        """
        Copy only the status flag from ``remote_bins`` onto matching bins.

        Ids and the configured layout stay local. Remote bins that the local
        catalog does not define are ignored. Returns the number of bins whose
        status changed.
        """
        changed = 0
        for remote in remote_bins:
            local = self._bins.get(remote.location)
            if local is not None and local.status is not remote.status:
                self._bins[remote.location] = replace(local, status=remote.status)
                changed += 1
        if changed:
            logger.info("bin_statuses_merged", extra={"changed": changed})
        return changed

    # -- store-internal ---------------------------------------------------

    def _snapshot_state(self) -> dict[Location, Bin]:
        return dict(self._bins)

    def _replace_all(self, bins: dict[Location, Bin]) -> None:
        """Swap the whole bin map. InventoryStore only."""
        self._bins = dict(bins)
