"""
Tests for BinCatalog generation, uniqueness and status flags.
"""

import itertools

import pytest

from wms_config.bridges import build_zone_layouts
from wms_kernel.domain.locations import Level, ZoneLayout
from wms_kernel.domain.locations import parse_bin_code as loc
from wms_kernel.domain.records import Bin, BinStatus
from wms_kernel.exceptions import DuplicateBinCodeError, UnknownBinError
from wms_kernel.services.bin_catalog import BinCatalog, generate_catalog


def _counter():
    counter = itertools.count(1)
    return lambda: f"bin-{next(counter)}"


class TestGeneration:
    def test_default_layout_size(self, config):
        catalog = BinCatalog.generate(build_zone_layouts(config))
        staging = 11 * 12 + 5 * 5
        reserve = 7 * 4 + 4 * 8
        standard = 9 * 12 * 4
        assert len(catalog) == staging + reserve + standard

    def test_default_layout_order_and_codes(self, config):
        bins = generate_catalog(build_zone_layouts(config))
        assert bins[0].bin_code == "S-01-12"
        assert bins[11].bin_code == "S-01-1"
        assert loc("A-12-Floor") in {b.location for b in bins}
        assert loc("I-01-1") not in {b.location for b in bins}

    def test_deterministic(self, config):
        layouts = build_zone_layouts(config)
        first = generate_catalog(layouts, id_factory=_counter())
        second = generate_catalog(layouts, id_factory=_counter())
        assert first == second

    def test_bin_codes_unique(self, config):
        bins = generate_catalog(build_zone_layouts(config))
        codes = [b.bin_code for b in bins]
        assert len(codes) == len(set(codes))

    def test_previous_bins_keep_id_and_status(self):
        layout = ZoneLayout("A", 2, (Level(1),))
        previous = [Bin(id="keep", location=loc("A-01-1"), status=BinStatus.DISABLED)]
        bins = generate_catalog([layout], previous=previous, id_factory=_counter())
        assert bins[0] == previous[0]
        assert bins[1].id == "bin-1"

    def test_previous_bins_outside_layout_dropped(self):
        layout = ZoneLayout("A", 1, (Level(1),))
        previous = [Bin(id="gone", location=loc("Q-01-1"))]
        bins = generate_catalog([layout], previous=previous)
        assert [b.bin_code for b in bins] == ["A-01-1"]

    def test_duplicate_locations_rejected(self):
        with pytest.raises(DuplicateBinCodeError) as exc_info:
            BinCatalog([Bin("1", loc("A-01-1")), Bin("2", loc("A-1-1"))])
        assert exc_info.value.bin_code == "A-01-1"


class TestLookupAndStatus:
    def setup_method(self):
        self.catalog = BinCatalog.generate(
            [ZoneLayout("A", 2, (Level(1), Level.ground()))], id_factory=_counter(),
        )

    def test_contains_and_find_by_code(self):
        assert loc("A-02-Floor") in self.catalog
        assert self.catalog.find_by_code("A-2-Floor").location == loc("A-02-Floor")

    def test_unknown_bin(self):
        with pytest.raises(UnknownBinError):
            self.catalog.require(loc("B-01-1"))

    def test_toggle_keeps_identity(self):
        before = self.catalog.require(loc("A-01-1"))
        after = self.catalog.toggle_status(loc("A-01-1"))
        assert after.id == before.id
        assert after.status is BinStatus.DISABLED
        assert len(self.catalog.active_bins()) == 3
        assert self.catalog.toggle_status(loc("A-01-1")).is_active

    def test_toggle_unknown_bin(self):
        with pytest.raises(UnknownBinError):
            self.catalog.toggle_status(loc("B-01-1"))

    def test_set_status(self):
        updated = self.catalog.set_status(loc("A-01-1"), BinStatus.DISABLED)
        assert not updated.is_active
        assert self.catalog.set_status(loc("A-01-1"), BinStatus.DISABLED) == updated

    def test_merge_statuses_copies_only_flags(self):
        remote = [
            Bin(id="remote-id", location=loc("A-01-1"), status=BinStatus.DISABLED),
            Bin(id="other", location=loc("Z-01-1"), status=BinStatus.DISABLED),
            Bin(id="same", location=loc("A-02-1"), status=BinStatus.ACTIVE),
        ]
        changed = self.catalog.merge_statuses(remote)
        assert changed == 1
        merged = self.catalog.require(loc("A-01-1"))
        assert merged.id == "bin-1"
        assert merged.status is BinStatus.DISABLED
        assert loc("Z-01-1") not in self.catalog
