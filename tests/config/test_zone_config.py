"""
Tests for warehouse configuration loading, validation and bridges.
"""

import textwrap
from decimal import Decimal

import pytest
import yaml

from wms_config import get_active_config
from wms_config.bridges import build_scorer, build_zone_classes, build_zone_layouts
from wms_config.loader import parse_configuration
from wms_config.validator import validate_configuration
from wms_kernel.domain.locations import Level, ZoneClass
from wms_kernel.domain.locations import parse_bin_code as loc


def _write(tmp_path, body: str):
    path = tmp_path / "warehouse.yaml"
    path.write_text(textwrap.dedent(body))
    return path


class TestDefaultConfiguration:
    def test_zones(self, config):
        assert config.config_id == "default-warehouse"
        assert config.zone_names[:4] == ("S", "T", "R", "Z")
        assert "I" not in config.zone_names
        assert len(config.zones) == 13
        assert config.zone("S").zone_class == "staging"
        assert config.zone("A").levels == ("3", "2", "1", "Floor")
        assert config.zone("NOPE") is None

    def test_reconciliation_and_legacy(self, config):
        assert config.reconciliation.shrink_ratio == Decimal("0.5")
        assert config.reconciliation.min_local_batches == 5
        assert config.legacy.alias_map()["STG"] == "S"
        assert config.enforce_active_bins is False

    def test_checksum_is_deterministic(self, config):
        assert len(config.checksum) == 64
        assert get_active_config().checksum == config.checksum

    def test_trace_logged(self, captured_logs):
        get_active_config()
        traces = [r for r in captured_logs() if r["message"] == "WMS_CONFIG_TRACE"]
        assert traces[0]["config_id"] == "default-warehouse"
        assert traces[0]["zone_count"] == 13


class TestCustomFiles:
    def test_minimal_file(self, tmp_path):
        path = _write(tmp_path, """
            config_id: small
            zones:
              A:
                bays: 2
                levels: [2, 1, Floor]
        """)
        config = get_active_config(path)
        assert config.version == 1
        assert config.zone("A").zone_class == "standard"

    def test_all_errors_reported(self, tmp_path):
        path = _write(tmp_path, """
            config_id: broken
            zones:
              A:
                bays: 0
                levels: [1, 1]
                zone_class: overflow
            reconciliation:
              shrink_ratio: 1.5
            legacy:
              rack_aliases:
                OLD: Q
        """)
        with pytest.raises(ValueError) as exc_info:
            get_active_config(path)
        message = str(exc_info.value)
        assert "bays must be between" in message
        assert "duplicate levels" in message
        assert "unknown zone_class" in message
        assert "shrink_ratio" in message
        assert "unknown zone 'Q'" in message

    def test_bad_level_reported(self):
        config = parse_configuration({
            "config_id": "x",
            "zones": {"A": {"bays": 1, "levels": ["Basement"]}},
        })
        result = validate_configuration(config)
        assert not result.is_valid
        assert any("Basement" in e for e in result.errors)

    def test_non_integer_bays(self):
        with pytest.raises(ValueError):
            parse_configuration({"config_id": "x", "zones": {"A": {"bays": "many", "levels": [1]}}})

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml")

    def test_malformed_yaml(self, tmp_path):
        path = _write(tmp_path, "zones: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            get_active_config(path)


class TestBridges:
    def test_layouts_follow_configuration(self, config):
        layouts = build_zone_layouts(config)
        assert [l.name for l in layouts] == list(config.zone_names)
        a = next(l for l in layouts if l.name == "A")
        assert a.levels[-1] == Level.ground()
        assert a.zone_class is ZoneClass.STANDARD

    def test_zone_classes(self, config):
        classes = build_zone_classes(config)
        assert classes["T"] is ZoneClass.STAGING
        assert classes["Z"] is ZoneClass.RESERVE

    def test_scorer_prefers_staging(self, config):
        scorer = build_scorer(config)
        assert scorer.score(loc("T-05-5")) < scorer.score(loc("Z-01-1")) < scorer.score(loc("A-01-Floor"))
