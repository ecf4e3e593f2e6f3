"""Tests for tier configuration parsing, normalization and default fallback."""

from __future__ import annotations

import json
from decimal import Decimal

import pytest
from structlog.testing import capture_logs

from aggregate_discount.config import Segment
from aggregate_discount.engine.tier_config import (
    TierConfigError,
    default_tier_config,
    load_tier_config,
    parse_tier_config,
)


def _codes(diagnostics) -> list[str]:
    return [d.code for d in diagnostics]


class TestParseTierConfig:
    def test_parses_camel_case_json(self, scenario_config: str) -> None:
        config, diagnostics = parse_tier_config(scenario_config)

        table = config.for_segment(Segment.GUIDEFITTERS)
        assert [t.min_quantity for t in table.tiers] == [12, 48]
        assert [t.percent for t in table.tiers] == [Decimal("14.07"), Decimal("29.5")]
        assert config.source == "metafield"
        assert diagnostics == []

    def test_parses_snake_case_mapping(self) -> None:
        config, _ = parse_tier_config(
            {"resellers": {"tiers": [{"min_quantity": 48, "discount_percent": "9.1"}]}}
        )
        assert config.for_segment(Segment.RESELLERS).tiers[0].percent == Decimal("9.1")

    def test_parses_short_keys_and_base_percent(self, price_anchored_tiers: dict) -> None:
        config, _ = parse_tier_config(price_anchored_tiers)

        table = config.for_segment(Segment.GUIDEFITTERS)
        assert table.base_percent == Decimal("22")
        assert [(t.min_quantity, t.percent) for t in table.tiers] == [
            (12, Decimal("33")),
            (48, Decimal("45")),
        ]

    def test_float_percent_keeps_exact_decimal(self, scenario_tiers: dict) -> None:
        config, _ = parse_tier_config(json.dumps(scenario_tiers))
        assert config.for_segment(Segment.GUIDEFITTERS).tiers[0].percent == Decimal("14.07")

    def test_tiers_sorted_ascending(self) -> None:
        config, _ = parse_tier_config(
            {"guidefitters": {"tiers": [
                {"min": 48, "percent": 29.5},
                {"min": 6, "percent": 5},
                {"min": 12, "percent": 14.07},
            ]}}
        )
        assert [t.min_quantity for t in config.for_segment(Segment.GUIDEFITTERS).tiers] == [6, 12, 48]

    def test_duplicate_threshold_keeps_last(self) -> None:
        config, diagnostics = parse_tier_config(
            {"guidefitters": {"tiers": [
                {"min": 12, "percent": 10},
                {"min": 12, "percent": 14.07},
            ]}}
        )
        tiers = config.for_segment(Segment.GUIDEFITTERS).tiers
        assert len(tiers) == 1
        assert tiers[0].percent == Decimal("14.07")
        assert _codes(diagnostics) == ["config_tier_duplicate"]

    def test_invalid_tiers_dropped(self) -> None:
        config, diagnostics = parse_tier_config(
            {"guidefitters": {"tiers": [
                {"min": -12, "percent": 10},
                {"min": 0, "percent": 10},
                {"min": 24, "percent": 100},
                {"min": 36, "percent": "abc"},
                {"percent": 20},
                "not a tier",
                {"min": 12, "percent": 14.07},
            ]}}
        )
        tiers = config.for_segment(Segment.GUIDEFITTERS).tiers
        assert [t.min_quantity for t in tiers] == [12]
        assert _codes(diagnostics) == ["config_tier_invalid"] * 6

    def test_segment_with_no_valid_tiers_kept_empty(self) -> None:
        config, diagnostics = parse_tier_config(
            {"guidefitters": {"tiers": [{"min": -1, "percent": 5}]}}
        )
        assert config.for_segment(Segment.GUIDEFITTERS).tiers == ()
        assert "config_tier_invalid" in _codes(diagnostics)

    def test_tiers_not_a_list(self) -> None:
        config, diagnostics = parse_tier_config({"guidefitters": {"tiers": "12:14.07"}})
        assert config.for_segment(Segment.GUIDEFITTERS).tiers == ()
        assert _codes(diagnostics) == ["config_tiers_invalid"]

    def test_invalid_base_percent_ignored(self) -> None:
        config, diagnostics = parse_tier_config(
            {"guidefitters": {"basePercent": 120, "tiers": [{"min": 12, "percent": 14.07}]}}
        )
        table = config.for_segment(Segment.GUIDEFITTERS)
        assert table.base_percent is None
        assert len(table.tiers) == 1
        assert _codes(diagnostics) == ["config_base_percent_invalid"]

    def test_unknown_segment_ignored(self) -> None:
        config, diagnostics = parse_tier_config(
            {
                "distributors": {"tiers": [{"min": 10, "percent": 5}]},
                "resellers": {"tiers": [{"min": 48, "percent": 9.1}]},
            }
        )
        assert set(config.segments) == {Segment.RESELLERS}
        assert _codes(diagnostics) == ["config_segment_unknown"]

    def test_segment_keys_case_insensitive(self) -> None:
        config, _ = parse_tier_config({"Resellers": {"tiers": [{"min": 48, "percent": 9.1}]}})
        assert Segment.RESELLERS in config.segments

    def test_segment_entry_not_object(self) -> None:
        config, diagnostics = parse_tier_config(
            {"guidefitters": [1, 2], "resellers": {"tiers": [{"min": 48, "percent": 9.1}]}}
        )
        assert Segment.GUIDEFITTERS not in config.segments
        assert _codes(diagnostics) == ["config_segment_invalid"]


class TestParseTierConfigErrors:
    def test_invalid_json_raises(self) -> None:
        with pytest.raises(TierConfigError, match="not valid JSON"):
            parse_tier_config("{guidefitters: ")

    def test_non_object_raises(self) -> None:
        with pytest.raises(TierConfigError, match="must be an object"):
            parse_tier_config("[1, 2, 3]")

    def test_no_known_segment_raises(self) -> None:
        with pytest.raises(TierConfigError, match="no known segment"):
            parse_tier_config("{}")

    def test_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_tier_config("null")


class TestDefaultTierConfig:
    def test_default_tables(self) -> None:
        config = default_tier_config()

        guide = config.for_segment(Segment.GUIDEFITTERS)
        assert [(t.min_quantity, t.percent) for t in guide.tiers] == [
            (12, Decimal("14.07")),
            (48, Decimal("29.5")),
        ]
        resellers = config.for_segment(Segment.RESELLERS)
        assert [(t.min_quantity, t.percent) for t in resellers.tiers] == [(48, Decimal("9.1"))]
        assert config.source == "default"


class TestLoadTierConfig:
    def test_valid_setting_used(self, scenario_config: str) -> None:
        config, diagnostics = load_tier_config(scenario_config)
        assert config.source == "metafield"
        assert diagnostics == []

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_missing_setting_falls_back(self, raw) -> None:
        config, diagnostics = load_tier_config(raw)
        assert config.source == "default"
        assert _codes(diagnostics) == ["config_missing"]

    @pytest.mark.parametrize("raw", ["{not json", "42", '"text"', "{}", '{"wholesale": {}}'])
    def test_malformed_setting_falls_back(self, raw: str) -> None:
        config, diagnostics = load_tier_config(raw)
        assert config.source == "default"
        assert _codes(diagnostics) == ["config_malformed"]
        assert config == default_tier_config()

    def test_fallback_logged_as_warning(self) -> None:
        with capture_logs() as logs:
            load_tier_config("{not json")

        fallback = [log for log in logs if log["event"] == "config_malformed"]
        assert len(fallback) == 1
        assert fallback[0]["log_level"] == "warning"
        assert "using built-in default" in fallback[0]["message"]

    def test_accepts_parsed_mapping(self, scenario_tiers: dict) -> None:
        config, _ = load_tier_config(scenario_tiers)
        assert config.source == "metafield"
        assert Segment.RESELLERS in config.segments
