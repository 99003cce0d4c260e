"""Unit tests for SPC evaluation and capability summaries."""

import math

import pytest

from fabwatch.core.engine.spc_evaluator import (
    SPCStatus,
    Zone,
    classify_zone,
    evaluate,
    evaluate_value,
    summarize,
)


class TestZoneClassification:
    """Zones split target-to-limit distance into thirds (temperature: target 25, UCL 27, LCL 23)."""

    @pytest.mark.parametrize(
        "value,zone",
        [
            (25.5, Zone.A_UPPER),
            (26.0, Zone.B_UPPER),
            (26.8, Zone.C_UPPER),
            (27.5, Zone.OUT_UPPER),
            (24.5, Zone.A_LOWER),
            (24.0, Zone.B_LOWER),
            (23.2, Zone.C_LOWER),
            (22.5, Zone.OUT_LOWER),
        ],
    )
    def test_zones(self, temperature_spec, value, zone):
        assert classify_zone(value, temperature_spec) == zone

    def test_value_on_target_is_lower_a(self, temperature_spec):
        assert classify_zone(25.0, temperature_spec) == Zone.A_LOWER

    def test_band_edges_are_inclusive(self, unit_sigma_spec):
        """With UCL 3 above target, thirds fall on whole numbers."""
        assert classify_zone(26.0, unit_sigma_spec) == Zone.A_UPPER
        assert classify_zone(27.0, unit_sigma_spec) == Zone.B_UPPER
        assert classify_zone(28.0, unit_sigma_spec) == Zone.C_UPPER
        assert classify_zone(24.0, unit_sigma_spec) == Zone.A_LOWER
        assert classify_zone(22.0, unit_sigma_spec) == Zone.C_LOWER

    def test_zone_values(self):
        assert Zone.OUT_UPPER.value == "OUT+"
        assert Zone.A_LOWER.value == "A-"


class TestEvaluateValue:
    """Test per-value status and deviation."""

    def test_in_control(self, temperature_spec):
        result = evaluate_value(25.0, temperature_spec)
        assert result.deviation == 0.0
        assert result.out_of_control is False
        assert result.out_of_spec is False
        assert result.status == SPCStatus.NORMAL

    def test_out_of_control_is_warning(self, temperature_spec):
        result = evaluate_value(27.5, temperature_spec)
        assert result.out_of_control is True
        assert result.out_of_spec is False
        assert result.status == SPCStatus.WARNING

    def test_out_of_spec_is_critical(self, temperature_spec):
        result = evaluate_value(28.5, temperature_spec)
        assert result.out_of_control is True
        assert result.out_of_spec is True
        assert result.status == SPCStatus.CRITICAL
        assert result.zone == Zone.OUT_UPPER

    def test_control_limit_itself_is_in_control(self, temperature_spec):
        assert evaluate_value(27.0, temperature_spec).out_of_control is False

    def test_deviation_percent(self, temperature_spec):
        result = evaluate_value(26.0, temperature_spec)
        assert result.deviation == pytest.approx(1.0)
        assert result.deviation_percent == pytest.approx(4.0)

    def test_to_dict_uses_enum_values(self, temperature_spec):
        data = evaluate_value(28.5, temperature_spec).to_dict()
        assert data["zone"] == "OUT+"
        assert data["status"] == "critical"


class TestEvaluate:
    """Test evaluation of whole readings."""

    def test_evaluates_every_known_parameter(self, catalog, make_reading):
        reading = make_reading({"temperature": 25.0, "pressure": 112.0})
        results = evaluate(reading, catalog)

        assert set(results) == {"temperature", "pressure"}
        assert results["pressure"].status == SPCStatus.CRITICAL

    def test_skips_missing_and_unknown(self, catalog, make_reading):
        reading = make_reading({"temperature": 25.0, "unknown": 1.0, "pressure": None})
        results = evaluate(reading, catalog)

        assert set(results) == {"temperature"}


class TestSummarize:
    """Test capability summaries."""

    def test_empty_input(self, temperature_spec):
        summary = summarize([], temperature_spec)
        assert summary.sample_size == 0
        assert summary.mean == 0.0
        assert summary.cpk == 0.0

    def test_constant_values_give_zero_indices(self, temperature_spec):
        summary = summarize([25.0, 25.0, 25.0], temperature_spec)
        assert summary.mean == 25.0
        assert summary.std_dev == 0.0
        assert summary.cp == 0.0
        assert summary.cpk == 0.0
        assert summary.ppk == 0.0
        assert summary.sample_size == 3

    def test_single_value(self, temperature_spec):
        summary = summarize([26.0], temperature_spec)
        assert summary.cp == 0.0
        assert summary.range == 0.0
        assert summary.sample_size == 1

    def test_capability_indices(self, temperature_spec):
        summary = summarize([24.0, 26.0], temperature_spec)

        sigma = math.sqrt(2.0)
        assert summary.mean == pytest.approx(25.0)
        assert summary.std_dev == pytest.approx(sigma)
        assert summary.cp == pytest.approx(6.0 / (6 * sigma))
        assert summary.cpk == pytest.approx(3.0 / (3 * sigma))
        # Population sigma is 1.0
        assert summary.ppk == pytest.approx(1.0)
        assert summary.min == 24.0
        assert summary.max == 26.0
        assert summary.range == 2.0

    def test_out_of_limit_percentages(self, temperature_spec):
        summary = summarize([25.0, 28.5, 21.5, 25.0], temperature_spec)
        assert summary.out_of_control_percent == pytest.approx(50.0)
        assert summary.out_of_spec_percent == pytest.approx(50.0)
