"""Unit tests for Western Electric pattern rules.

Temperature spec: target 25, UCL 27, so the rule sigma is 2/3 and the
2-sigma line sits at 26.333.
"""

from fabwatch.core.engine.pattern_rules import PATTERN_WINDOW, PatternRuleLibrary

ALTERNATING = [25.1, 24.9, 25.1, 24.9, 25.1, 24.9, 25.1, 24.9]


def triggered(values, spec):
    return [v.rule_id for v in PatternRuleLibrary().check_all(values, spec)]


class TestPatternRules:
    """Test each rule in isolation."""

    def test_stable_process_has_no_violations(self, temperature_spec):
        assert triggered(ALTERNATING + [25.1], temperature_spec) == []

    def test_too_few_points(self, temperature_spec):
        """Fewer than the window size never triggers, even beyond limits."""
        values = [27.5] * (PATTERN_WINDOW - 1)
        assert triggered(values, temperature_spec) == []

    def test_rule1_beyond_limits(self, temperature_spec):
        violations = PatternRuleLibrary().check_all(ALTERNATING + [27.5], temperature_spec)

        assert [v.rule_id for v in violations] == [1]
        assert violations[0].values == [27.5]
        assert violations[0].rule_name == "Beyond Limits"

    def test_rule2_same_side(self, temperature_spec):
        values = [25.3, 25.5] * 4 + [25.3]
        assert triggered(values, temperature_spec) == [2]

    def test_rule2_point_on_target_breaks_run(self, temperature_spec):
        values = [25.3, 25.5] * 4 + [25.0]
        assert triggered(values, temperature_spec) == []

    def test_rule3_trend(self, temperature_spec):
        values = [25.0, 24.9, 25.1, 24.8, 25.0, 25.1, 25.2, 25.3, 25.4]
        violations = PatternRuleLibrary().check_all(values, temperature_spec)

        assert [v.rule_id for v in violations] == [3]
        assert "increasing" in violations[0].message

    def test_rule3_decreasing(self, temperature_spec):
        values = [25.0, 25.1, 24.9, 25.2, 25.0, 24.9, 24.8, 24.7, 24.6]
        violations = PatternRuleLibrary().check_all(values, temperature_spec)

        assert [v.rule_id for v in violations] == [3]
        assert "decreasing" in violations[0].message

    def test_rule4_two_of_three(self, temperature_spec):
        values = ALTERNATING[:6] + [26.5, 25.0, 26.6]
        assert triggered(values, temperature_spec) == [4]

    def test_rule4_needs_same_side(self, temperature_spec):
        values = ALTERNATING[:6] + [26.5, 25.0, 23.5]
        assert triggered(values, temperature_spec) == []


class TestPatternRuleLibrary:
    """Test running the full rule set."""

    def test_only_trailing_window_is_checked(self, temperature_spec):
        """An old excursion outside the last 9 points is ignored."""
        values = [27.5] + ALTERNATING + [25.1]
        assert triggered(values, temperature_spec) == []

    def test_violations_in_rule_order(self, temperature_spec):
        values = [25.1, 25.2, 25.3, 25.4, 25.5, 25.6, 25.7, 26.5, 27.5]
        assert triggered(values, temperature_spec) == [1, 2, 3, 4]

    def test_short_series_not_checked(self, temperature_spec):
        assert triggered([27.5] * 8, temperature_spec) == []
