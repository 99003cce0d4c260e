"""Western Electric pattern rules for non-random behavior.

This module provides four pattern rules as pluggable rule classes that
inspect the most recent points of a parameter series. Violations are
diagnostic only; they never feed alert generation or drift verdicts.

Sigma for the zone tests is derived from the control limits as
``(ucl - target) / 3``.

References:
    - Western Electric Company, "Statistical Quality Control Handbook" (1956)
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from fabwatch.core.catalog import ParameterSpec

# Number of trailing points the rules look at
PATTERN_WINDOW = 9


@dataclass
class PatternViolation:
    """A triggered pattern rule.

    Attributes:
        rule_id: Rule number (1-4)
        rule_name: Human-readable rule name
        message: Description of the violation
        values: The points involved, oldest first
    """
    rule_id: int
    rule_name: str
    message: str
    values: list[float] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "rule_name": self.rule_name,
            "message": self.message,
            "values": list(self.values),
        }


class PatternRule(Protocol):
    """Protocol for pattern rule implementations."""

    @property
    def rule_id(self) -> int:
        """Rule number (1-4)."""
        ...

    @property
    def rule_name(self) -> str:
        """Human-readable rule name."""
        ...

    def check(self, recent: Sequence[float], spec: ParameterSpec) -> PatternViolation | None:
        """Check the rule against the trailing window.

        Args:
            recent: The most recent points, oldest first
            spec: Parameter spec with target and control limits

        Returns:
            PatternViolation if triggered, None otherwise
        """
        ...


class Rule1BeyondLimits:
    """Rule 1: Latest point beyond a control limit."""

    rule_id = 1
    rule_name = "Beyond Limits"

    def check(self, recent: Sequence[float], spec: ParameterSpec) -> PatternViolation | None:
        latest = recent[-1]
        if latest > spec.ucl or latest < spec.lcl:
            return PatternViolation(
                rule_id=self.rule_id,
                rule_name=self.rule_name,
                message=f"Point at {latest:.4f} is beyond control limits",
                values=[latest],
            )
        return None


class Rule2SameSide:
    """Rule 2: Nine consecutive points on the same side of target.

    Points exactly on target break the run.
    """

    rule_id = 2
    rule_name = "Run"

    def check(self, recent: Sequence[float], spec: ParameterSpec) -> PatternViolation | None:
        last_9 = list(recent[-9:])
        if len(last_9) < 9:
            return None

        all_above = all(v > spec.target for v in last_9)
        all_below = all(v < spec.target for v in last_9)
        if all_above or all_below:
            side = "above" if all_above else "below"
            return PatternViolation(
                rule_id=self.rule_id,
                rule_name=self.rule_name,
                message=f"9 consecutive points {side} target",
                values=last_9,
            )
        return None


class Rule3Trend:
    """Rule 3: Six consecutive points strictly increasing or decreasing."""

    rule_id = 3
    rule_name = "Trend"

    def check(self, recent: Sequence[float], spec: ParameterSpec) -> PatternViolation | None:
        last_6 = list(recent[-6:])
        if len(last_6) < 6:
            return None

        increasing = all(last_6[i] < last_6[i + 1] for i in range(5))
        decreasing = all(last_6[i] > last_6[i + 1] for i in range(5))
        if increasing or decreasing:
            direction = "increasing" if increasing else "decreasing"
            return PatternViolation(
                rule_id=self.rule_id,
                rule_name=self.rule_name,
                message=f"6 consecutive points {direction}",
                values=last_6,
            )
        return None


class Rule4TwoOfThree:
    """Rule 4: Two of the last three points beyond 2 sigma on the same side."""

    rule_id = 4
    rule_name = "Two of Three"

    def check(self, recent: Sequence[float], spec: ParameterSpec) -> PatternViolation | None:
        last_3 = list(recent[-3:])
        if len(last_3) < 3:
            return None

        sigma = (spec.ucl - spec.target) / 3
        upper = spec.target + 2 * sigma
        lower = spec.target - 2 * sigma

        above = sum(1 for v in last_3 if v > upper)
        below = sum(1 for v in last_3 if v < lower)
        if above >= 2 or below >= 2:
            side = "above" if above >= 2 else "below"
            return PatternViolation(
                rule_id=self.rule_id,
                rule_name=self.rule_name,
                message=f"2 of 3 points beyond 2 sigma {side} target",
                values=last_3,
            )
        return None


class PatternRuleLibrary:
    """Registry of the four pattern rules.

    Example:
        >>> library = PatternRuleLibrary()
        >>> violations = library.check_all(values, spec)
        >>> [v.rule_id for v in violations]
        [2]
    """

    def __init__(self) -> None:
        self._rules: dict[int, PatternRule] = {}
        for rule in (Rule1BeyondLimits(), Rule2SameSide(), Rule3Trend(), Rule4TwoOfThree()):
            self._rules[rule.rule_id] = rule

    def check_all(self, values: Sequence[float], spec: ParameterSpec) -> list[PatternViolation]:
        """Check every rule against the trailing window of a series.

        Args:
            values: Full series for one parameter, oldest first
            spec: Parameter spec

        Returns:
            Triggered violations in rule order; empty when fewer than
            PATTERN_WINDOW points are available
        """
        if len(values) < PATTERN_WINDOW:
            return []

        recent = list(values[-PATTERN_WINDOW:])

        violations = []
        for rule_id in sorted(self._rules):
            result = self._rules[rule_id].check(recent, spec)
            if result is not None:
                violations.append(result)
        return violations
