"""SPC evaluation of individual readings against catalog limits.

This module provides:
- Per-reading evaluation: deviation, zone, out-of-control and out-of-spec flags
- Batch capability summaries (Cp, Cpk, Ppk) over a window of values

Evaluation is a pure function of the reading and the catalog. It holds no
state and never raises for missing values; a parameter without a value (or
without a catalog entry) is simply absent from the result.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from fabwatch.core.catalog import Catalog, ParameterSpec
from fabwatch.core.providers.protocol import Reading
from fabwatch.utils.statistics import mean, population_std, safe_divide, sample_std


class Zone(Enum):
    """Distance band between target and the relevant control limit.

    The distance from target to the control limit on the value's side is
    split into thirds: A is the third nearest the target, B the middle
    third, C the outer third, and OUT lies beyond the control limit.
    """
    A_UPPER = "A+"
    B_UPPER = "B+"
    C_UPPER = "C+"
    OUT_UPPER = "OUT+"
    A_LOWER = "A-"
    B_LOWER = "B-"
    C_LOWER = "C-"
    OUT_LOWER = "OUT-"


class SPCStatus(Enum):
    """Status of a single parameter value."""
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass
class SPCResult:
    """SPC evaluation of one parameter value.

    Attributes:
        parameter: Catalog key of the parameter
        value: Measured value
        deviation: value - target
        deviation_percent: deviation as a percentage of target
        zone: Zone classification relative to the control limits
        out_of_control: True if value is outside [lcl, ucl]
        out_of_spec: True if value is outside [lsl, usl]
        status: normal, warning (out of control) or critical (out of spec)
    """
    parameter: str
    value: float
    deviation: float
    deviation_percent: float
    zone: Zone
    out_of_control: bool
    out_of_spec: bool
    status: SPCStatus

    def to_dict(self) -> dict[str, Any]:
        return {
            "parameter": self.parameter,
            "value": self.value,
            "deviation": self.deviation,
            "deviation_percent": self.deviation_percent,
            "zone": self.zone.value,
            "out_of_control": self.out_of_control,
            "out_of_spec": self.out_of_spec,
            "status": self.status.value,
        }


@dataclass
class CapabilitySummary:
    """Capability statistics for a window of values.

    Attributes:
        mean: Arithmetic mean
        std_dev: Sample standard deviation (n-1)
        min: Minimum value
        max: Maximum value
        range: max - min
        cp: Potential capability (usl - lsl) / 6 sigma
        cpk: Actual capability, distance to the nearer spec limit / 3 sigma
        ppk: Cpk computed with the overall (population) standard deviation
        out_of_control_percent: Share of values outside the control limits
        out_of_spec_percent: Share of values outside the spec limits
        sample_size: Number of values summarized
    """
    mean: float = 0.0
    std_dev: float = 0.0
    min: float = 0.0
    max: float = 0.0
    range: float = 0.0
    cp: float = 0.0
    cpk: float = 0.0
    ppk: float = 0.0
    out_of_control_percent: float = 0.0
    out_of_spec_percent: float = 0.0
    sample_size: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "mean": self.mean,
            "std_dev": self.std_dev,
            "min": self.min,
            "max": self.max,
            "range": self.range,
            "cp": self.cp,
            "cpk": self.cpk,
            "ppk": self.ppk,
            "out_of_control_percent": self.out_of_control_percent,
            "out_of_spec_percent": self.out_of_spec_percent,
            "sample_size": self.sample_size,
        }


def classify_zone(value: float, spec: ParameterSpec) -> Zone:
    """Classify a value into a zone relative to target and control limits.

    Band edges are inclusive towards the target: a value exactly one third
    of the way to the UCL is still in zone A. A value exactly on target
    is classified A-.

    Examples:
        >>> classify_zone(25.5, temperature_spec)   # target 25, ucl 27
        <Zone.A_UPPER: 'A+'>
        >>> classify_zone(27.5, temperature_spec)
        <Zone.OUT_UPPER: 'OUT+'>
    """
    if value > spec.target:
        span = spec.ucl - spec.target
        distance = value - spec.target
        if distance <= span / 3:
            return Zone.A_UPPER
        if distance <= 2 * span / 3:
            return Zone.B_UPPER
        if distance <= span:
            return Zone.C_UPPER
        return Zone.OUT_UPPER

    span = spec.target - spec.lcl
    distance = spec.target - value
    if distance <= span / 3:
        return Zone.A_LOWER
    if distance <= 2 * span / 3:
        return Zone.B_LOWER
    if distance <= span:
        return Zone.C_LOWER
    return Zone.OUT_LOWER


def evaluate_value(value: float, spec: ParameterSpec) -> SPCResult:
    """Evaluate one value against its parameter spec."""
    deviation = value - spec.target
    out_of_control = value > spec.ucl or value < spec.lcl
    out_of_spec = value > spec.usl or value < spec.lsl

    status = SPCStatus.NORMAL
    if out_of_control:
        status = SPCStatus.WARNING
    if out_of_spec:
        status = SPCStatus.CRITICAL

    return SPCResult(
        parameter=spec.key,
        value=value,
        deviation=deviation,
        deviation_percent=safe_divide(deviation, spec.target) * 100,
        zone=classify_zone(value, spec),
        out_of_control=out_of_control,
        out_of_spec=out_of_spec,
        status=status,
    )


def evaluate(reading: Reading, specs: Catalog) -> dict[str, SPCResult]:
    """Evaluate every parameter in a reading.

    Args:
        reading: The reading to score
        specs: Parameter catalog

    Returns:
        Mapping of parameter key to SPCResult. Parameters whose value is
        missing (None) or that have no catalog entry are skipped.
    """
    results: dict[str, SPCResult] = {}
    for key, value in reading.parameters.items():
        spec = specs.get(key)
        if spec is None or value is None:
            continue
        results[key] = evaluate_value(float(value), spec)
    return results


def summarize(values: Sequence[float], spec: ParameterSpec) -> CapabilitySummary:
    """Compute capability statistics for a window of values.

    Cp and Cpk use the sample standard deviation (n-1). Ppk uses the
    overall population standard deviation. When the relevant sigma is zero
    (constant data, or a single value) the index is reported as 0.

    Args:
        values: Observed values for one parameter
        spec: Parameter spec providing control and specification limits

    Returns:
        CapabilitySummary; all zeros for an empty input

    Examples:
        >>> summarize([25.0, 25.0, 25.0], temperature_spec).cpk
        0.0
    """
    n = len(values)
    if n == 0:
        return CapabilitySummary()

    avg = mean(values)
    sigma = sample_std(values)
    overall_sigma = population_std(values)
    low = float(min(values))
    high = float(max(values))

    cp = safe_divide(spec.usl - spec.lsl, 6 * sigma)
    cpk = min(
        safe_divide(spec.usl - avg, 3 * sigma),
        safe_divide(avg - spec.lsl, 3 * sigma),
    )
    ppk = min(
        safe_divide(spec.usl - avg, 3 * overall_sigma),
        safe_divide(avg - spec.lsl, 3 * overall_sigma),
    )

    out_of_control = sum(1 for v in values if v > spec.ucl or v < spec.lcl)
    out_of_spec = sum(1 for v in values if v > spec.usl or v < spec.lsl)

    return CapabilitySummary(
        mean=avg,
        std_dev=sigma,
        min=low,
        max=high,
        range=high - low,
        cp=cp,
        cpk=cpk,
        ppk=ppk,
        out_of_control_percent=out_of_control / n * 100,
        out_of_spec_percent=out_of_spec / n * 100,
        sample_size=n,
    )


def results_to_dict(results: Mapping[str, SPCResult]) -> dict[str, dict[str, Any]]:
    """Serialize a per-parameter result mapping."""
    return {key: result.to_dict() for key, result in results.items()}
