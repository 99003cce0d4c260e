"""Statistical helpers shared by the SPC evaluator and drift detector.

This module provides functions for:
- Guarded arithmetic (divisions that yield 0 instead of inf/NaN)
- Mean and standard deviation (sample and population)
- Ordinary least-squares regression against sample index
- Individuals (I-MR) control limit estimation from data

Every division in the analysis path goes through safe_divide() or an
explicit zero check, so degenerate inputs produce 0 rather than inf or NaN.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

# d2 constant for moving ranges of span 2 (ASTM E2587)
D2_SPAN_2 = 1.128


@dataclass
class ControlLimits:
    """Control limits for an individuals chart.

    Attributes:
        center_line: Center line (average) of the process
        ucl: Upper Control Limit (center + 3 sigma)
        lcl: Lower Control Limit (center - 3 sigma)
        sigma: Estimated process standard deviation
    """
    center_line: float
    ucl: float
    lcl: float
    sigma: float


@dataclass
class LinearFit:
    """Result of a least-squares line fit against sample index.

    Attributes:
        slope: Change in value per sample
        intercept: Fitted value at index 0
        r_squared: Coefficient of determination (0 when values are constant)
    """
    slope: float
    intercept: float
    r_squared: float


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Divide, returning `default` when the result would not be finite.

    Examples:
        >>> safe_divide(6.0, 3.0)
        2.0
        >>> safe_divide(1.0, 0.0)
        0.0
    """
    if denominator == 0:
        return default
    result = numerator / denominator
    if not math.isfinite(result):
        return default
    return result


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; 0.0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values, dtype=np.float64)))


def sample_std(values: Sequence[float]) -> float:
    """Sample standard deviation (n-1 denominator); 0.0 for fewer than 2 values."""
    if len(values) < 2:
        return 0.0
    arr = np.asarray(values, dtype=np.float64)
    if np.ptp(arr) == 0:
        # Constant data; skip the float residue left by the mean
        return 0.0
    return float(np.std(arr, ddof=1))


def population_std(values: Sequence[float]) -> float:
    """Population standard deviation (n denominator); 0.0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    arr = np.asarray(values, dtype=np.float64)
    if np.ptp(arr) == 0:
        return 0.0
    return float(np.std(arr, ddof=0))


def linear_regression(values: Sequence[float]) -> LinearFit:
    """Fit ``value = intercept + slope * index`` by ordinary least squares.

    Args:
        values: Observations ordered by index 0..n-1

    Returns:
        LinearFit with slope, intercept and R-squared

    Raises:
        ValueError: If fewer than 2 values are given

    Examples:
        >>> fit = linear_regression([1.0, 3.0, 5.0, 7.0])
        >>> fit.slope, fit.intercept, fit.r_squared
        (2.0, 1.0, 1.0)
    """
    n = len(values)
    if n < 2:
        raise ValueError(f"Need at least 2 values for regression, got {n}")

    y = np.asarray(values, dtype=np.float64)
    y_mean = float(np.mean(y))
    if np.ptp(y) == 0:
        return LinearFit(slope=0.0, intercept=float(y[0]), r_squared=0.0)

    x = np.arange(n, dtype=np.float64)
    x_mean = (n - 1) / 2

    dx = x - x_mean
    slope = safe_divide(float(np.sum(dx * (y - y_mean))), float(np.sum(dx * dx)))
    intercept = y_mean - slope * x_mean

    predicted = intercept + slope * x
    ss_res = float(np.sum((y - predicted) ** 2))
    ss_tot = float(np.sum((y - y_mean) ** 2))
    r_squared = 1.0 - ss_res / ss_tot if ss_tot > 0 else 0.0

    return LinearFit(slope=slope, intercept=intercept, r_squared=r_squared)


def moving_ranges(values: Sequence[float]) -> list[float]:
    """Absolute differences between consecutive values."""
    if len(values) < 2:
        return []
    arr = np.asarray(values, dtype=np.float64)
    return [float(v) for v in np.abs(np.diff(arr))]


def estimate_control_limits(values: Sequence[float], min_samples: int = 10) -> ControlLimits | None:
    """Estimate individuals-chart control limits from data.

    Sigma is estimated from the average moving range: ``MR-bar / d2`` with
    d2 = 1.128 for a span of 2. Limits are center +/- 3 sigma.

    Args:
        values: Individual measurements in time order
        min_samples: Minimum number of values required (default: 10)

    Returns:
        ControlLimits, or None when fewer than `min_samples` values are given

    Examples:
        >>> limits = estimate_control_limits([10, 12, 11, 13, 10, 12, 11, 13, 10, 12])
        >>> round(limits.center_line, 2)
        11.4
    """
    if len(values) < max(min_samples, 2):
        return None

    center = mean(values)
    sigma = mean(moving_ranges(values)) / D2_SPAN_2

    return ControlLimits(
        center_line=center,
        ucl=center + 3 * sigma,
        lcl=center - 3 * sigma,
        sigma=sigma,
    )
