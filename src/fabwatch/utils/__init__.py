"""Utilities for FabWatch statistical calculations."""

from .statistics import (
    D2_SPAN_2,
    ControlLimits,
    LinearFit,
    estimate_control_limits,
    linear_regression,
    mean,
    moving_ranges,
    population_std,
    safe_divide,
    sample_std,
)

__all__ = [
    # Constants
    "D2_SPAN_2",
    # Data classes
    "ControlLimits",
    "LinearFit",
    # Descriptive statistics
    "mean",
    "sample_std",
    "population_std",
    "moving_ranges",
    # Regression and limits
    "linear_regression",
    "estimate_control_limits",
    "safe_divide",
]
