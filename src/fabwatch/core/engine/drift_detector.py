"""Drift detection over the rolling reading history.

Four independent analyses run for every catalog parameter:

- CUSUM: tabular cumulative sums of normalized deviations from a baseline
  formed from the first 20 values. Detects small sustained shifts.
- EWMA: exponentially weighted mean against asymptotic limits around the
  target. Detects slow drift.
- Trend: least-squares slope of the last 50 values, projected 100 readings
  ahead.
- Shift: mean of the last 30 values against the 30 before them.

CUSUM and EWMA are stateful. Their state lives in a DriftState per
parameter owned by the DriftDetector instance, is created lazily on the
first analysis of a parameter, and persists until reset(). Each analysis
consumes only the newest value of the series, so each committed detect()
advances the state by one step. On-demand queries pass commit=False and
run against a scratch copy, leaving the scheduler's state untouched.

reset() drops the state only. The next analysis re-seeds the CUSUM
baseline from the oldest 20 values still in the history passed to it, which
right after a process adjustment are pre-adjustment readings; the baseline
only reflects the new process once the history has turned over.

CUSUM auto-resets when it alarms: a persistent shift is reported once and
has to re-accumulate past the decision interval before it is reported
again. EWMA never resets on its own.

Process sigma is taken from the catalog as (ucl - lcl) / 6 rather than
estimated from data, so alarm thresholds track the configured limits.
"""

import copy
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import structlog

from fabwatch.core.catalog import Catalog, ParameterSpec
from fabwatch.core.providers.protocol import Reading
from fabwatch.utils.statistics import (
    linear_regression,
    mean,
    population_std,
    safe_divide,
)

logger = structlog.get_logger(__name__)

MIN_HISTORY = 20
CUSUM_BASELINE_SIZE = 20
TREND_MIN_SAMPLES = 10
TREND_WINDOW = 50
TREND_HORIZON = 100
TREND_MIN_R_SQUARED = 0.3
SHIFT_WINDOW = 30
SHIFT_THRESHOLD_SIGMAS = 1.5
PREDICTION_MIN_SLOPE = 1e-4
WARNING_FRACTION = 0.7


class DriftStatus(Enum):
    """Outcome of a detect() call."""
    INSUFFICIENT_DATA = "insufficient_data"
    ANALYZED = "analyzed"


class DriftVerdict(Enum):
    """Overall per-parameter drift classification."""
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass
class CusumState:
    cusum_plus: float = 0.0
    cusum_minus: float = 0.0
    baseline: float | None = None


@dataclass
class EwmaState:
    ewma: float
    variance: float


@dataclass
class DriftState:
    """Persistent drift state for one parameter.

    Attributes:
        cusum: CUSUM sums and baseline
        ewma: EWMA value and variance, None until first analysis
    """
    cusum: CusumState = field(default_factory=CusumState)
    ewma: EwmaState | None = None


@dataclass
class CusumResult:
    cusum_plus: float
    cusum_minus: float
    baseline: float
    threshold: float
    alarm: bool = False
    warning: bool = False
    direction: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "cusum_plus": self.cusum_plus,
            "cusum_minus": self.cusum_minus,
            "baseline": self.baseline,
            "threshold": self.threshold,
            "alarm": self.alarm,
            "warning": self.warning,
            "direction": self.direction,
        }


@dataclass
class EwmaResult:
    value: float
    ucl: float
    lcl: float
    target: float
    deviation: float
    alarm: bool = False
    warning: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "ucl": self.ucl,
            "lcl": self.lcl,
            "target": self.target,
            "deviation": self.deviation,
            "alarm": self.alarm,
            "warning": self.warning,
        }


@dataclass
class TrendResult:
    slope: float = 0.0
    intercept: float = 0.0
    r_squared: float = 0.0
    projected_drift: float = 0.0
    significant: bool = False
    direction: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "slope": self.slope,
            "intercept": self.intercept,
            "r_squared": self.r_squared,
            "projected_drift": self.projected_drift,
            "significant": self.significant,
            "direction": self.direction,
        }


@dataclass
class ShiftResult:
    detected: bool = False
    baseline_mean: float = 0.0
    recent_mean: float = 0.0
    shift: float = 0.0
    shift_in_sigmas: float = 0.0
    direction: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "detected": self.detected,
            "baseline_mean": self.baseline_mean,
            "recent_mean": self.recent_mean,
            "shift": self.shift,
            "shift_in_sigmas": self.shift_in_sigmas,
            "direction": self.direction,
        }


@dataclass
class OOCPrediction:
    """Projected number of readings until the trend crosses a control limit."""
    readings_to_ooc: int
    direction: str
    confidence: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "readings_to_ooc": self.readings_to_ooc,
            "direction": self.direction,
            "confidence": self.confidence,
        }


@dataclass
class ParameterDriftResult:
    parameter: str
    cusum: CusumResult
    ewma: EwmaResult
    trend: TrendResult
    shift: ShiftResult
    overall: DriftVerdict
    prediction: OOCPrediction | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "parameter": self.parameter,
            "cusum": self.cusum.to_dict(),
            "ewma": self.ewma.to_dict(),
            "trend": self.trend.to_dict(),
            "shift": self.shift.to_dict(),
            "overall": self.overall.value,
            "prediction": self.prediction.to_dict() if self.prediction else None,
        }


@dataclass
class DriftReport:
    """Result of one detect() pass over the history.

    Callers must check `status` before reading `results`; an
    insufficient_data report carries no results.
    """
    status: DriftStatus
    timestamp: datetime
    results: dict[str, ParameterDriftResult] = field(default_factory=dict)

    @property
    def analyzed(self) -> bool:
        return self.status is DriftStatus.ANALYZED

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "results": {key: r.to_dict() for key, r in self.results.items()},
        }


def _series(history: Sequence[Reading], key: str) -> list[float]:
    values = []
    for reading in history:
        value = reading.parameters.get(key)
        if value is not None:
            values.append(float(value))
    return values


class DriftDetector:
    """Stateful CUSUM/EWMA and stateless trend/shift drift analysis.

    One detector should be constructed per monitored process and injected
    wherever drift analysis is needed. It is not thread-safe; the
    monitoring scheduler is its only mutator.

    Args:
        cusum_k: CUSUM slack in sigma units (default: 0.5)
        cusum_h: CUSUM decision interval in sigma units (default: 5.0)
        ewma_lambda: EWMA smoothing factor, 0 < lambda <= 1 (default: 0.2)
        ewma_l: EWMA control limit width in EWMA sigmas (default: 3.0)

    Example:
        >>> detector = DriftDetector()
        >>> report = detector.detect(history, DEFAULT_CATALOG)
        >>> if report.analyzed:
        ...     print(report.results["temperature"].overall)
    """

    def __init__(
        self,
        cusum_k: float = 0.5,
        cusum_h: float = 5.0,
        ewma_lambda: float = 0.2,
        ewma_l: float = 3.0,
    ):
        if not 0 < ewma_lambda <= 1:
            raise ValueError(f"ewma_lambda must be in (0, 1], got {ewma_lambda}")
        if cusum_h <= 0:
            raise ValueError(f"cusum_h must be positive, got {cusum_h}")

        self.cusum_k = cusum_k
        self.cusum_h = cusum_h
        self.ewma_lambda = ewma_lambda
        self.ewma_l = ewma_l
        self._states: dict[str, DriftState] = {}

    def detect(
        self, history: Sequence[Reading], specs: Catalog, commit: bool = True
    ) -> DriftReport:
        """Run all drift analyses for every catalog parameter.

        Args:
            history: Readings in timestamp order, oldest first
            specs: Parameter catalog
            commit: Keep the CUSUM/EWMA updates (default: True). With
                False the analysis runs on a copy of the state and the
                detector is left exactly as it was.

        Returns:
            DriftReport with status insufficient_data (and no results) when
            fewer than 20 readings are available, otherwise analyzed
        """
        if not commit:
            scratch = copy.copy(self)
            scratch._states = copy.deepcopy(self._states)
            return scratch.detect(history, specs)

        now = datetime.now(timezone.utc)
        if len(history) < MIN_HISTORY:
            return DriftReport(status=DriftStatus.INSUFFICIENT_DATA, timestamp=now)

        results: dict[str, ParameterDriftResult] = {}
        for key, spec in specs.items():
            values = _series(history, key)
            if not values:
                continue
            results[key] = self.analyze_parameter(key, values, spec)

        return DriftReport(status=DriftStatus.ANALYZED, timestamp=now, results=results)

    def analyze_parameter(
        self, parameter: str, values: Sequence[float], spec: ParameterSpec
    ) -> ParameterDriftResult:
        """Run the four analyses for one parameter series and classify it."""
        cusum = self.detect_cusum(parameter, values, spec)
        ewma = self.detect_ewma(parameter, values, spec)
        trend = self.detect_trend(values, spec)
        shift = self.detect_shift(values)

        if cusum.alarm or ewma.alarm or shift.detected:
            overall = DriftVerdict.CRITICAL
        elif trend.significant or cusum.warning or ewma.warning:
            overall = DriftVerdict.WARNING
        else:
            overall = DriftVerdict.NORMAL

        prediction = None
        if trend.significant:
            prediction = self.predict_time_to_ooc(values, spec, trend)

        if overall is not DriftVerdict.NORMAL:
            logger.debug(
                "drift_verdict",
                parameter=parameter,
                verdict=overall.value,
                cusum_alarm=cusum.alarm,
                ewma_alarm=ewma.alarm,
                shift_detected=shift.detected,
                trend_significant=trend.significant,
            )

        return ParameterDriftResult(
            parameter=parameter,
            cusum=cusum,
            ewma=ewma,
            trend=trend,
            shift=shift,
            overall=overall,
            prediction=prediction,
        )

    def detect_cusum(
        self, parameter: str, values: Sequence[float], spec: ParameterSpec
    ) -> CusumResult:
        """Advance the CUSUM state with the newest value.

        The baseline is fixed the first time at least 20 values are seen;
        until then the target stands in for it.
        """
        state = self._state_for(parameter).cusum

        if state.baseline is None and len(values) >= CUSUM_BASELINE_SIZE:
            state.baseline = mean(values[:CUSUM_BASELINE_SIZE])

        baseline = state.baseline if state.baseline is not None else spec.target
        z = safe_divide(values[-1] - baseline, spec.sigma)

        state.cusum_plus = max(0.0, state.cusum_plus + z - self.cusum_k)
        state.cusum_minus = max(0.0, state.cusum_minus - z - self.cusum_k)

        result = CusumResult(
            cusum_plus=state.cusum_plus,
            cusum_minus=state.cusum_minus,
            baseline=baseline,
            threshold=self.cusum_h,
        )

        warning_level = self.cusum_h * WARNING_FRACTION
        if state.cusum_plus > self.cusum_h:
            result.alarm = True
            result.direction = "positive"
        elif state.cusum_minus > self.cusum_h:
            result.alarm = True
            result.direction = "negative"
        elif state.cusum_plus > warning_level or state.cusum_minus > warning_level:
            result.warning = True
            result.direction = (
                "positive" if state.cusum_plus > state.cusum_minus else "negative"
            )

        if result.alarm:
            logger.info(
                "cusum_alarm",
                parameter=parameter,
                direction=result.direction,
                cusum_plus=result.cusum_plus,
                cusum_minus=result.cusum_minus,
            )
            state.cusum_plus = 0.0
            state.cusum_minus = 0.0

        return result

    def detect_ewma(
        self, parameter: str, values: Sequence[float], spec: ParameterSpec
    ) -> EwmaResult:
        """Advance the EWMA state with the newest value and test its limits."""
        drift_state = self._state_for(parameter)
        sigma = spec.sigma
        if drift_state.ewma is None:
            drift_state.ewma = EwmaState(ewma=spec.target, variance=sigma * sigma)

        state = drift_state.ewma
        lam = self.ewma_lambda
        state.ewma = lam * values[-1] + (1 - lam) * state.ewma

        # Asymptotic limits
        ewma_sigma = sigma * (lam / (2 - lam)) ** 0.5
        ucl = spec.target + self.ewma_l * ewma_sigma
        lcl = spec.target - self.ewma_l * ewma_sigma

        result = EwmaResult(
            value=state.ewma,
            ucl=ucl,
            lcl=lcl,
            target=spec.target,
            deviation=state.ewma - spec.target,
        )

        if state.ewma > ucl or state.ewma < lcl:
            result.alarm = True
        else:
            band = self.ewma_l * WARNING_FRACTION * ewma_sigma
            if state.ewma > spec.target + band or state.ewma < spec.target - band:
                result.warning = True

        return result

    def detect_trend(self, values: Sequence[float], spec: ParameterSpec) -> TrendResult:
        """Fit a line to the last 50 values and test its projected drift.

        Significant when the drift projected 100 readings ahead exceeds one
        sigma and R-squared exceeds 0.3. Fewer than 10 values reports an
        insignificant zero trend.
        """
        if len(values) < TREND_MIN_SAMPLES:
            return TrendResult()

        fit = linear_regression(list(values[-TREND_WINDOW:]))
        projected = fit.slope * TREND_HORIZON

        return TrendResult(
            slope=fit.slope,
            intercept=fit.intercept,
            r_squared=fit.r_squared,
            projected_drift=projected,
            significant=abs(projected) > spec.sigma and fit.r_squared > TREND_MIN_R_SQUARED,
            direction="increasing" if fit.slope > 0 else "decreasing",
        )

    def detect_shift(self, values: Sequence[float]) -> ShiftResult:
        """Compare the last 30 values against the 30 before them.

        The shift is expressed in units of the baseline window's population
        standard deviation and is detected beyond 1.5 sigma. An empty or
        constant baseline window yields a shift of 0 sigma.
        """
        if len(values) < SHIFT_WINDOW:
            return ShiftResult()

        baseline_window = list(values[-2 * SHIFT_WINDOW:-SHIFT_WINDOW])
        recent_window = list(values[-SHIFT_WINDOW:])

        recent_mean = mean(recent_window)
        baseline_mean = mean(baseline_window) if baseline_window else recent_mean
        shift = recent_mean - baseline_mean
        shift_in_sigmas = safe_divide(shift, population_std(baseline_window))

        return ShiftResult(
            detected=abs(shift_in_sigmas) > SHIFT_THRESHOLD_SIGMAS,
            baseline_mean=baseline_mean,
            recent_mean=recent_mean,
            shift=shift,
            shift_in_sigmas=shift_in_sigmas,
            direction="positive" if shift > 0 else "negative",
        )

    def predict_time_to_ooc(
        self,
        values: Sequence[float],
        spec: ParameterSpec,
        trend: TrendResult | None = None,
    ) -> OOCPrediction | None:
        """Project how many readings remain before the trend crosses a limit.

        Args:
            values: Parameter series, oldest first
            spec: Parameter spec
            trend: Precomputed trend for `values` (computed if omitted)

        Returns:
            OOCPrediction, or None when there is no significant trend or the
            slope is too flat to extrapolate
        """
        if trend is None:
            trend = self.detect_trend(values, spec)
        if not trend.significant or abs(trend.slope) < PREDICTION_MIN_SLOPE:
            return None

        current = values[-1]
        limit = spec.ucl if trend.slope > 0 else spec.lcl
        readings = (limit - current) / trend.slope

        return OOCPrediction(
            readings_to_ooc=max(0, round(readings)),
            direction=trend.direction or "",
            confidence=trend.r_squared,
        )

    def reset(self, parameter: str | None = None) -> None:
        """Clear CUSUM/EWMA state for one parameter, or all when None.

        The next sufficient-data analysis re-seeds the baseline and EWMA.
        """
        if parameter is None:
            self._states.clear()
            logger.info("drift_state_reset", parameter="all")
        else:
            self._states.pop(parameter, None)
            logger.info("drift_state_reset", parameter=parameter)

    def get_state(self, parameter: str) -> DriftState | None:
        """Return the live state for a parameter, or None if not yet created."""
        return self._states.get(parameter)

    def _state_for(self, parameter: str) -> DriftState:
        state = self._states.get(parameter)
        if state is None:
            state = DriftState()
            self._states[parameter] = state
        return state
