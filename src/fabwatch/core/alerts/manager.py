"""Alert synthesis from SPC and drift results.

This module provides:
- AlertSynthesizer: turns per-reading SPC results and drift reports into
  alerts, suppressing repeats of the same (type, parameter) within a
  cooldown window
- Priority ranking, recommended actions and yield-impact estimates
- AlertLog: the append-only record of raised alerts with acknowledgment
  and aggregate statistics

Cooldown time is measured on reading timestamps, so backfilled history
and live readings are deduplicated on the same clock.
"""

import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

import structlog

from fabwatch.core.catalog import Catalog
from fabwatch.core.engine.drift_detector import DriftReport
from fabwatch.core.engine.spc_evaluator import SPCResult
from fabwatch.core.providers.protocol import Reading

logger = structlog.get_logger(__name__)

DEFAULT_COOLDOWN = timedelta(minutes=5)
DEFAULT_CURRENT_YIELD = 95.0


class AlertType(Enum):
    OUT_OF_SPEC = "OUT_OF_SPEC"
    OUT_OF_CONTROL = "OUT_OF_CONTROL"
    CUSUM_DRIFT = "CUSUM_DRIFT"
    EWMA_DRIFT = "EWMA_DRIFT"
    TREND = "TREND"
    PROCESS_SHIFT = "PROCESS_SHIFT"


class AlertSeverity(Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


SEVERITY_LEVELS = {
    AlertSeverity.CRITICAL: 3,
    AlertSeverity.WARNING: 2,
    AlertSeverity.INFO: 1,
}

TYPE_WEIGHTS = {
    AlertType.OUT_OF_SPEC: 50,
    AlertType.PROCESS_SHIFT: 40,
    AlertType.CUSUM_DRIFT: 30,
    AlertType.OUT_OF_CONTROL: 20,
    AlertType.EWMA_DRIFT: 15,
    AlertType.TREND: 10,
}

RECOMMENDED_ACTIONS = {
    AlertType.OUT_OF_SPEC: [
        "Stop production immediately",
        "Isolate affected batch for quality review",
        "Check equipment calibration",
        "Review recent process changes",
        "Notify quality engineering team",
    ],
    AlertType.OUT_OF_CONTROL: [
        "Monitor closely for next 10 readings",
        "Verify sensor readings",
        "Check for environmental changes",
        "Review control chart for patterns",
    ],
    AlertType.CUSUM_DRIFT: [
        "Investigate root cause of sustained drift",
        "Check for gradual equipment degradation",
        "Review consumable status (gas, chemicals)",
        "Consider preventive maintenance",
    ],
    AlertType.EWMA_DRIFT: [
        "Monitor trend development",
        "Check for systematic errors",
        "Review recent recipe changes",
        "Verify measurement system stability",
    ],
    AlertType.TREND: [
        "Track trend progression",
        "Identify potential causes",
        "Plan preventive action if trend continues",
        "Schedule equipment review",
    ],
    AlertType.PROCESS_SHIFT: [
        "Investigate cause of sudden change",
        "Check for equipment malfunction",
        "Review maintenance history",
        "Verify process recipe settings",
        "Check lot-to-lot material variation",
    ],
}

DEFAULT_ACTIONS = ["Investigate the issue", "Contact process engineering"]

# Yield loss range in percentage points per alert type
YIELD_IMPACT_RANGES: dict[AlertType, tuple[float, float]] = {
    AlertType.OUT_OF_SPEC: (2.0, 10.0),
    AlertType.OUT_OF_CONTROL: (0.5, 2.0),
    AlertType.CUSUM_DRIFT: (1.0, 5.0),
    AlertType.EWMA_DRIFT: (0.5, 3.0),
    AlertType.TREND: (0.2, 1.0),
    AlertType.PROCESS_SHIFT: (2.0, 8.0),
}

SEVERITY_MULTIPLIERS = {
    AlertSeverity.CRITICAL: 1.5,
    AlertSeverity.WARNING: 1.0,
    AlertSeverity.INFO: 0.5,
}


@dataclass
class Alert:
    """A raised alert.

    Attributes:
        id: Unique alert ID
        type: Alert type
        severity: critical, warning or info
        parameter: Catalog key of the parameter
        parameter_name: Display name of the parameter
        line: Manufacturing line of the triggering reading
        message: Human-readable description
        timestamp: Timestamp of the triggering reading
        details: Type-specific numbers (value, limit, cusum_value, ...)
        acknowledged: Whether an operator has acknowledged the alert
        acknowledged_at: When it was acknowledged
        created_at: Wall-clock creation time
    """
    id: str
    type: AlertType
    severity: AlertSeverity
    parameter: str
    parameter_name: str
    line: str
    message: str
    timestamp: datetime
    details: dict[str, Any] = field(default_factory=dict)
    acknowledged: bool = False
    acknowledged_at: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def priority(self) -> int:
        return get_alert_priority(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "severity": self.severity.value,
            "parameter": self.parameter,
            "parameter_name": self.parameter_name,
            "line": self.line,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "details": dict(self.details),
            "acknowledged": self.acknowledged,
            "acknowledged_at": self.acknowledged_at.isoformat() if self.acknowledged_at else None,
            "created_at": self.created_at.isoformat(),
            "priority": self.priority,
        }


@dataclass
class YieldImpact:
    """Estimated yield impact of an alert, in percentage points."""
    estimated_yield_loss: float
    projected_yield: float
    impact_range: tuple[float, float]
    confidence: str = "medium"

    def to_dict(self) -> dict[str, Any]:
        return {
            "estimated_yield_loss": self.estimated_yield_loss,
            "projected_yield": self.projected_yield,
            "impact_range": {"min": self.impact_range[0], "max": self.impact_range[1]},
            "confidence": self.confidence,
        }


@dataclass
class AlertSummary:
    """Aggregate alert statistics.

    Attributes:
        total: Total number of alerts
        unacknowledged: Count of alerts not yet acknowledged
        by_severity: Counts per severity (always has all three keys)
        by_type: Counts per alert type
        by_parameter: Counts per parameter key
        by_line: Counts per manufacturing line
    """
    total: int
    unacknowledged: int
    by_severity: dict[str, int]
    by_type: dict[str, int]
    by_parameter: dict[str, int]
    by_line: dict[str, int]

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "unacknowledged": self.unacknowledged,
            "by_severity": dict(self.by_severity),
            "by_type": dict(self.by_type),
            "by_parameter": dict(self.by_parameter),
            "by_line": dict(self.by_line),
        }


def get_severity_level(severity: AlertSeverity) -> int:
    return SEVERITY_LEVELS.get(severity, 0)


def get_alert_priority(alert: Alert) -> int:
    """Priority score: 100 per severity level plus a per-type weight.

    Examples:
        >>> get_alert_priority(out_of_spec_alert)   # critical
        350
    """
    return get_severity_level(alert.severity) * 100 + TYPE_WEIGHTS.get(alert.type, 0)


def sort_by_priority(alerts: Iterable[Alert]) -> list[Alert]:
    """Sort alerts by priority descending, newest first on ties."""
    return sorted(alerts, key=lambda a: (a.priority, a.timestamp), reverse=True)


def get_recommended_actions(alert_type: AlertType) -> list[str]:
    return list(RECOMMENDED_ACTIONS.get(alert_type, DEFAULT_ACTIONS))


def calculate_yield_impact(alert: Alert, current_yield: float = DEFAULT_CURRENT_YIELD) -> YieldImpact:
    """Estimate yield loss for an alert.

    The midpoint of the type's impact range is scaled by a severity
    multiplier (critical 1.5, warning 1.0, info 0.5).

    Args:
        alert: Alert to estimate
        current_yield: Current process yield in percent (default: 95)

    Returns:
        YieldImpact with estimated loss and projected yield
    """
    low, high = YIELD_IMPACT_RANGES.get(alert.type, (0.0, 1.0))
    multiplier = SEVERITY_MULTIPLIERS.get(alert.severity, 1.0)
    loss = (low + high) / 2 * multiplier

    return YieldImpact(
        estimated_yield_loss=loss,
        projected_yield=current_yield - loss,
        impact_range=(low, high),
    )


class AlertSynthesizer:
    """Generates deduplicated alerts from SPC and drift results.

    Each (AlertType, parameter) pair is emitted at most once per cooldown
    window. Candidates inside the window are dropped without a trace.

    Args:
        cooldown: Minimum time between alerts with the same key
            (default: 5 minutes)

    Example:
        >>> synthesizer = AlertSynthesizer()
        >>> alerts = synthesizer.check_for_alerts(reading, spc, report, catalog)
        >>> [a.type for a in alerts]
        [<AlertType.OUT_OF_SPEC: 'OUT_OF_SPEC'>]
    """

    def __init__(self, cooldown: timedelta = DEFAULT_COOLDOWN):
        self.cooldown = cooldown
        self._last_emitted: dict[tuple[AlertType, str], datetime] = {}

    def check_for_alerts(
        self,
        reading: Reading,
        spc_results: Mapping[str, SPCResult],
        drift_report: DriftReport | None,
        specs: Catalog,
    ) -> list[Alert]:
        """Build the alerts raised by one reading's analysis.

        Args:
            reading: The reading that was analyzed
            spc_results: SPC results for that reading
            drift_report: Drift report, or None on non-analysis ticks
            specs: Parameter catalog

        Returns:
            Alerts that survived the cooldown, in evaluation order
        """
        alerts: list[Alert] = []

        for key, result in spc_results.items():
            spec = specs.get(key)
            if spec is None:
                continue

            if result.out_of_spec:
                upper = result.value > spec.usl
                alert = self._create(
                    reading,
                    AlertType.OUT_OF_SPEC,
                    AlertSeverity.CRITICAL,
                    key,
                    spec.name,
                    f"{spec.name} ({result.value:.2f} {spec.unit}) exceeded "
                    f"{'upper' if upper else 'lower'} spec limit",
                    {
                        "value": result.value,
                        "limit": spec.usl if upper else spec.lsl,
                        "limit_type": "USL" if upper else "LSL",
                    },
                )
            elif result.out_of_control:
                upper = result.value > spec.ucl
                alert = self._create(
                    reading,
                    AlertType.OUT_OF_CONTROL,
                    AlertSeverity.WARNING,
                    key,
                    spec.name,
                    f"{spec.name} ({result.value:.2f} {spec.unit}) exceeded "
                    f"{'upper' if upper else 'lower'} control limit",
                    {
                        "value": result.value,
                        "limit": spec.ucl if upper else spec.lcl,
                        "limit_type": "UCL" if upper else "LCL",
                    },
                )
            else:
                alert = None

            if alert is not None:
                alerts.append(alert)

        if drift_report is None or not drift_report.analyzed:
            return alerts

        for key, drift in drift_report.results.items():
            spec = specs.get(key)
            if spec is None:
                continue
            name = spec.name

            candidates = []
            if drift.cusum.alarm:
                positive = drift.cusum.direction == "positive"
                candidates.append((
                    AlertType.CUSUM_DRIFT,
                    AlertSeverity.CRITICAL,
                    f"CUSUM drift detected for {name} ({drift.cusum.direction} direction)",
                    {
                        "direction": drift.cusum.direction,
                        "cusum_value": drift.cusum.cusum_plus if positive else drift.cusum.cusum_minus,
                        "threshold": drift.cusum.threshold,
                    },
                ))
            if drift.ewma.alarm:
                candidates.append((
                    AlertType.EWMA_DRIFT,
                    AlertSeverity.WARNING,
                    f"EWMA drift detected for {name} (deviation: {drift.ewma.deviation:.3f})",
                    {"ewma_value": drift.ewma.value, "deviation": drift.ewma.deviation},
                ))
            if drift.trend.significant:
                candidates.append((
                    AlertType.TREND,
                    AlertSeverity.INFO,
                    f"Significant trend detected for {name} "
                    f"({drift.trend.direction}, R²={drift.trend.r_squared:.2f})",
                    {
                        "slope": drift.trend.slope,
                        "direction": drift.trend.direction,
                        "r_squared": drift.trend.r_squared,
                        "projected_drift": drift.trend.projected_drift,
                    },
                ))
            if drift.shift.detected:
                candidates.append((
                    AlertType.PROCESS_SHIFT,
                    AlertSeverity.CRITICAL,
                    f"Process shift detected for {name} "
                    f"({drift.shift.shift_in_sigmas:.1f}σ {drift.shift.direction})",
                    {
                        "shift": drift.shift.shift,
                        "shift_in_sigmas": drift.shift.shift_in_sigmas,
                        "direction": drift.shift.direction,
                    },
                ))

            for alert_type, severity, message, details in candidates:
                alert = self._create(reading, alert_type, severity, key, name, message, details)
                if alert is not None:
                    alerts.append(alert)

        return alerts

    def clear(self) -> None:
        """Forget all cooldown timestamps."""
        self._last_emitted.clear()

    def _create(
        self,
        reading: Reading,
        alert_type: AlertType,
        severity: AlertSeverity,
        parameter: str,
        parameter_name: str,
        message: str,
        details: dict[str, Any],
    ) -> Alert | None:
        key = (alert_type, parameter)
        last = self._last_emitted.get(key)
        if last is not None and reading.timestamp - last < self.cooldown:
            return None

        self._last_emitted[key] = reading.timestamp
        return Alert(
            id=str(uuid.uuid4()),
            type=alert_type,
            severity=severity,
            parameter=parameter,
            parameter_name=parameter_name,
            line=reading.line,
            message=message,
            timestamp=reading.timestamp,
            details=details,
        )


class AlertLog:
    """Append-only record of raised alerts.

    Alerts are never removed; the only mutation is acknowledgment.
    """

    def __init__(self) -> None:
        self._alerts: list[Alert] = []
        self._by_id: dict[str, Alert] = {}

    def __len__(self) -> int:
        return len(self._alerts)

    def append(self, alert: Alert) -> None:
        self._alerts.append(alert)
        self._by_id[alert.id] = alert

    def extend(self, alerts: Iterable[Alert]) -> None:
        for alert in alerts:
            self.append(alert)

    def get(self, alert_id: str) -> Alert | None:
        return self._by_id.get(alert_id)

    def acknowledge(self, alert_id: str, now: datetime | None = None) -> Alert | None:
        """Mark an alert acknowledged.

        Acknowledging an already acknowledged alert is a no-op that keeps
        the original acknowledgment time.

        Args:
            alert_id: ID of the alert
            now: Acknowledgment time (default: current UTC time)

        Returns:
            The alert, or None if no alert has that ID
        """
        alert = self._by_id.get(alert_id)
        if alert is None:
            return None
        if not alert.acknowledged:
            alert.acknowledged = True
            alert.acknowledged_at = now or datetime.now(timezone.utc)
            logger.info("alert_acknowledged", alert_id=alert_id, type=alert.type.value)
        return alert

    def recent(self, count: int = 50, unacknowledged_only: bool = False) -> list[Alert]:
        """Return up to the last `count` alerts, oldest first.

        The window is taken before filtering, so with
        `unacknowledged_only` fewer than `count` alerts may come back.
        """
        if count <= 0:
            return []
        window = self._alerts[-count:]
        if unacknowledged_only:
            return [a for a in window if not a.acknowledged]
        return list(window)

    def all(self) -> list[Alert]:
        return self._alerts.copy()

    def summary(self) -> AlertSummary:
        """Aggregate counts over every logged alert."""
        by_severity = {severity.value: 0 for severity in AlertSeverity}
        by_type: dict[str, int] = {}
        by_parameter: dict[str, int] = {}
        by_line: dict[str, int] = {}

        for alert in self._alerts:
            by_severity[alert.severity.value] += 1
            by_type[alert.type.value] = by_type.get(alert.type.value, 0) + 1
            by_parameter[alert.parameter] = by_parameter.get(alert.parameter, 0) + 1
            by_line[alert.line] = by_line.get(alert.line, 0) + 1

        return AlertSummary(
            total=len(self._alerts),
            unacknowledged=sum(1 for a in self._alerts if not a.acknowledged),
            by_severity=by_severity,
            by_type=by_type,
            by_parameter=by_parameter,
            by_line=by_line,
        )
