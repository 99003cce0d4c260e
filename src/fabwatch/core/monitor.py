"""Monitoring scheduler: the per-tick pipeline and its query surface.

Each tick obtains a reading from the producer, scores it against the
catalog, appends it to the rolling history and, on every K-th tick, runs
drift detection and alert synthesis over the full history. Live ticks then
publish a ReadingProcessedEvent on the event bus.

All per-tick processing is synchronous in-memory arithmetic. The run loop
is a single asyncio task, so a tick always completes before the next one
starts and the drift state needs no locking.
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import structlog

from fabwatch.core.alerts.manager import (
    Alert,
    AlertLog,
    AlertSummary,
    AlertSynthesizer,
    YieldImpact,
    calculate_yield_impact,
    get_recommended_actions,
)
from fabwatch.core.catalog import MANUFACTURING_LINES, Catalog
from fabwatch.core.engine.drift_detector import DriftDetector, DriftReport
from fabwatch.core.engine.history import HistoryStore, ProcessedReading
from fabwatch.core.engine.pattern_rules import PatternRuleLibrary, PatternViolation
from fabwatch.core.engine.spc_evaluator import CapabilitySummary, evaluate, summarize
from fabwatch.core.events import (
    AlertAcknowledgedEvent,
    DriftStateResetEvent,
    EventBus,
    ReadingProcessedEvent,
)
from fabwatch.core.providers.protocol import Reading, ReadingProducer
from fabwatch.utils.statistics import ControlLimits, estimate_control_limits

logger = structlog.get_logger(__name__)


@dataclass
class ParameterDiagnostics:
    """Capability, data-estimated limits and pattern violations for a parameter."""
    parameter: str
    capability: CapabilitySummary
    estimated_limits: ControlLimits | None
    violations: list[PatternViolation]


@dataclass
class AlertGuidance:
    """Operator guidance for one alert."""
    alert: Alert
    recommended_actions: list[str]
    yield_impact: YieldImpact


@dataclass
class MonitorStatistics:
    """Counters describing the monitor's lifetime.

    Attributes:
        readings_processed: Readings stored since startup (backfill included)
        analyses_run: Drift analyses run on the tick cadence
        producer_failures: Ticks skipped because the producer failed
        history_size: Readings currently held
        history_capacity: Maximum readings held
        total_alerts: Alerts logged since startup
        unacknowledged_alerts: Alerts not yet acknowledged
        last_reading_at: Timestamp of the newest stored reading
        started_at: When the monitor was created
    """
    readings_processed: int
    analyses_run: int
    producer_failures: int
    history_size: int
    history_capacity: int
    total_alerts: int
    unacknowledged_alerts: int
    last_reading_at: datetime | None
    started_at: datetime


class ProcessMonitor:
    """Owns the monitoring pipeline and everything it reads and writes.

    Args:
        catalog: Parameter catalog
        producer: Zero-argument callable returning the next live reading
        detector: Drift detector (one per process; created if omitted)
        synthesizer: Alert synthesizer (created if omitted)
        event_bus: Bus for live events; None disables publishing
        history_capacity: Rolling history size (default: 1000)
        analysis_interval: Run drift analysis every K ticks (default: 10)
        tick_interval: Seconds between live ticks (default: 2.0)
        capability_window: Readings summarized for capability (default: 50)
        current_yield: Baseline yield for impact estimates (default: 95)
        lines: Manufacturing lines reported in snapshots

    Example:
        >>> monitor = ProcessMonitor(DEFAULT_CATALOG, producer=simulator)
        >>> monitor.backfill(simulator.historical(480, timedelta(minutes=6)), 480)
        >>> await monitor.start()
    """

    def __init__(
        self,
        catalog: Catalog,
        producer: ReadingProducer,
        *,
        detector: DriftDetector | None = None,
        synthesizer: AlertSynthesizer | None = None,
        event_bus: EventBus | None = None,
        history_capacity: int = 1000,
        analysis_interval: int = 10,
        tick_interval: float = 2.0,
        capability_window: int = 50,
        current_yield: float = 95.0,
        lines: Sequence[str] = MANUFACTURING_LINES,
    ):
        if analysis_interval < 1:
            raise ValueError(f"analysis_interval must be at least 1, got {analysis_interval}")

        self.catalog = catalog
        self.producer = producer
        self.detector = detector or DriftDetector()
        self.synthesizer = synthesizer or AlertSynthesizer()
        self.event_bus = event_bus
        self.history = HistoryStore(capacity=history_capacity)
        self.alerts = AlertLog()
        self.pattern_rules = PatternRuleLibrary()
        self.analysis_interval = analysis_interval
        self.tick_interval = tick_interval
        self.capability_window = capability_window
        self.current_yield = current_yield
        self.lines = tuple(lines)

        self._tick_count = 0
        self._analyses_run = 0
        self._producer_failures = 0
        self._started_at = datetime.now(timezone.utc)
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def process_reading(self, reading: Reading) -> tuple[ProcessedReading, list[Alert]]:
        """Score, store and (on analysis ticks) analyze one reading.

        Args:
            reading: The reading to process

        Returns:
            The stored ProcessedReading and the alerts it raised

        Raises:
            ValueError: If the reading's timestamp is not after the newest
                stored reading; nothing is stored and the counter is unchanged
        """
        processed = ProcessedReading(reading=reading, spc=evaluate(reading, self.catalog))
        self.history.append(processed)
        self._tick_count += 1

        alerts: list[Alert] = []
        if self._tick_count % self.analysis_interval == 0:
            report = self.detector.detect(self.history.readings(), self.catalog)
            processed.drift = report
            self._analyses_run += 1

            alerts = self.synthesizer.check_for_alerts(reading, processed.spc, report, self.catalog)
            processed.alerts = alerts
            self.alerts.extend(alerts)

            if alerts:
                logger.info(
                    "alerts_raised",
                    reading_id=reading.id,
                    count=len(alerts),
                    types=[a.type.value for a in alerts],
                )

        return processed, alerts

    async def tick(self) -> ProcessedReading | None:
        """Run one live tick and publish its result.

        Returns:
            The processed reading, or None if the tick was skipped because
            the producer failed or its reading could not be processed
        """
        try:
            reading = self.producer()
        except Exception:
            self._producer_failures += 1
            logger.exception("producer_failed", tick=self._tick_count + 1)
            return None

        try:
            processed, alerts = self.process_reading(reading)
        except ValueError as e:
            self._producer_failures += 1
            logger.warning("reading_rejected", reading_id=reading.id, error=str(e))
            return None
        except Exception:
            self._producer_failures += 1
            logger.exception("reading_processing_failed", reading_id=getattr(reading, "id", None))
            return None

        if self.event_bus is not None:
            await self.event_bus.publish(ReadingProcessedEvent(reading=processed, alerts=alerts))
        return processed

    def backfill(self, producer: ReadingProducer, count: int) -> int:
        """Feed historical readings through the pipeline without publishing.

        Args:
            producer: Producer of historical readings, oldest first
            count: Number of readings to request

        Returns:
            Number of readings actually stored
        """
        stored = 0
        for _ in range(count):
            try:
                self.process_reading(producer())
            except Exception as e:
                self._producer_failures += 1
                logger.warning("backfill_reading_skipped", error=str(e))
                continue
            stored += 1

        logger.info(
            "backfill_complete",
            requested=count,
            stored=stored,
            history_size=len(self.history),
            alerts=len(self.alerts),
        )
        return stored

    async def start(self) -> None:
        """Start the live tick loop."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info("monitor_started", tick_interval=self.tick_interval)

    async def stop(self) -> None:
        """Stop the live tick loop."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("monitor_stopped", ticks=self._tick_count)

    async def _run_loop(self) -> None:
        while self._running:
            try:
                await self.tick()
            except Exception:
                logger.exception("tick_failed", tick=self._tick_count + 1)
            await asyncio.sleep(self.tick_interval)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_parameters(self) -> dict[str, dict[str, Any]]:
        return {key: spec.to_dict() for key, spec in self.catalog.items()}

    def get_recent_readings(self, count: int = 100) -> list[ProcessedReading]:
        return self.history.get_recent(count)

    def get_recent_alerts(self, count: int = 50, unacknowledged_only: bool = False) -> list[Alert]:
        return self.alerts.recent(count, unacknowledged_only=unacknowledged_only)

    def get_parameter_series(
        self, parameter: str, count: int | None = None
    ) -> list[tuple[datetime, float]] | None:
        """Return (timestamp, value) pairs for a parameter, or None if unknown."""
        if parameter not in self.catalog:
            return None
        return self.history.series(parameter, count)

    def get_capability_summary(self, parameter: str) -> CapabilitySummary | None:
        """Capability over the most recent readings, or None if unknown."""
        spec = self.catalog.get(parameter)
        if spec is None:
            return None
        return summarize(self.history.values(parameter, self.capability_window), spec)

    def get_capability_summaries(self) -> dict[str, CapabilitySummary]:
        return {
            key: summarize(self.history.values(key, self.capability_window), spec)
            for key, spec in self.catalog.items()
        }

    def get_parameter_diagnostics(self, parameter: str) -> ParameterDiagnostics | None:
        """Capability, I-MR limits estimated from data and pattern-rule hits."""
        spec = self.catalog.get(parameter)
        if spec is None:
            return None

        values = self.history.values(parameter, self.capability_window)
        return ParameterDiagnostics(
            parameter=parameter,
            capability=summarize(values, spec),
            estimated_limits=estimate_control_limits(values),
            violations=self.pattern_rules.check_all(values, spec),
        )

    def get_drift_status(self) -> DriftReport:
        """Run drift detection now over the full history.

        The analysis runs on a copy of the CUSUM and EWMA state, so polling
        never changes what the next scheduled analysis sees.
        """
        return self.detector.detect(self.history.readings(), self.catalog, commit=False)

    def get_alert_summary(self) -> AlertSummary:
        return self.alerts.summary()

    def get_alert_guidance(self, alert_id: str) -> AlertGuidance | None:
        alert = self.alerts.get(alert_id)
        if alert is None:
            return None
        return AlertGuidance(
            alert=alert,
            recommended_actions=get_recommended_actions(alert.type),
            yield_impact=calculate_yield_impact(alert, self.current_yield),
        )

    def get_statistics(self) -> MonitorStatistics:
        latest = self.history.latest()
        summary = self.alerts.summary()
        return MonitorStatistics(
            readings_processed=self._tick_count,
            analyses_run=self._analyses_run,
            producer_failures=self._producer_failures,
            history_size=len(self.history),
            history_capacity=self.history.capacity,
            total_alerts=summary.total,
            unacknowledged_alerts=summary.unacknowledged,
            last_reading_at=latest.timestamp if latest else None,
            started_at=self._started_at,
        )

    def snapshot(self, readings: int = 100, alerts: int = 50) -> dict[str, Any]:
        """Initial state sent to a new subscriber."""
        return {
            "parameters": self.get_parameters(),
            "lines": list(self.lines),
            "readings": [r.to_dict() for r in self.history.get_recent(readings)],
            "alerts": [a.to_dict() for a in self.alerts.recent(alerts)],
        }

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def acknowledge_alert(self, alert_id: str) -> Alert | None:
        """Acknowledge an alert and publish the update.

        Returns:
            The alert, or None if no alert has that ID
        """
        alert = self.alerts.acknowledge(alert_id)
        if alert is not None and self.event_bus is not None:
            await self.event_bus.publish(AlertAcknowledgedEvent(alert=alert))
        return alert

    async def reset_drift_state(self, parameter: str | None = None) -> bool:
        """Clear CUSUM/EWMA state for one parameter or all.

        Returns:
            False if `parameter` is not in the catalog, True otherwise
        """
        if parameter is not None and parameter not in self.catalog:
            return False
        self.detector.reset(parameter)
        if self.event_bus is not None:
            await self.event_bus.publish(DriftStateResetEvent(parameter=parameter))
        return True
