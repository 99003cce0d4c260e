"""Unit tests for alert synthesis, ranking and the alert log."""

from datetime import datetime, timedelta, timezone

import pytest

from fabwatch.core.alerts import (
    Alert,
    AlertLog,
    AlertSeverity,
    AlertSynthesizer,
    AlertType,
    DEFAULT_ACTIONS,
    calculate_yield_impact,
    get_alert_priority,
    get_recommended_actions,
    sort_by_priority,
)
from fabwatch.core.engine.drift_detector import (
    CusumResult,
    DriftReport,
    DriftStatus,
    DriftVerdict,
    EwmaResult,
    ParameterDriftResult,
    ShiftResult,
    TrendResult,
)
from fabwatch.core.engine.spc_evaluator import evaluate

BASE = datetime(2024, 1, 1, 8, 0, 0, tzinfo=timezone.utc)


def make_alert(alert_type, severity, timestamp=BASE, parameter="temperature", line="Line A"):
    return Alert(
        id=f"{alert_type.value}-{timestamp.isoformat()}",
        type=alert_type,
        severity=severity,
        parameter=parameter,
        parameter_name=parameter.title(),
        line=line,
        message="test",
        timestamp=timestamp,
    )


def drift_report(
    parameter="temperature",
    cusum_alarm=False,
    ewma_alarm=False,
    trend_significant=False,
    shift_detected=False,
    status=DriftStatus.ANALYZED,
):
    result = ParameterDriftResult(
        parameter=parameter,
        cusum=CusumResult(
            cusum_plus=5.5 if cusum_alarm else 0.0,
            cusum_minus=0.0,
            baseline=25.0,
            threshold=5.0,
            alarm=cusum_alarm,
            direction="positive" if cusum_alarm else None,
        ),
        ewma=EwmaResult(
            value=26.2 if ewma_alarm else 25.0,
            ucl=26.0,
            lcl=24.0,
            target=25.0,
            deviation=1.2 if ewma_alarm else 0.0,
            alarm=ewma_alarm,
        ),
        trend=TrendResult(
            slope=0.05,
            r_squared=0.85,
            projected_drift=5.0,
            significant=trend_significant,
            direction="increasing",
        ),
        shift=ShiftResult(
            detected=shift_detected,
            baseline_mean=25.0,
            recent_mean=27.0,
            shift=2.0,
            shift_in_sigmas=2.0,
            direction="positive",
        ),
        overall=DriftVerdict.CRITICAL,
    )
    results = {parameter: result} if status is DriftStatus.ANALYZED else {}
    return DriftReport(status=status, timestamp=BASE, results=results)


class TestPriority:
    """Test priority scoring and ordering."""

    @pytest.mark.parametrize(
        "alert_type,severity,expected",
        [
            (AlertType.OUT_OF_SPEC, AlertSeverity.CRITICAL, 350),
            (AlertType.PROCESS_SHIFT, AlertSeverity.CRITICAL, 340),
            (AlertType.CUSUM_DRIFT, AlertSeverity.CRITICAL, 330),
            (AlertType.OUT_OF_CONTROL, AlertSeverity.WARNING, 220),
            (AlertType.EWMA_DRIFT, AlertSeverity.WARNING, 215),
            (AlertType.TREND, AlertSeverity.INFO, 110),
        ],
    )
    def test_priority(self, alert_type, severity, expected):
        alert = make_alert(alert_type, severity)
        assert get_alert_priority(alert) == expected
        assert alert.priority == expected

    def test_sort_by_priority(self):
        trend = make_alert(AlertType.TREND, AlertSeverity.INFO)
        spec = make_alert(AlertType.OUT_OF_SPEC, AlertSeverity.CRITICAL)
        ewma = make_alert(AlertType.EWMA_DRIFT, AlertSeverity.WARNING)

        assert sort_by_priority([trend, spec, ewma]) == [spec, ewma, trend]

    def test_ties_put_newest_first(self):
        older = make_alert(AlertType.TREND, AlertSeverity.INFO, timestamp=BASE)
        newer = make_alert(AlertType.TREND, AlertSeverity.INFO, timestamp=BASE + timedelta(seconds=5))

        assert sort_by_priority([older, newer]) == [newer, older]


class TestGuidance:
    """Test recommended actions and yield impact."""

    def test_recommended_actions(self):
        actions = get_recommended_actions(AlertType.OUT_OF_SPEC)
        assert actions[0] == "Stop production immediately"
        assert len(actions) == 5

    def test_actions_are_copies(self):
        get_recommended_actions(AlertType.TREND).append("mutated")
        assert "mutated" not in get_recommended_actions(AlertType.TREND)

    def test_unknown_type_falls_back(self):
        assert get_recommended_actions(None) == DEFAULT_ACTIONS

    def test_yield_impact_critical(self):
        impact = calculate_yield_impact(make_alert(AlertType.OUT_OF_SPEC, AlertSeverity.CRITICAL))

        assert impact.estimated_yield_loss == pytest.approx(9.0)
        assert impact.projected_yield == pytest.approx(86.0)
        assert impact.impact_range == (2.0, 10.0)
        assert impact.confidence == "medium"

    def test_yield_impact_info(self):
        impact = calculate_yield_impact(make_alert(AlertType.TREND, AlertSeverity.INFO))

        assert impact.estimated_yield_loss == pytest.approx(0.3)
        assert impact.projected_yield == pytest.approx(94.7)

    def test_yield_impact_custom_yield(self):
        impact = calculate_yield_impact(
            make_alert(AlertType.OUT_OF_CONTROL, AlertSeverity.WARNING), current_yield=90.0
        )
        assert impact.projected_yield == pytest.approx(88.75)

    def test_yield_impact_to_dict(self):
        data = calculate_yield_impact(make_alert(AlertType.TREND, AlertSeverity.INFO)).to_dict()
        assert data["impact_range"] == {"min": 0.2, "max": 1.0}


class TestAlertSynthesizerSPC:
    """Test alerts built from SPC results."""

    def test_out_of_spec(self, catalog, make_reading):
        reading = make_reading({"temperature": 28.5})
        alerts = AlertSynthesizer().check_for_alerts(
            reading, evaluate(reading, catalog), None, catalog
        )

        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.type == AlertType.OUT_OF_SPEC
        assert alert.severity == AlertSeverity.CRITICAL
        assert alert.message == "Temperature (28.50 °C) exceeded upper spec limit"
        assert alert.details == {"value": 28.5, "limit": 28.0, "limit_type": "USL"}
        assert alert.timestamp == reading.timestamp
        assert alert.line == "Line A"

    def test_out_of_spec_suppresses_out_of_control(self, catalog, make_reading):
        """A value beyond both limits raises only the out-of-spec alert."""
        reading = make_reading({"temperature": 21.5})
        alerts = AlertSynthesizer().check_for_alerts(
            reading, evaluate(reading, catalog), None, catalog
        )

        assert [a.type for a in alerts] == [AlertType.OUT_OF_SPEC]
        assert alerts[0].details["limit_type"] == "LSL"
        assert "lower spec limit" in alerts[0].message

    def test_out_of_control(self, catalog, make_reading):
        reading = make_reading({"temperature": 22.5})
        alerts = AlertSynthesizer().check_for_alerts(
            reading, evaluate(reading, catalog), None, catalog
        )

        assert [a.type for a in alerts] == [AlertType.OUT_OF_CONTROL]
        assert alerts[0].severity == AlertSeverity.WARNING
        assert alerts[0].details == {"value": 22.5, "limit": 23.0, "limit_type": "LCL"}

    def test_in_control_raises_nothing(self, catalog, make_reading):
        reading = make_reading({"temperature": 25.0, "pressure": 100.0})
        assert AlertSynthesizer().check_for_alerts(
            reading, evaluate(reading, catalog), None, catalog
        ) == []

    def test_alert_ids_are_unique(self, catalog, make_reading):
        reading = make_reading({"temperature": 28.5, "pressure": 112.0})
        alerts = AlertSynthesizer().check_for_alerts(
            reading, evaluate(reading, catalog), None, catalog
        )
        assert len({a.id for a in alerts}) == 2


class TestAlertSynthesizerCooldown:
    """Test per-(type, parameter) cooldown on reading timestamps."""

    def check(self, synthesizer, catalog, make_reading, value, offset):
        reading = make_reading({"temperature": value}, timestamp=BASE + offset)
        return synthesizer.check_for_alerts(reading, evaluate(reading, catalog), None, catalog)

    def test_repeat_within_cooldown_is_suppressed(self, catalog, make_reading):
        synthesizer = AlertSynthesizer()
        first = self.check(synthesizer, catalog, make_reading, 28.5, timedelta(0))
        second = self.check(synthesizer, catalog, make_reading, 28.6, timedelta(minutes=4))

        assert len(first) == 1
        assert second == []

    def test_repeat_after_cooldown_is_emitted(self, catalog, make_reading):
        synthesizer = AlertSynthesizer()
        self.check(synthesizer, catalog, make_reading, 28.5, timedelta(0))
        later = self.check(synthesizer, catalog, make_reading, 28.5, timedelta(minutes=5, seconds=1))

        assert len(later) == 1

    def test_cooldown_boundary_emits(self, catalog, make_reading):
        synthesizer = AlertSynthesizer()
        self.check(synthesizer, catalog, make_reading, 28.5, timedelta(0))
        at_boundary = self.check(synthesizer, catalog, make_reading, 28.5, timedelta(minutes=5))

        assert len(at_boundary) == 1

    def test_cooldown_is_per_type(self, catalog, make_reading):
        synthesizer = AlertSynthesizer()
        self.check(synthesizer, catalog, make_reading, 28.5, timedelta(0))
        ooc = self.check(synthesizer, catalog, make_reading, 27.5, timedelta(seconds=10))

        assert [a.type for a in ooc] == [AlertType.OUT_OF_CONTROL]

    def test_suppressed_candidate_does_not_extend_window(self, catalog, make_reading):
        synthesizer = AlertSynthesizer()
        self.check(synthesizer, catalog, make_reading, 28.5, timedelta(0))
        self.check(synthesizer, catalog, make_reading, 28.5, timedelta(minutes=4))
        later = self.check(synthesizer, catalog, make_reading, 28.5, timedelta(minutes=5, seconds=1))

        assert len(later) == 1

    def test_clear(self, catalog, make_reading):
        synthesizer = AlertSynthesizer()
        self.check(synthesizer, catalog, make_reading, 28.5, timedelta(0))
        synthesizer.clear()

        assert len(self.check(synthesizer, catalog, make_reading, 28.5, timedelta(seconds=1))) == 1

    def test_custom_cooldown(self, catalog, make_reading):
        synthesizer = AlertSynthesizer(cooldown=timedelta(seconds=30))
        self.check(synthesizer, catalog, make_reading, 28.5, timedelta(0))

        assert len(self.check(synthesizer, catalog, make_reading, 28.5, timedelta(seconds=31))) == 1


class TestAlertSynthesizerDrift:
    """Test alerts built from drift reports."""

    def test_all_drift_alerts_in_order(self, catalog, make_reading):
        reading = make_reading({"temperature": 25.0})
        report = drift_report(
            cusum_alarm=True, ewma_alarm=True, trend_significant=True, shift_detected=True
        )
        alerts = AlertSynthesizer().check_for_alerts(reading, {}, report, catalog)

        assert [a.type for a in alerts] == [
            AlertType.CUSUM_DRIFT,
            AlertType.EWMA_DRIFT,
            AlertType.TREND,
            AlertType.PROCESS_SHIFT,
        ]
        assert [a.severity for a in alerts] == [
            AlertSeverity.CRITICAL,
            AlertSeverity.WARNING,
            AlertSeverity.INFO,
            AlertSeverity.CRITICAL,
        ]

    def test_drift_messages_and_details(self, catalog, make_reading):
        reading = make_reading({"temperature": 25.0})
        report = drift_report(
            cusum_alarm=True, ewma_alarm=True, trend_significant=True, shift_detected=True
        )
        cusum, ewma, trend, shift = AlertSynthesizer().check_for_alerts(reading, {}, report, catalog)

        assert cusum.message == "CUSUM drift detected for Temperature (positive direction)"
        assert cusum.details == {"direction": "positive", "cusum_value": 5.5, "threshold": 5.0}
        assert ewma.message == "EWMA drift detected for Temperature (deviation: 1.200)"
        assert ewma.details == {"ewma_value": 26.2, "deviation": 1.2}
        assert trend.message == "Significant trend detected for Temperature (increasing, R²=0.85)"
        assert trend.details["projected_drift"] == 5.0
        assert shift.message == "Process shift detected for Temperature (2.0σ positive)"
        assert shift.details["shift_in_sigmas"] == 2.0

    def test_spc_alerts_come_before_drift_alerts(self, catalog, make_reading):
        reading = make_reading({"temperature": 28.5})
        alerts = AlertSynthesizer().check_for_alerts(
            reading, evaluate(reading, catalog), drift_report(cusum_alarm=True), catalog
        )

        assert [a.type for a in alerts] == [AlertType.OUT_OF_SPEC, AlertType.CUSUM_DRIFT]

    def test_insufficient_data_report_raises_no_drift_alerts(self, catalog, make_reading):
        reading = make_reading({"temperature": 25.0})
        report = drift_report(status=DriftStatus.INSUFFICIENT_DATA)

        assert AlertSynthesizer().check_for_alerts(reading, {}, report, catalog) == []

    def test_quiet_report_raises_nothing(self, catalog, make_reading):
        reading = make_reading({"temperature": 25.0})
        assert AlertSynthesizer().check_for_alerts(reading, {}, drift_report(), catalog) == []


class TestAlertLog:
    """Test the append-only alert log."""

    def test_append_and_get(self):
        log = AlertLog()
        alert = make_alert(AlertType.TREND, AlertSeverity.INFO)
        log.append(alert)

        assert len(log) == 1
        assert log.get(alert.id) is alert
        assert log.get("missing") is None

    def test_acknowledge(self):
        log = AlertLog()
        alert = make_alert(AlertType.TREND, AlertSeverity.INFO)
        log.append(alert)
        now = BASE + timedelta(minutes=1)

        assert log.acknowledge(alert.id, now=now) is alert
        assert alert.acknowledged is True
        assert alert.acknowledged_at == now

    def test_acknowledge_is_idempotent(self):
        log = AlertLog()
        alert = make_alert(AlertType.TREND, AlertSeverity.INFO)
        log.append(alert)
        first = BASE + timedelta(minutes=1)

        log.acknowledge(alert.id, now=first)
        log.acknowledge(alert.id, now=first + timedelta(minutes=1))

        assert alert.acknowledged_at == first

    def test_acknowledge_unknown(self):
        assert AlertLog().acknowledge("missing") is None

    def test_recent(self):
        log = AlertLog()
        alerts = [
            make_alert(AlertType.TREND, AlertSeverity.INFO, timestamp=BASE + timedelta(seconds=i))
            for i in range(5)
        ]
        log.extend(alerts)

        assert log.recent(3) == alerts[2:]
        assert log.recent(0) == []
        assert log.recent(10) == alerts

    def test_recent_unacknowledged_filters_within_window(self):
        log = AlertLog()
        alerts = [
            make_alert(AlertType.TREND, AlertSeverity.INFO, timestamp=BASE + timedelta(seconds=i))
            for i in range(4)
        ]
        log.extend(alerts)
        log.acknowledge(alerts[3].id)

        assert log.recent(2, unacknowledged_only=True) == [alerts[2]]

    def test_summary(self):
        log = AlertLog()
        log.extend([
            make_alert(AlertType.OUT_OF_SPEC, AlertSeverity.CRITICAL, parameter="temperature"),
            make_alert(
                AlertType.OUT_OF_CONTROL, AlertSeverity.WARNING,
                timestamp=BASE + timedelta(seconds=1), parameter="pressure", line="Line B",
            ),
            make_alert(
                AlertType.OUT_OF_SPEC, AlertSeverity.CRITICAL,
                timestamp=BASE + timedelta(seconds=2), parameter="temperature",
            ),
        ])
        log.acknowledge(log.all()[0].id)

        summary = log.summary()
        assert summary.total == 3
        assert summary.unacknowledged == 2
        assert summary.by_severity == {"critical": 2, "warning": 1, "info": 0}
        assert summary.by_type == {"OUT_OF_SPEC": 2, "OUT_OF_CONTROL": 1}
        assert summary.by_parameter == {"temperature": 2, "pressure": 1}
        assert summary.by_line == {"Line A": 2, "Line B": 1}

    def test_empty_summary_has_all_severities(self):
        summary = AlertLog().summary()
        assert summary.total == 0
        assert summary.by_severity == {"critical": 0, "warning": 0, "info": 0}

    def test_to_dict(self):
        alert = make_alert(AlertType.OUT_OF_SPEC, AlertSeverity.CRITICAL)
        data = alert.to_dict()

        assert data["type"] == "OUT_OF_SPEC"
        assert data["severity"] == "critical"
        assert data["priority"] == 350
        assert data["acknowledged_at"] is None
