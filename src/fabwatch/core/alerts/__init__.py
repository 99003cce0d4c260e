"""Alert synthesis, prioritization and the alert log."""

from fabwatch.core.alerts.manager import (
    DEFAULT_ACTIONS,
    RECOMMENDED_ACTIONS,
    YIELD_IMPACT_RANGES,
    Alert,
    AlertLog,
    AlertSeverity,
    AlertSummary,
    AlertSynthesizer,
    AlertType,
    YieldImpact,
    calculate_yield_impact,
    get_alert_priority,
    get_recommended_actions,
    get_severity_level,
    sort_by_priority,
)

__all__ = [
    "Alert",
    "AlertType",
    "AlertSeverity",
    "AlertSynthesizer",
    "AlertLog",
    "AlertSummary",
    "YieldImpact",
    "RECOMMENDED_ACTIONS",
    "DEFAULT_ACTIONS",
    "YIELD_IMPACT_RANGES",
    "calculate_yield_impact",
    "get_alert_priority",
    "get_recommended_actions",
    "get_severity_level",
    "sort_by_priority",
]
