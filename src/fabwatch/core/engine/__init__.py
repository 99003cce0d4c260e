"""Monitoring engine - SPC evaluation, pattern rules, drift detection and history."""

from .drift_detector import (
    CusumResult,
    CusumState,
    DriftDetector,
    DriftReport,
    DriftState,
    DriftStatus,
    DriftVerdict,
    EwmaResult,
    EwmaState,
    OOCPrediction,
    ParameterDriftResult,
    ShiftResult,
    TrendResult,
)
from .history import HistoryStore, ProcessedReading
from .pattern_rules import (
    PATTERN_WINDOW,
    PatternRule,
    PatternRuleLibrary,
    PatternViolation,
    Rule1BeyondLimits,
    Rule2SameSide,
    Rule3Trend,
    Rule4TwoOfThree,
)
from .spc_evaluator import (
    CapabilitySummary,
    SPCResult,
    SPCStatus,
    Zone,
    classify_zone,
    evaluate,
    evaluate_value,
    results_to_dict,
    summarize,
)

__all__ = [
    # SPC Evaluator
    "evaluate",
    "evaluate_value",
    "classify_zone",
    "summarize",
    "results_to_dict",
    "SPCResult",
    "SPCStatus",
    "CapabilitySummary",
    "Zone",
    # Pattern Rules
    "PATTERN_WINDOW",
    "PatternRule",
    "PatternRuleLibrary",
    "PatternViolation",
    "Rule1BeyondLimits",
    "Rule2SameSide",
    "Rule3Trend",
    "Rule4TwoOfThree",
    # Drift Detector
    "DriftDetector",
    "DriftReport",
    "DriftStatus",
    "DriftVerdict",
    "DriftState",
    "CusumState",
    "EwmaState",
    "CusumResult",
    "EwmaResult",
    "TrendResult",
    "ShiftResult",
    "OOCPrediction",
    "ParameterDriftResult",
    # History
    "HistoryStore",
    "ProcessedReading",
]
