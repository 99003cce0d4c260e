"""Pydantic schemas for the FabWatch REST API.

This module provides the response and request schemas for the API,
organized by domain.
"""

from fabwatch.api.schemas.alert import (
    AlertGuidanceResponse,
    AlertResponse,
    AlertSummaryResponse,
    ImpactRange,
    YieldImpactResponse,
)
from fabwatch.api.schemas.common import (
    ErrorResponse,
    HealthResponse,
    StatisticsResponse,
)
from fabwatch.api.schemas.drift import (
    CusumResponse,
    DriftReportResponse,
    DriftResetRequest,
    DriftResetResponse,
    EwmaResponse,
    ParameterDriftResponse,
    PredictionResponse,
    ShiftResponse,
    TrendResponse,
)
from fabwatch.api.schemas.parameter import CatalogResponse, ParameterResponse
from fabwatch.api.schemas.reading import (
    ParameterSeriesResponse,
    ReadingResponse,
    SeriesPoint,
    SPCResultResponse,
)
from fabwatch.api.schemas.spc import (
    CapabilityResponse,
    CapabilitySummaryResponse,
    DiagnosticsResponse,
    EstimatedLimitsResponse,
    PatternViolationResponse,
)

__all__ = [
    # Common
    "ErrorResponse",
    "HealthResponse",
    "StatisticsResponse",
    # Parameters
    "ParameterResponse",
    "CatalogResponse",
    # Readings
    "ReadingResponse",
    "SPCResultResponse",
    "SeriesPoint",
    "ParameterSeriesResponse",
    # Alerts
    "AlertResponse",
    "AlertSummaryResponse",
    "AlertGuidanceResponse",
    "YieldImpactResponse",
    "ImpactRange",
    # SPC
    "CapabilityResponse",
    "CapabilitySummaryResponse",
    "DiagnosticsResponse",
    "EstimatedLimitsResponse",
    "PatternViolationResponse",
    # Drift
    "DriftReportResponse",
    "ParameterDriftResponse",
    "CusumResponse",
    "EwmaResponse",
    "TrendResponse",
    "ShiftResponse",
    "PredictionResponse",
    "DriftResetRequest",
    "DriftResetResponse",
]
