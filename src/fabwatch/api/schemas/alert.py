"""Pydantic schemas for alerts, alert statistics and operator guidance."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class AlertResponse(BaseModel):
    """Schema for alert response.

    Attributes:
        id: Unique alert ID
        type: OUT_OF_SPEC, OUT_OF_CONTROL, CUSUM_DRIFT, EWMA_DRIFT, TREND
            or PROCESS_SHIFT
        severity: critical, warning or info
        parameter: Catalog key of the parameter
        parameter_name: Display name of the parameter
        line: Manufacturing line of the triggering reading
        message: Human-readable description
        timestamp: Timestamp of the triggering reading
        details: Type-specific numbers
        acknowledged: Whether the alert has been acknowledged
        acknowledged_at: When it was acknowledged
        created_at: Wall-clock creation time
        priority: Ranking score (higher is more urgent)
    """

    id: str
    type: str
    severity: str
    parameter: str
    parameter_name: str
    line: str
    message: str
    timestamp: datetime
    details: dict[str, Any] = Field(default_factory=dict)
    acknowledged: bool
    acknowledged_at: datetime | None = None
    created_at: datetime
    priority: int


class AlertSummaryResponse(BaseModel):
    """Aggregated alert counts.

    Attributes:
        total: Total number of alerts
        unacknowledged: Number of unacknowledged alerts
        by_severity: Counts per severity
        by_type: Counts per alert type
        by_parameter: Counts per parameter
        by_line: Counts per manufacturing line
    """

    total: int
    unacknowledged: int
    by_severity: dict[str, int] = Field(default_factory=dict)
    by_type: dict[str, int] = Field(default_factory=dict)
    by_parameter: dict[str, int] = Field(default_factory=dict)
    by_line: dict[str, int] = Field(default_factory=dict)


class ImpactRange(BaseModel):
    min: float
    max: float


class YieldImpactResponse(BaseModel):
    estimated_yield_loss: float
    projected_yield: float
    impact_range: ImpactRange
    confidence: str


class AlertGuidanceResponse(BaseModel):
    """Recommended actions and yield impact for one alert."""

    alert: AlertResponse
    recommended_actions: list[str]
    yield_impact: YieldImpactResponse
