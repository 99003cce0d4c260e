"""Pydantic schemas for drift detection status and reset."""

from datetime import datetime

from pydantic import BaseModel, Field


class CusumResponse(BaseModel):
    cusum_plus: float
    cusum_minus: float
    baseline: float
    threshold: float
    alarm: bool
    warning: bool
    direction: str | None = None


class EwmaResponse(BaseModel):
    value: float
    ucl: float
    lcl: float
    target: float
    deviation: float
    alarm: bool
    warning: bool


class TrendResponse(BaseModel):
    slope: float
    intercept: float
    r_squared: float
    projected_drift: float
    significant: bool
    direction: str | None = None


class ShiftResponse(BaseModel):
    detected: bool
    baseline_mean: float
    recent_mean: float
    shift: float
    shift_in_sigmas: float
    direction: str | None = None


class PredictionResponse(BaseModel):
    readings_to_ooc: int
    direction: str
    confidence: float


class ParameterDriftResponse(BaseModel):
    """Drift analysis of one parameter.

    Attributes:
        parameter: Catalog key
        cusum: CUSUM statistics and flags
        ewma: EWMA value, limits and flags
        trend: Linear trend fit
        shift: Mean shift between the last two 30-reading windows
        overall: normal, warning or critical
        prediction: Readings until a control limit is crossed, when trending
    """

    parameter: str
    cusum: CusumResponse
    ewma: EwmaResponse
    trend: TrendResponse
    shift: ShiftResponse
    overall: str
    prediction: PredictionResponse | None = None


class DriftReportResponse(BaseModel):
    """Result of a drift analysis pass.

    `results` is empty when `status` is insufficient_data.
    """

    status: str
    timestamp: datetime
    results: dict[str, ParameterDriftResponse] = Field(default_factory=dict)


class DriftResetRequest(BaseModel):
    """Reset CUSUM/EWMA state for one parameter, or all when omitted."""

    parameter: str | None = Field(default=None, description="Catalog key, or null for all")


class DriftResetResponse(BaseModel):
    parameter: str | None
    message: str
