"""Pydantic schemas for readings and parameter series."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class SPCResultResponse(BaseModel):
    """SPC evaluation of one parameter value.

    Attributes:
        parameter: Catalog key
        value: Measured value
        deviation: value - target
        deviation_percent: deviation as percent of target
        zone: One of A+, B+, C+, OUT+, A-, B-, C-, OUT-
        out_of_control: Outside the control limits
        out_of_spec: Outside the specification limits
        status: normal, warning or critical
    """

    parameter: str
    value: float
    deviation: float
    deviation_percent: float
    zone: str
    out_of_control: bool
    out_of_spec: bool
    status: str


class ReadingResponse(BaseModel):
    """A stored reading with its analysis.

    `drift` is present only on analysis ticks.
    """

    id: str
    timestamp: datetime
    line: str
    parameters: dict[str, float]
    spc: dict[str, SPCResultResponse] = Field(default_factory=dict)
    drift: dict[str, Any] | None = None


class SeriesPoint(BaseModel):
    timestamp: datetime
    value: float


class ParameterSeriesResponse(BaseModel):
    parameter: str
    points: list[SeriesPoint]
