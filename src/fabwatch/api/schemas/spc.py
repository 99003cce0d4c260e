"""Pydantic schemas for capability summaries and SPC diagnostics."""

from pydantic import BaseModel, ConfigDict


class CapabilityResponse(BaseModel):
    """Capability statistics over the most recent readings.

    Attributes:
        mean: Arithmetic mean
        std_dev: Sample standard deviation
        min: Minimum value
        max: Maximum value
        range: max - min
        cp: Potential capability
        cpk: Actual capability
        ppk: Overall performance index
        out_of_control_percent: Share of values outside control limits
        out_of_spec_percent: Share of values outside spec limits
        sample_size: Number of values summarized
    """

    mean: float
    std_dev: float
    min: float
    max: float
    range: float
    cp: float
    cpk: float
    ppk: float
    out_of_control_percent: float
    out_of_spec_percent: float
    sample_size: int

    model_config = ConfigDict(from_attributes=True)


class CapabilitySummaryResponse(BaseModel):
    parameters: dict[str, CapabilityResponse]


class EstimatedLimitsResponse(BaseModel):
    """I-MR control limits estimated from recent data."""

    center_line: float
    ucl: float
    lcl: float
    sigma: float

    model_config = ConfigDict(from_attributes=True)


class PatternViolationResponse(BaseModel):
    rule_id: int
    rule_name: str
    message: str
    values: list[float]

    model_config = ConfigDict(from_attributes=True)


class DiagnosticsResponse(BaseModel):
    """Capability, estimated limits and pattern violations for a parameter.

    `estimated_limits` is null when too few readings are available.
    """

    parameter: str
    capability: CapabilityResponse
    estimated_limits: EstimatedLimitsResponse | None
    violations: list[PatternViolationResponse]

    model_config = ConfigDict(from_attributes=True)
