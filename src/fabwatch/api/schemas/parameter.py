"""Pydantic schemas for the parameter catalog."""

from pydantic import BaseModel, ConfigDict


class ParameterResponse(BaseModel):
    """One catalog entry.

    Attributes:
        key: Catalog key used in readings
        name: Display name
        unit: Engineering unit
        category: Grouping label
        target: Nominal target
        ucl: Upper control limit
        lcl: Lower control limit
        usl: Upper specification limit
        lsl: Lower specification limit
    """

    key: str
    name: str
    unit: str
    category: str
    target: float
    ucl: float
    lcl: float
    usl: float
    lsl: float

    model_config = ConfigDict(from_attributes=True)


class CatalogResponse(BaseModel):
    parameters: dict[str, ParameterResponse]
    lines: list[str]
