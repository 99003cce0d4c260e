"""Parameter catalog for monitored process parameters.

Each monitored parameter carries a fixed target, control limits (UCL/LCL)
and specification limits (USL/LSL). The catalog is built once at startup
and never mutated afterwards.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True)
class ParameterSpec:
    """Static configuration for one monitored parameter.

    Attributes:
        key: Catalog key used in readings (e.g. "temperature")
        name: Human-readable parameter name
        unit: Engineering unit
        category: Grouping label (thermal, vacuum, gas, ...)
        target: Nominal process target
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

    def __post_init__(self) -> None:
        if not self.lcl < self.target < self.ucl:
            raise ValueError(
                f"Parameter '{self.key}' requires lcl < target < ucl, got "
                f"lcl={self.lcl}, target={self.target}, ucl={self.ucl}"
            )
        if not self.lsl < self.usl:
            raise ValueError(
                f"Parameter '{self.key}' requires lsl < usl, got "
                f"lsl={self.lsl}, usl={self.usl}"
            )

    @property
    def sigma(self) -> float:
        """Process sigma implied by the control limits: (ucl - lcl) / 6."""
        return (self.ucl - self.lcl) / 6

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "unit": self.unit,
            "category": self.category,
            "target": self.target,
            "ucl": self.ucl,
            "lcl": self.lcl,
            "usl": self.usl,
            "lsl": self.lsl,
        }


Catalog = Mapping[str, ParameterSpec]


def build_catalog(raw: Mapping[str, Mapping[str, Any]]) -> Catalog:
    """Build a read-only catalog from plain mappings.

    Args:
        raw: Mapping of parameter key to a mapping with name, unit, category,
            target, ucl, lcl, usl and lsl entries

    Returns:
        Read-only mapping of key to ParameterSpec, preserving input order

    Raises:
        ValueError: If an entry violates the limit ordering invariants
        KeyError: If an entry is missing a required field

    Example:
        >>> catalog = build_catalog({
        ...     "temperature": {
        ...         "name": "Temperature", "unit": "C", "category": "thermal",
        ...         "target": 25.0, "ucl": 27.0, "lcl": 23.0,
        ...         "usl": 28.0, "lsl": 22.0,
        ...     }
        ... })
        >>> catalog["temperature"].sigma
        0.666...
    """
    specs: dict[str, ParameterSpec] = {}
    for key, entry in raw.items():
        specs[key] = ParameterSpec(
            key=key,
            name=entry["name"],
            unit=entry["unit"],
            category=entry["category"],
            target=float(entry["target"]),
            ucl=float(entry["ucl"]),
            lcl=float(entry["lcl"]),
            usl=float(entry["usl"]),
            lsl=float(entry["lsl"]),
        )
    return MappingProxyType(specs)


_DEFAULT_PARAMETERS: dict[str, dict[str, Any]] = {
    "temperature": {
        "name": "Temperature", "unit": "°C", "category": "thermal",
        "target": 25.0, "ucl": 27.0, "lcl": 23.0, "usl": 28.0, "lsl": 22.0,
    },
    "pressure": {
        "name": "Chamber Pressure", "unit": "mTorr", "category": "vacuum",
        "target": 100.0, "ucl": 105.0, "lcl": 95.0, "usl": 110.0, "lsl": 90.0,
    },
    "gas_flow": {
        "name": "Gas Flow Rate", "unit": "sccm", "category": "gas",
        "target": 50.0, "ucl": 52.0, "lcl": 48.0, "usl": 55.0, "lsl": 45.0,
    },
    "rf_power": {
        "name": "RF Power", "unit": "W", "category": "power",
        "target": 300.0, "ucl": 310.0, "lcl": 290.0, "usl": 320.0, "lsl": 280.0,
    },
    "etch_rate": {
        "name": "Etch Rate", "unit": "nm/min", "category": "process",
        "target": 150.0, "ucl": 158.0, "lcl": 142.0, "usl": 165.0, "lsl": 135.0,
    },
    "uniformity": {
        "name": "Uniformity", "unit": "%", "category": "quality",
        "target": 2.0, "ucl": 2.5, "lcl": 0.5, "usl": 3.0, "lsl": 0.0,
    },
    "deposition": {
        "name": "Deposition Thickness", "unit": "nm", "category": "process",
        "target": 100.0, "ucl": 104.0, "lcl": 96.0, "usl": 108.0, "lsl": 92.0,
    },
    "humidity": {
        "name": "Humidity", "unit": "%RH", "category": "environmental",
        "target": 45.0, "ucl": 48.0, "lcl": 42.0, "usl": 50.0, "lsl": 40.0,
    },
}

DEFAULT_CATALOG: Catalog = build_catalog(_DEFAULT_PARAMETERS)

MANUFACTURING_LINES: tuple[str, ...] = ("Line A", "Line B", "Line C", "Line D")
