"""Pytest configuration and shared fixtures."""

from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timedelta, timezone

import pytest

from fabwatch.core.catalog import DEFAULT_CATALOG, ParameterSpec, build_catalog
from fabwatch.core.providers.protocol import Reading

BASE_TIME = datetime(2024, 1, 1, 8, 0, 0, tzinfo=timezone.utc)


class FixtureProducer:
    """Deterministic producer serving readings from a list of value maps.

    Readings are stamped `spacing` apart starting at `start`. Raises
    RuntimeError once the values are exhausted.
    """

    def __init__(
        self,
        values: Iterable[Mapping[str, float]],
        start: datetime = BASE_TIME,
        spacing: timedelta = timedelta(seconds=1),
        line: str = "Line A",
    ):
        self._values = list(values)
        self._start = start
        self._spacing = spacing
        self._line = line
        self.served = 0

    def __call__(self) -> Reading:
        if self.served >= len(self._values):
            raise RuntimeError("fixture producer exhausted")
        index = self.served
        self.served += 1
        return Reading(
            id=f"RDG-{index}",
            timestamp=self._start + index * self._spacing,
            line=self._line,
            parameters=self._values[index],
        )


@pytest.fixture
def catalog():
    """The default eight-parameter catalog."""
    return DEFAULT_CATALOG


@pytest.fixture
def temperature_spec(catalog) -> ParameterSpec:
    """Temperature: target 25, control 23-27, spec 22-28."""
    return catalog["temperature"]


@pytest.fixture
def unit_sigma_spec() -> ParameterSpec:
    """Spec with sigma = (ucl - lcl) / 6 = 1.0 around a target of 25."""
    return ParameterSpec(
        key="temperature",
        name="Temperature",
        unit="°C",
        category="thermal",
        target=25.0,
        ucl=28.0,
        lcl=22.0,
        usl=30.0,
        lsl=20.0,
    )


@pytest.fixture
def unit_sigma_catalog(unit_sigma_spec):
    return build_catalog({
        unit_sigma_spec.key: {
            "name": unit_sigma_spec.name,
            "unit": unit_sigma_spec.unit,
            "category": unit_sigma_spec.category,
            "target": unit_sigma_spec.target,
            "ucl": unit_sigma_spec.ucl,
            "lcl": unit_sigma_spec.lcl,
            "usl": unit_sigma_spec.usl,
            "lsl": unit_sigma_spec.lsl,
        }
    })


@pytest.fixture
def make_reading() -> Callable[..., Reading]:
    """Factory for single readings stamped `index` seconds after BASE_TIME."""

    def _make(
        parameters: Mapping[str, float],
        index: int = 0,
        line: str = "Line A",
        timestamp: datetime | None = None,
    ) -> Reading:
        return Reading(
            id=f"RDG-{index}",
            timestamp=timestamp or BASE_TIME + timedelta(seconds=index),
            line=line,
            parameters=parameters,
        )

    return _make


@pytest.fixture
def make_history(make_reading) -> Callable[..., list[Reading]]:
    """Factory turning a list of values for one parameter into readings."""

    def _make(values: Iterable[float], parameter: str = "temperature") -> list[Reading]:
        return [make_reading({parameter: v}, index=i) for i, v in enumerate(values)]

    return _make


@pytest.fixture
def fixture_producer() -> Callable[..., FixtureProducer]:
    """Factory for deterministic reading producers."""
    return FixtureProducer
