"""Unit tests for the parameter catalog and Reading immutability."""

from datetime import datetime, timezone

import pytest

from fabwatch.core.catalog import (
    DEFAULT_CATALOG,
    MANUFACTURING_LINES,
    ParameterSpec,
    build_catalog,
)
from fabwatch.core.providers import Reading


def spec_kwargs(**overrides):
    kwargs = dict(
        key="temperature", name="Temperature", unit="°C", category="thermal",
        target=25.0, ucl=27.0, lcl=23.0, usl=28.0, lsl=22.0,
    )
    kwargs.update(overrides)
    return kwargs


class TestParameterSpec:
    """Test ParameterSpec construction invariants."""

    def test_valid_spec(self):
        spec = ParameterSpec(**spec_kwargs())
        assert spec.sigma == pytest.approx(4.0 / 6)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"lcl": 25.0},
            {"ucl": 25.0},
            {"target": 30.0},
            {"lcl": 28.0, "ucl": 22.0},
        ],
    )
    def test_control_limit_ordering_enforced(self, overrides):
        with pytest.raises(ValueError, match="lcl < target < ucl"):
            ParameterSpec(**spec_kwargs(**overrides))

    def test_spec_limit_ordering_enforced(self):
        with pytest.raises(ValueError, match="lsl < usl"):
            ParameterSpec(**spec_kwargs(usl=22.0, lsl=22.0))

    def test_spec_is_frozen(self):
        spec = ParameterSpec(**spec_kwargs())
        with pytest.raises(AttributeError):
            spec.target = 26.0

    def test_to_dict(self):
        data = ParameterSpec(**spec_kwargs()).to_dict()
        assert data["key"] == "temperature"
        assert data["usl"] == 28.0


class TestCatalog:
    """Test catalog construction and defaults."""

    def test_default_catalog_contents(self):
        assert list(DEFAULT_CATALOG) == [
            "temperature", "pressure", "gas_flow", "rf_power",
            "etch_rate", "uniformity", "deposition", "humidity",
        ]
        assert MANUFACTURING_LINES == ("Line A", "Line B", "Line C", "Line D")

    def test_default_catalog_is_read_only(self):
        with pytest.raises(TypeError):
            DEFAULT_CATALOG["new"] = DEFAULT_CATALOG["temperature"]

    def test_build_catalog_rejects_invalid_entry(self):
        raw = {"temperature": {k: v for k, v in spec_kwargs(lcl=26.0).items() if k != "key"}}
        with pytest.raises(ValueError):
            build_catalog(raw)

    def test_build_catalog_missing_field(self):
        raw = {"temperature": {"name": "Temperature"}}
        with pytest.raises(KeyError):
            build_catalog(raw)


class TestReading:
    """Test that readings cannot change after creation."""

    def test_parameters_are_read_only(self):
        reading = Reading(
            id="RDG-1",
            timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
            line="Line A",
            parameters={"temperature": 25.0},
        )
        with pytest.raises(TypeError):
            reading.parameters["temperature"] = 30.0

    def test_source_mapping_is_copied(self):
        values = {"temperature": 25.0}
        reading = Reading(
            id="RDG-1",
            timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
            line="Line A",
            parameters=values,
        )
        values["temperature"] = 30.0
        assert reading.parameters["temperature"] == 25.0

    def test_to_dict(self):
        reading = Reading(
            id="RDG-1",
            timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
            line="Line B",
            parameters={"pressure": 100.0},
        )
        assert reading.to_dict() == {
            "id": "RDG-1",
            "timestamp": "2024-01-01T00:00:00+00:00",
            "line": "Line B",
            "parameters": {"pressure": 100.0},
        }
