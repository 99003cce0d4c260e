"""Synthetic reading generator for standalone operation.

Produces plausible sensor readings for every catalog parameter: a slow
random-walk drift, occasional step shifts, a cyclical component, uniform
noise, rare outliers and a small per-line offset. Values are clipped to a
band just outside the specification limits.

The simulator is a stand-in for a real data source. It satisfies the
ReadingProducer protocol and is never imported by the analysis path.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import numpy as np

from fabwatch.core.catalog import MANUFACTURING_LINES, Catalog, ParameterSpec
from fabwatch.core.providers.protocol import Reading, ReadingProducer

# Offset per line as a fraction of the control-limit width
LINE_OFFSETS: dict[str, float] = {
    "Line A": 0.0,
    "Line B": 0.02,
    "Line C": -0.01,
    "Line D": 0.015,
}


@dataclass
class _ParameterDrift:
    drift: float
    drift_rate: float
    last_shift: int = 0


class ReadingSimulator:
    """Generates synthetic readings for a parameter catalog.

    Args:
        catalog: Parameters to generate values for
        lines: Manufacturing lines to rotate through
        seed: Optional RNG seed for reproducible sequences
        noise_level: Noise amplitude as a fraction of the control-limit width

    Example:
        >>> simulator = ReadingSimulator(DEFAULT_CATALOG, seed=7)
        >>> reading = simulator()
        >>> sorted(reading.parameters) == sorted(DEFAULT_CATALOG)
        True
    """

    def __init__(
        self,
        catalog: Catalog,
        lines: Sequence[str] = MANUFACTURING_LINES,
        seed: int | None = None,
        noise_level: float = 0.3,
    ):
        if not lines:
            raise ValueError("At least one manufacturing line is required")

        self._catalog = catalog
        self._lines = tuple(lines)
        self._rng = np.random.default_rng(seed)
        self._noise_level = noise_level
        self._states: dict[str, _ParameterDrift] = {}
        self._iteration = 0

    def __call__(self) -> Reading:
        """Produce the next live reading stamped with the current time."""
        self._iteration += 1
        return self.generate(datetime.now(timezone.utc), self._iteration)

    def historical(self, count: int, spacing: timedelta) -> ReadingProducer:
        """Return a producer that replays `count` readings ending before now.

        Timestamps start at ``now - count * spacing`` and advance by
        ``spacing`` on every call, so the last reading lands one spacing
        before the moment this method was called.

        Args:
            count: Number of readings the producer is expected to serve
            spacing: Simulated time between consecutive readings

        Returns:
            Zero-argument producer suitable for ProcessMonitor.backfill()
        """
        start = datetime.now(timezone.utc) - count * spacing
        served = 0

        def produce() -> Reading:
            nonlocal served
            timestamp = start + served * spacing
            served += 1
            self._iteration += 1
            return self.generate(timestamp, self._iteration)

        return produce

    def generate(self, timestamp: datetime, iteration: int) -> Reading:
        """Generate one reading for the given timestamp and iteration."""
        line = self._lines[iteration % len(self._lines)]
        values = {
            key: self._generate_value(spec, iteration, line)
            for key, spec in self._catalog.items()
        }
        stamp_ms = int(timestamp.timestamp() * 1000)
        return Reading(
            id=f"RDG-{stamp_ms}-{iteration}",
            timestamp=timestamp,
            line=line,
            parameters=values,
        )

    def _generate_value(self, spec: ParameterSpec, iteration: int, line: str) -> float:
        width = spec.ucl - spec.lcl
        state = self._states.get(spec.key)
        if state is None:
            state = _ParameterDrift(drift=0.0, drift_rate=(self._rng.random() - 0.5) * 0.001)
            self._states[spec.key] = state

        state.drift += state.drift_rate

        # Occasionally change drift direction
        if self._rng.random() < 0.001:
            state.drift_rate = (self._rng.random() - 0.5) * 0.002

        # Rare step change, at most one every 50 iterations
        if self._rng.random() < 0.002 and iteration - state.last_shift > 50:
            state.drift += (self._rng.random() - 0.5) * width * 0.3
            state.last_shift = iteration

        line_offset = LINE_OFFSETS.get(line, 0.0) * width
        cyclical = float(np.sin(iteration * 0.05)) * width * 0.05
        noise = (self._rng.random() - 0.5) * width * self._noise_level

        outlier = 0.0
        if self._rng.random() < 0.005:
            outlier = (self._rng.random() - 0.5) * width * 0.8

        value = spec.target + state.drift + line_offset + cyclical + noise + outlier
        value = float(np.clip(value, spec.lsl * 0.9, spec.usl * 1.1))
        return round(value, 4)
