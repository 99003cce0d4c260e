"""Bounded rolling history of processed readings.

The store keeps readings in chronological order (oldest first), appends at
the tail and evicts from the head once capacity is reached. Readings must
arrive with strictly ascending timestamps; anything else is rejected
before the store is touched.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from fabwatch.core.engine.spc_evaluator import SPCResult, results_to_dict
from fabwatch.core.providers.protocol import Reading

if TYPE_CHECKING:
    from fabwatch.core.alerts.manager import Alert
    from fabwatch.core.engine.drift_detector import DriftReport


@dataclass
class ProcessedReading:
    """A reading with the analysis attached to it by the monitor.

    Attributes:
        reading: The immutable source reading
        spc: Per-parameter SPC results
        drift: Drift report, set only on analysis ticks
        alerts: Alerts raised on this reading's analysis tick
    """
    reading: Reading
    spc: dict[str, SPCResult] = field(default_factory=dict)
    drift: "DriftReport | None" = None
    alerts: list["Alert"] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.reading.id

    @property
    def timestamp(self) -> datetime:
        return self.reading.timestamp

    @property
    def parameters(self):
        return self.reading.parameters

    def to_dict(self) -> dict[str, Any]:
        data = self.reading.to_dict()
        data["spc"] = results_to_dict(self.spc)
        if self.drift is not None:
            data["drift"] = self.drift.to_dict()
        if self.alerts:
            data["alerts"] = [alert.to_dict() for alert in self.alerts]
        return data


class HistoryStore:
    """Fixed-capacity FIFO window of processed readings.

    Args:
        capacity: Maximum number of readings retained (default: 1000)

    Example:
        >>> store = HistoryStore(capacity=3)
        >>> for reading in readings:
        ...     store.append(ProcessedReading(reading))
        >>> len(store)
        3
    """

    def __init__(self, capacity: int = 1000):
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self._items: list[ProcessedReading] = []
        self._capacity = capacity

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._items)

    def append(self, item: ProcessedReading) -> list[ProcessedReading]:
        """Add a reading at the tail, evicting from the head if full.

        Args:
            item: Processed reading to store

        Returns:
            Readings evicted to make room (empty while below capacity)

        Raises:
            ValueError: If the timestamp is not after the newest stored one
        """
        if self._items and item.timestamp <= self._items[-1].timestamp:
            raise ValueError(
                f"Reading {item.id} at {item.timestamp.isoformat()} is not after "
                f"newest stored reading at {self._items[-1].timestamp.isoformat()}"
            )

        self._items.append(item)
        evicted = []
        while len(self._items) > self._capacity:
            evicted.append(self._items.pop(0))
        return evicted

    def readings(self) -> list[ProcessedReading]:
        """Return all stored readings, oldest first."""
        return self._items.copy()

    def get_recent(self, n: int) -> list[ProcessedReading]:
        """Return up to the last n readings, oldest first."""
        if n <= 0:
            return []
        return self._items[-n:]

    def latest(self) -> ProcessedReading | None:
        return self._items[-1] if self._items else None

    def series(self, parameter: str, count: int | None = None) -> list[tuple[datetime, float]]:
        """Return (timestamp, value) pairs for one parameter, oldest first.

        Args:
            parameter: Catalog key
            count: Consider only the last `count` readings (None = all)
        """
        items = self._items if count is None else self.get_recent(count)
        return [
            (item.timestamp, float(item.parameters[parameter]))
            for item in items
            if item.parameters.get(parameter) is not None
        ]

    def values(self, parameter: str, count: int | None = None) -> list[float]:
        """Return the values of one parameter, oldest first."""
        return [value for _, value in self.series(parameter, count)]
