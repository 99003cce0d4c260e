"""Reading producer protocol and the Reading data structure.

A producer is anything callable with no arguments that returns the next
Reading. The monitoring scheduler calls it once per tick and never looks
behind it, so tests can substitute a deterministic fixture sequence for the
randomized simulator.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Protocol


@dataclass(frozen=True)
class Reading:
    """One multi-parameter sample from a manufacturing line.

    Attributes:
        id: Unique reading identifier
        timestamp: When the sample was taken (timezone-aware UTC)
        line: Manufacturing line identifier (e.g. "Line A")
        parameters: Parameter key to measured value
    """

    id: str
    timestamp: datetime
    line: str
    parameters: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Freeze a private copy so callers can't mutate a stored reading
        object.__setattr__(
            self, "parameters", MappingProxyType(dict(self.parameters))
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "line": self.line,
            "parameters": dict(self.parameters),
        }


class ReadingProducer(Protocol):
    """Protocol for reading producers.

    Example:
        >>> def fixed_producer() -> Reading:
        ...     return Reading(
        ...         id="RDG-1",
        ...         timestamp=datetime.now(timezone.utc),
        ...         line="Line A",
        ...         parameters={"temperature": 25.0},
        ...     )
        >>> monitor = ProcessMonitor(catalog, producer=fixed_producer, ...)
    """

    def __call__(self) -> Reading:
        """Return the next reading.

        Raises:
            Exception: Any failure; the scheduler logs it and skips the tick
        """
        ...
