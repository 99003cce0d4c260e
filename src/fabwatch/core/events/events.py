"""Event definitions for the FabWatch event bus.

This module defines the domain events the monitor publishes through the
event bus. Events are dataclasses carrying a UTC timestamp.
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fabwatch.core.alerts.manager import Alert
    from fabwatch.core.engine.history import ProcessedReading


class Event(ABC):
    """Base class for all events.

    Attributes:
        timestamp: UTC timestamp when event was created
    """

    timestamp: datetime


@dataclass
class ReadingProcessedEvent(Event):
    """Emitted after a live reading has been scored and stored.

    Alerts raised on the reading's analysis tick travel with it so that
    subscribers see them before the reading itself.

    Attributes:
        reading: The processed reading (SPC attached, drift on analysis ticks)
        alerts: Alerts raised for this reading, possibly empty
        timestamp: When the event was created
    """

    reading: "ProcessedReading"
    alerts: list["Alert"] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class AlertAcknowledgedEvent(Event):
    """Emitted when an operator acknowledges an alert.

    Attributes:
        alert: The acknowledged alert
        timestamp: When the acknowledgment was processed
    """

    alert: "Alert"
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class DriftStateResetEvent(Event):
    """Emitted after CUSUM/EWMA state has been cleared.

    Attributes:
        parameter: Parameter key, or None when all parameters were reset
        timestamp: When the reset occurred
    """

    parameter: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
