"""Event bus and domain events for FabWatch.

Usage:
    >>> from fabwatch.core.events import EventBus, ReadingProcessedEvent
    >>>
    >>> bus = EventBus()
    >>> async def handle_reading(event: ReadingProcessedEvent):
    ...     print(f"Reading {event.reading.id} processed")
    >>>
    >>> bus.subscribe(ReadingProcessedEvent, handle_reading)
"""

from fabwatch.core.events.bus import EventBus, EventHandler
from fabwatch.core.events.events import (
    AlertAcknowledgedEvent,
    DriftStateResetEvent,
    Event,
    ReadingProcessedEvent,
)

__all__ = [
    "EventBus",
    "EventHandler",
    "Event",
    "ReadingProcessedEvent",
    "AlertAcknowledgedEvent",
    "DriftStateResetEvent",
]
