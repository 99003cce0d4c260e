"""Push delivery of monitoring events to subscribers.

This module provides:
- Subscription: one subscriber's bounded outbound queue
- SubscriberHub: registry of subscriptions with non-blocking fan-out
- SubscriberBroadcaster: bridge from the event bus to the hub

Every message is a dict of the form ``{"type": str, "payload": Any}``.
Publishing never awaits a subscriber: messages are offered to each queue
and, when a queue is full, its oldest message is dropped to make room.
"""

import asyncio
from typing import Any

import structlog

from fabwatch.core.events import (
    AlertAcknowledgedEvent,
    DriftStateResetEvent,
    EventBus,
    ReadingProcessedEvent,
)

logger = structlog.get_logger(__name__)

Message = dict[str, Any]


def make_message(message_type: str, payload: Any) -> Message:
    return {"type": message_type, "payload": payload}


class Subscription:
    """A subscriber's outbound message queue.

    Args:
        subscriber_id: Identifier used in logs
        maxsize: Queue capacity; the oldest message is dropped when full

    Attributes:
        dropped: Number of messages discarded because the queue was full
    """

    def __init__(self, subscriber_id: str, maxsize: int = 256):
        if maxsize < 1:
            raise ValueError(f"maxsize must be at least 1, got {maxsize}")
        self.subscriber_id = subscriber_id
        self.dropped = 0
        self._queue: asyncio.Queue[Message] = asyncio.Queue(maxsize=maxsize)

    def offer(self, message: Message) -> None:
        """Enqueue a message without blocking, dropping the oldest if full."""
        if self._queue.full():
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                pass
            else:
                self.dropped += 1
        self._queue.put_nowait(message)

    async def get(self) -> Message:
        """Wait for the next message."""
        return await self._queue.get()

    def get_nowait(self) -> Message:
        return self._queue.get_nowait()

    def pending(self) -> int:
        return self._queue.qsize()


class SubscriberHub:
    """Fan-out of messages to every active subscription.

    Example:
        >>> hub = SubscriberHub(queue_size=256)
        >>> sub = hub.subscribe("client-1", snapshot={"parameters": {}})
        >>> hub.publish(make_message("reading", {...}))
        >>> (await sub.get())["type"]
        'init'
    """

    def __init__(self, queue_size: int = 256):
        self._queue_size = queue_size
        self._subscriptions: dict[str, Subscription] = {}

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, subscriber_id: str, snapshot: dict[str, Any]) -> Subscription:
        """Register a subscriber whose first message is an init snapshot.

        The snapshot is queued before the subscription is registered, so
        no published message can overtake it.
        """
        subscription = Subscription(subscriber_id, maxsize=self._queue_size)
        subscription.offer(make_message("init", snapshot))
        self._subscriptions[subscriber_id] = subscription
        logger.info("subscriber_added", subscriber_id=subscriber_id, total=len(self._subscriptions))
        return subscription

    def unsubscribe(self, subscriber_id: str) -> None:
        subscription = self._subscriptions.pop(subscriber_id, None)
        if subscription is not None:
            logger.info(
                "subscriber_removed",
                subscriber_id=subscriber_id,
                dropped=subscription.dropped,
                total=len(self._subscriptions),
            )

    def publish(self, message: Message) -> None:
        """Offer a message to every subscription.

        A failure delivering to one subscriber is logged and does not
        affect the others.
        """
        for subscription in list(self._subscriptions.values()):
            try:
                subscription.offer(message)
            except Exception as e:
                logger.error(
                    "subscriber_delivery_failed",
                    subscriber_id=subscription.subscriber_id,
                    message_type=message.get("type"),
                    error=str(e),
                )


class SubscriberBroadcaster:
    """Translates event bus events into hub messages.

    Message types:
        new_alert: one per alert raised, sent before its reading
        reading: the processed reading with SPC (and drift on analysis ticks)
        alert_updated: an acknowledged alert
        drift_reset: ``{"parameter": str | None}``

    Args:
        hub: Subscriber hub to publish to
        event_bus: Event bus to listen on
    """

    def __init__(
        self,
        hub: SubscriberHub,
        event_bus: EventBus,
    ):
        self._hub = hub
        self._event_bus = event_bus
        self._event_bus.subscribe(ReadingProcessedEvent, self._on_reading_processed)
        self._event_bus.subscribe(AlertAcknowledgedEvent, self._on_alert_acknowledged)
        self._event_bus.subscribe(DriftStateResetEvent, self._on_drift_reset)

    def close(self) -> None:
        """Detach from the event bus."""
        self._event_bus.unsubscribe(ReadingProcessedEvent, self._on_reading_processed)
        self._event_bus.unsubscribe(AlertAcknowledgedEvent, self._on_alert_acknowledged)
        self._event_bus.unsubscribe(DriftStateResetEvent, self._on_drift_reset)

    async def _on_reading_processed(self, event: ReadingProcessedEvent) -> None:
        for alert in event.alerts:
            self._hub.publish(make_message("new_alert", alert.to_dict()))
        self._hub.publish(make_message("reading", event.reading.to_dict()))

    async def _on_alert_acknowledged(self, event: AlertAcknowledgedEvent) -> None:
        self._hub.publish(make_message("alert_updated", event.alert.to_dict()))

    async def _on_drift_reset(self, event: DriftStateResetEvent) -> None:
        self._hub.publish(make_message("drift_reset", {"parameter": event.parameter}))


__all__ = ["Message", "Subscription", "SubscriberHub", "SubscriberBroadcaster", "make_message"]
