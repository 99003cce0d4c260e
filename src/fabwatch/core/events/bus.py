"""In-process asynchronous event bus.

The monitor publishes domain events here; the subscriber broadcaster (and
anything else interested) registers handlers per event class. Handlers run
as tasks, so publishing never waits on a slow consumer, and a failing
handler is logged without affecting the others.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Type

import structlog

from fabwatch.core.events.events import Event

EventHandler = Callable[[Event], Awaitable[None]]

logger = structlog.get_logger(__name__)


class EventBus:
    """Publish/subscribe dispatcher keyed by event class.

    One bus is created per application and shared through app state; it
    is meant for a single event loop.

    Example:
        >>> bus = EventBus()
        >>> async def on_reading(event: ReadingProcessedEvent):
        ...     print(event.reading.id)
        >>> bus.subscribe(ReadingProcessedEvent, on_reading)
        >>> await bus.publish(ReadingProcessedEvent(reading=processed))
    """

    def __init__(self) -> None:
        self._handlers: dict[Type[Event], list[EventHandler]] = {}
        self._running_tasks: set[asyncio.Task[Exception | None]] = set()

    def subscribe(self, event_type: Type[Event], handler: EventHandler) -> None:
        """Register `handler` for events of exactly `event_type`."""
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(
            "handler_subscribed",
            handler=getattr(handler, "__name__", repr(handler)),
            event_type=event_type.__name__,
        )

    def unsubscribe(self, event_type: Type[Event], handler: EventHandler) -> None:
        """Remove a handler; unknown handlers are ignored."""
        handlers = self._handlers.get(event_type)
        if handlers is None:
            return
        self._handlers[event_type] = [h for h in handlers if h != handler]
        logger.debug(
            "handler_unsubscribed",
            handler=getattr(handler, "__name__", repr(handler)),
            event_type=event_type.__name__,
        )

    async def publish(self, event: Event) -> None:
        """Schedule every handler for `event` and return immediately.

        Handlers are started in subscription order. Use publish_and_wait()
        to block until they finish.
        """
        for handler in self._handlers.get(type(event), []):
            task = asyncio.create_task(self._invoke(handler, event))
            self._running_tasks.add(task)
            task.add_done_callback(self._running_tasks.discard)

    async def publish_and_wait(self, event: Event) -> list[Exception]:
        """Run every handler for `event` and wait for all of them.

        Returns:
            Exceptions raised by failing handlers (empty if all succeeded)
        """
        handlers = self._handlers.get(type(event), [])
        results = await asyncio.gather(*(self._invoke(h, event) for h in handlers))
        errors = [r for r in results if r is not None]

        if errors:
            logger.warning(
                "handlers_failed",
                failed=len(errors),
                total=len(handlers),
                event_type=type(event).__name__,
            )
        return errors

    async def _invoke(self, handler: EventHandler, event: Event) -> Exception | None:
        try:
            await handler(event)
            return None
        except Exception as e:
            logger.error(
                "event_handler_failed",
                handler=getattr(handler, "__name__", repr(handler)),
                event_type=type(event).__name__,
                error=str(e),
                exc_info=True,
            )
            return e

    async def shutdown(self) -> None:
        """Wait for handler tasks that are still running."""
        if self._running_tasks:
            logger.info("waiting_for_handlers", count=len(self._running_tasks))
            await asyncio.gather(*self._running_tasks, return_exceptions=True)

    def get_handler_count(self, event_type: Type[Event]) -> int:
        return len(self._handlers.get(event_type, []))

    def clear_handlers(self, event_type: Type[Event] | None = None) -> None:
        """Drop handlers for one event class, or for all when None."""
        if event_type is None:
            self._handlers.clear()
        else:
            self._handlers.pop(event_type, None)
