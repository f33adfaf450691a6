# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-memory change-notification bus.

Services publish a ChangeEvent after each committed write. Presentation
layers consume them in one of two ways:

- ``subscribe(table, event_types)`` returns a ChangeSubscription, an async
  iterator over a bounded queue scoped to one table (or fnmatch pattern)
  and a set of operations.
- ``add_listener(table, handler)`` registers an async callback.

Publishing never raises into the caller. Listener errors are logged and
isolated from each other, and a slow subscriber loses its oldest queued
events rather than blocking the publisher.

Example:
    from src.infrastructure.events import ChangeOp, Tables, get_change_bus

    bus = get_change_bus()

    async with bus.subscribe(Tables.REGISTRATION_REQUESTS, {ChangeOp.INSERT}) as sub:
        async for event in sub:
            await refetch_pending_list()
"""

import asyncio
import fnmatch
import logging
from collections.abc import Iterable
from typing import Any, Awaitable, Callable

from src.infrastructure.events.types import ChangeEvent, ChangeOp

logger = logging.getLogger(__name__)

# Type alias for change listeners
ChangeHandler = Callable[[ChangeEvent], Awaitable[None]]

DEFAULT_QUEUE_SIZE = 100


class ChangeSubscription:
    """Async iterator over change events for one table.

    Iteration ends once the subscription is closed and its queue drained.
    Use as an async context manager to detach automatically.
    """

    def __init__(
        self,
        bus: "ChangeNotificationBus",
        table: str,
        event_types: frozenset[ChangeOp],
        maxsize: int = DEFAULT_QUEUE_SIZE,
    ) -> None:
        self._bus = bus
        self.table = table
        self.event_types = event_types
        self._queue: asyncio.Queue[ChangeEvent | None] = asyncio.Queue(maxsize=maxsize)
        self._closed = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def matches(self, event: ChangeEvent) -> bool:
        """Check whether an event falls in this subscription's scope."""
        return event.op in self.event_types and fnmatch.fnmatch(event.table, self.table)

    def offer(self, event: ChangeEvent) -> None:
        """Enqueue an event without blocking, dropping the oldest if full."""
        if self._closed:
            return
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
            logger.warning(
                "Change subscription on %s is full, dropped oldest event (%d dropped)",
                self.table,
                self.dropped,
            )
        self._queue.put_nowait(event)

    async def get(self) -> ChangeEvent | None:
        """Wait for the next event.

        Returns:
            The next event, or None once the subscription is closed.
        """
        if self._closed and self._queue.empty():
            return None
        return await self._queue.get()

    def close(self) -> None:
        """Detach from the bus and wake any waiting consumer."""
        if self._closed:
            return
        self._closed = True
        self._bus._detach(self)
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(None)

    def __aiter__(self) -> "ChangeSubscription":
        return self

    async def __anext__(self) -> ChangeEvent:
        event = await self.get()
        if event is None:
            raise StopAsyncIteration
        return event

    async def __aenter__(self) -> "ChangeSubscription":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()


class ChangeNotificationBus:
    """Typed, table-scoped pub/sub for committed writes.

    Designed for single-process async use. Table keys may be exact table
    names or fnmatch patterns such as ``"*"``.
    """

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        self._queue_size = queue_size
        self._subscriptions: list[ChangeSubscription] = []
        self._listeners: dict[str, list[ChangeHandler]] = {}
        self._event_count = 0
        logger.debug("ChangeNotificationBus initialized")

    def subscribe(
        self,
        table: str,
        event_types: Iterable[ChangeOp | str] | None = None,
        maxsize: int | None = None,
    ) -> ChangeSubscription:
        """Open a subscription on a table.

        Args:
            table: Table name or fnmatch pattern.
            event_types: Operations to receive. Defaults to all.
            maxsize: Queue bound; defaults to the bus setting.

        Returns:
            An open ChangeSubscription.
        """
        ops = frozenset(ChangeOp(op) for op in event_types) if event_types else frozenset(ChangeOp)
        subscription = ChangeSubscription(
            self,
            table,
            ops,
            maxsize=maxsize or self._queue_size,
        )
        self._subscriptions.append(subscription)
        logger.debug("Subscribed to %s changes (%s)", table, ",".join(sorted(op.value for op in ops)))
        return subscription

    def _detach(self, subscription: ChangeSubscription) -> None:
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            pass

    def add_listener(self, table: str, handler: ChangeHandler) -> None:
        """Register an async callback for a table or pattern."""
        self._listeners.setdefault(table, []).append(handler)
        logger.debug("Added change listener for: %s", table)

    def remove_listener(self, table: str, handler: ChangeHandler) -> bool:
        """Remove a callback.

        Returns:
            True if handler was found and removed, False otherwise.
        """
        handlers = self._listeners.get(table)
        if not handlers or handler not in handlers:
            return False
        handlers.remove(handler)
        if not handlers:
            del self._listeners[table]
        return True

    async def publish(self, event: ChangeEvent) -> None:
        """Deliver an event to matching subscriptions and listeners.

        Must only be called after the write it describes has committed.
        Never raises.
        """
        self._event_count += 1

        for subscription in list(self._subscriptions):
            if subscription.matches(event):
                subscription.offer(event)

        handlers: list[ChangeHandler] = []
        for pattern, pattern_handlers in self._listeners.items():
            if fnmatch.fnmatch(event.table, pattern):
                handlers.extend(pattern_handlers)

        if not handlers:
            return

        async def safe_call(handler: ChangeHandler) -> None:
            try:
                await handler(event)
            except Exception as e:
                logger.error(
                    "Change listener error for %s %s: %s",
                    event.table,
                    event.op.value,
                    str(e),
                    exc_info=True,
                )

        await asyncio.gather(
            *[safe_call(handler) for handler in handlers],
            return_exceptions=True,
        )

    async def publish_all(self, events: Iterable[ChangeEvent]) -> None:
        """Publish several events in order."""
        for event in events:
            await self.publish(event)

    def clear(self) -> None:
        """Close every subscription and remove every listener."""
        for subscription in list(self._subscriptions):
            subscription.close()
        self._listeners.clear()
        logger.debug("ChangeNotificationBus cleared")

    def get_stats(self) -> dict[str, Any]:
        """Get bus statistics."""
        return {
            "subscriptions": len(self._subscriptions),
            "listeners": sum(len(h) for h in self._listeners.values()),
            "events_published": self._event_count,
            "tables": sorted({s.table for s in self._subscriptions} | set(self._listeners)),
        }


# Singleton instance
_change_bus: ChangeNotificationBus | None = None


def get_change_bus() -> ChangeNotificationBus:
    """Get the singleton change bus instance."""
    global _change_bus
    if _change_bus is None:
        _change_bus = ChangeNotificationBus()
    return _change_bus


def reset_change_bus() -> None:
    """Reset the change bus singleton.

    Useful for testing to ensure clean state between tests.
    """
    global _change_bus
    if _change_bus is not None:
        _change_bus.clear()
    _change_bus = None
