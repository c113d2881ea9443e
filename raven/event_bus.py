"""Broadcast event bus: handlers subscribe to (base, id) pairs and receive posted events."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Optional

ANY_BASE: Optional[str] = None
ANY_ID = -1

NAVIGATION_EVENTS = "NAVIGATION_EVENTS"
RAVEN_EVENTS = "RAVEN_EVENTS"

Handler = Callable[[Any, str, int, Optional[bytes]], None]


class NavigationEventId(IntEnum):
    """Event ids within the NAVIGATION_EVENTS base."""

    MOVE_FORWARD_DONE = 0


@dataclass
class _Subscription:
    base: Optional[str]
    event_id: int
    handler: Handler
    ctx: Any

    def matches(self, base: str, event_id: int) -> bool:
        return (self.base is ANY_BASE or self.base == base) and (
            self.event_id == ANY_ID or self.event_id == event_id
        )

    def same_key(self, base: Optional[str], event_id: int, handler: Handler) -> bool:
        return self.base == base and self.event_id == event_id and self.handler == handler


class EventBus:
    """Dispatches posted events to subscribed handlers.

    Handlers are called as ``handler(ctx, base, event_id, data)`` in the posting
    thread and must stay thin: real work belongs in a task's queue.
    """

    def __init__(self) -> None:
        self._subscriptions: list[_Subscription] = []
        self._lock = threading.Lock()

    def post(self, base: str, event_id: int, data: bytes | None = None) -> None:
        """Post an event; ``data`` is copied before handlers see it."""
        if base is ANY_BASE:
            raise ValueError("cannot post an event without a base")
        if event_id == ANY_ID:
            raise ValueError("cannot post an event with the wildcard id")
        payload = bytes(data) if data is not None else None
        with self._lock:
            targets = [s for s in self._subscriptions if s.matches(base, event_id)]
        for sub in targets:
            sub.handler(sub.ctx, base, int(event_id), payload)

    def subscribe(
        self, base: Optional[str], event_id: int, handler: Handler, ctx: Any = None
    ) -> None:
        """Register ``handler``; ANY_BASE and ANY_ID act as wildcards.

        Subscribing the same handler to the same key again replaces its context.
        """
        with self._lock:
            for sub in self._subscriptions:
                if sub.same_key(base, event_id, handler):
                    sub.ctx = ctx
                    return
            self._subscriptions.append(_Subscription(base, event_id, handler, ctx))

    def unsubscribe(self, base: Optional[str], event_id: int, handler: Handler) -> None:
        """Remove a previously registered handler; unknown handlers are ignored."""
        with self._lock:
            self._subscriptions = [
                s for s in self._subscriptions if not s.same_key(base, event_id, handler)
            ]


_default_bus: EventBus | None = None
_default_lock = threading.Lock()


def default_bus() -> EventBus:
    """Return the process-wide default event bus, creating it on first use."""
    global _default_bus
    with _default_lock:
        if _default_bus is None:
            _default_bus = EventBus()
        return _default_bus