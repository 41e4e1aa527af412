"""
In-process publish / subscribe bus for domain events.

Constructed once per application in ``create_app`` and injected into the
services, so tests can hand them a fresh bus (or a recording fake).

Publishing is fire-and-forget: handlers run synchronously in subscription
order, and a handler that raises is logged and skipped.  Services publish
only after their transaction has committed, so nothing a subscriber does
can undo a state change.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)

Handler = Callable[[dict[str, Any]], None]


class EventBus:
    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, topic: str, handler: Handler) -> None:
        self._handlers[topic].append(handler)

    def unsubscribe(self, topic: str, handler: Handler) -> None:
        try:
            self._handlers[topic].remove(handler)
        except ValueError:
            logger.debug("Handler %r was not subscribed to %s", handler, topic)

    def publish(self, topic: str, payload: dict[str, Any]) -> int:
        """Deliver *payload* to every subscriber.  Returns handlers that succeeded."""
        delivered = 0
        for handler in list(self._handlers.get(topic, ())):
            try:
                handler(payload)
                delivered += 1
            except Exception:
                logger.exception("Event handler %r failed for %s", handler, topic)
        return delivered

    def clear(self) -> None:
        """Drop every subscription (called on shutdown)."""
        self._handlers.clear()
