from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable, Mapping

Event = Mapping[str, object]
Handler = Callable[[Event], None]

GAME_INITIALIZED = "gameInitialized"
GAME_STATE_UPDATED = "gameStateUpdated"
TURN_STARTED = "turnStarted"
GAME_ENDED = "gameEnded"

logger = logging.getLogger(__name__)


class EventBus:
    """Synchronous publish/subscribe relay.

    Handlers run in subscription order, inside the `publish` call, so a
    handler observes every event in the order it was published.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, name: str, handler: Handler) -> None:
        self._handlers[name].append(handler)

    def unsubscribe(self, name: str, handler: Handler) -> None:
        handlers = self._handlers.get(name)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def has_subscribers(self, name: str) -> bool:
        return bool(self._handlers.get(name))

    def publish(self, name: str, payload: Event) -> None:
        logger.debug("publish %s", name)
        # Copy so handlers may (un)subscribe while being notified.
        for handler in list(self._handlers.get(name, ())):
            handler(payload)

