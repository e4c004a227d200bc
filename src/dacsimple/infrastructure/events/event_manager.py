"""In-process event manager."""

import logging
from collections.abc import Awaitable, Callable

from dacsimple.domain.events import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], Awaitable[None]]


class EventManager:
    """Dispatches events to handlers attached by event name.

    Handlers run in attach order and their exceptions propagate to the
    caller of trigger.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}

    def attach(self, event_name: str, handler: EventHandler) -> None:
        self._handlers.setdefault(event_name, []).append(handler)

    def detach(self, event_name: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_name, [])
        if handler in handlers:
            handlers.remove(handler)

    async def trigger(self, event: DomainEvent) -> None:
        handlers = list(self._handlers.get(event.name, []))
        logger.debug("Event %s -> %d handler(s)", event.name, len(handlers))
        for handler in handlers:
            await handler(event)
