"""Event bus port."""

from typing import Protocol

from dacsimple.domain.events import DomainEvent


class EventBus(Protocol):
    """Port for publishing domain events to subscribers."""

    async def trigger(self, event: DomainEvent) -> None: ...
