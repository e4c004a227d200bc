"""Event emitter - fans a committed delta out to subscribers."""

import logging

from dacsimple.application.ports import EventBus
from dacsimple.domain.events import (
    DacAffectedUsersEvent,
    DacRootChangedEvent,
    DataAccessControlChangedEvent,
)
from dacsimple.domain.value_objects import PermissionsDelta

logger = logging.getLogger(__name__)


class EventEmitter:
    """Emits change events once storage is settled.

    Order is part of the contract: per-resource subscribers (root changed,
    access control changed) run before per-user subscribers (affected users).
    """

    def __init__(self, event_bus: EventBus) -> None:
        self._event_bus = event_bus

    async def emit_change(
        self, resource_id: str, delta: PermissionsDelta, is_recursive: bool
    ) -> None:
        if not delta.is_empty:
            await self._event_bus.trigger(DacRootChangedEvent(resource_id, delta))

        await self._event_bus.trigger(
            DataAccessControlChangedEvent(resource_id, delta, is_recursive)
        )
        await self._event_bus.trigger(
            DacAffectedUsersEvent(
                added_users=tuple(sorted(delta.add)),
                removed_users=tuple(sorted(delta.remove)),
            )
        )
        logger.info(
            "Access control changed on %s (recursive=%s), affected users: %s",
            resource_id,
            is_recursive,
            ", ".join(delta.affected_users) or "none",
        )
