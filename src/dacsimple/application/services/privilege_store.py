"""Privilege store - permission snapshots over the privilege table.

Every call runs in its own unit of work; a multi-resource change is therefore
not atomic and callers compensate on failure. Storage errors propagate as
``StorageError`` without retries.
"""

import logging
from collections.abc import Iterable

from dacsimple.application.ports import EventBus
from dacsimple.domain.entities import PermissionRow
from dacsimple.domain.events import (
    AllPermissionsRemovedEvent,
    PermissionAddedEvent,
    PermissionRemovedEvent,
)
from dacsimple.domain.value_objects import Privilege

logger = logging.getLogger(__name__)


class PrivilegeStore:
    """Reads and writes (user, resource, privilege) rows."""

    def __init__(self, unit_of_work_factory: type, event_bus: EventBus) -> None:
        self._uow_factory = unit_of_work_factory
        self._event_bus = event_bus

    async def get_permissions_for_resources(
        self, resource_ids: Iterable[str]
    ) -> dict[str, dict[str, set[Privilege]]]:
        """Snapshot per resource; resources without rows map to an empty dict."""
        ids = list(dict.fromkeys(resource_ids))
        snapshot: dict[str, dict[str, set[Privilege]]] = {rid: {} for rid in ids}
        if not ids:
            return snapshot

        async with self._uow_factory() as uow:
            rows = await uow.privileges.list_by_resources(ids)

        for row in rows:
            snapshot.setdefault(row.resource_id, {}).setdefault(row.user_id, set()).add(
                row.privilege
            )
        return snapshot

    async def get_resource_permissions(self, resource_id: str) -> dict[str, set[Privilege]]:
        snapshot = await self.get_permissions_for_resources([resource_id])
        return snapshot[resource_id]

    async def get_permissions_for_users_and_resources(
        self, user_ids: Iterable[str], resource_ids: Iterable[str]
    ) -> dict[str, set[Privilege]]:
        """Privileges any of ``user_ids`` holds, per resource (pre-seeded empty)."""
        users = list(dict.fromkeys(user_ids))
        ids = list(dict.fromkeys(resource_ids))
        result: dict[str, set[Privilege]] = {rid: set() for rid in ids}
        if not users or not ids:
            return result

        async with self._uow_factory() as uow:
            rows = await uow.privileges.list_by_users_and_resources(users, ids)

        for row in rows:
            result.setdefault(row.resource_id, set()).add(row.privilege)
        return result

    async def get_users_with_permissions(self, resource_ids: Iterable[str]) -> list[PermissionRow]:
        ids = list(dict.fromkeys(resource_ids))
        if not ids:
            return []
        async with self._uow_factory() as uow:
            return await uow.privileges.list_by_resources(ids)

    async def check_permissions(self, user_ids: Iterable[str]) -> set[str]:
        """Principals among ``user_ids`` holding at least one row."""
        users = list(dict.fromkeys(user_ids))
        if not users:
            return set()
        async with self._uow_factory() as uow:
            return set(await uow.privileges.list_users_with_rows(users))

    async def add_permissions(
        self, user_id: str, resource_id: str, privileges: Iterable[Privilege]
    ) -> None:
        """Insert rows; already present triples are left alone."""
        to_add = sorted(set(privileges))
        if not to_add:
            return

        async with self._uow_factory() as uow:
            await uow.privileges.add(
                [PermissionRow(user_id, resource_id, privilege) for privilege in to_add]
            )

        logger.debug("Added %s for %s on %s", to_add, user_id, resource_id)
        await self._event_bus.trigger(PermissionAddedEvent(user_id, resource_id, tuple(to_add)))

    async def remove_permissions(
        self, user_id: str, resource_id: str, privileges: Iterable[Privilege]
    ) -> None:
        """Delete rows; absent triples are not an error."""
        to_remove = sorted(set(privileges))
        if not to_remove:
            return

        async with self._uow_factory() as uow:
            await uow.privileges.delete(user_id, resource_id, to_remove)

        logger.debug("Removed %s for %s on %s", to_remove, user_id, resource_id)
        await self._event_bus.trigger(
            PermissionRemovedEvent(user_id, resource_id, tuple(to_remove))
        )

    async def remove_all_permissions_except(
        self, resource_ids: Iterable[str], keep: Iterable[Privilege]
    ) -> None:
        ids = list(dict.fromkeys(resource_ids))
        kept = tuple(sorted(set(keep)))
        if not ids:
            return

        async with self._uow_factory() as uow:
            await uow.privileges.delete_by_resources(ids, kept)

        for resource_id in ids:
            await self._event_bus.trigger(AllPermissionsRemovedEvent(resource_id, kept))

    async def remove_all_permissions(self, resource_ids: Iterable[str]) -> None:
        await self.remove_all_permissions_except(resource_ids, ())
