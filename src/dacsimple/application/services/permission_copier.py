"""Permission copier - replicate one resource's ACL onto another."""

from dacsimple.application.services.privilege_store import PrivilegeStore
from dacsimple.domain.entities import Resource
from dacsimple.domain.events import ResourceCopiedEvent


class PermissionCopier:
    """Replaces the destination's ACL with the source's."""

    def __init__(self, privilege_store: PrivilegeStore) -> None:
        self._store = privilege_store

    async def copy(self, from_resource: Resource, to_resource: Resource) -> None:
        permissions = await self._store.get_resource_permissions(from_resource.uri)
        await self._store.remove_all_permissions([to_resource.uri])

        for user_id, privileges in permissions.items():
            await self._store.add_permissions(user_id, to_resource.uri, privileges)

    async def handle_resource_copied(self, event: ResourceCopiedEvent) -> None:
        await self.copy(event.source, event.destination)
