"""Permission provider - effective rights of a user, checker for use cases."""

import logging
from collections.abc import Iterable

from dacsimple.application.ports import ResourceTree
from dacsimple.application.services.privilege_store import PrivilegeStore
from dacsimple.domain.entities import Resource
from dacsimple.domain.events import ResourceCreatedEvent
from dacsimple.domain.value_objects import SUPPORTED_RIGHTS, Privilege

logger = logging.getLogger(__name__)

RIGHT_LABELS = {
    Privilege.GRANT: "grant",
    Privilege.WRITE: "write",
    Privilege.READ: "read",
}


class DacPermissionProvider:
    """Answers "which rights does this user have" from the privilege table.

    Members of ``administrator_role`` hold every supported right everywhere.
    A user's effective rights are the union of their own rows and their
    roles' rows.
    """

    def __init__(
        self,
        privilege_store: PrivilegeStore,
        resource_tree: ResourceTree,
        administrator_role: str | None = None,
    ) -> None:
        self._store = privilege_store
        self._tree = resource_tree
        self._administrator_role = administrator_role

    async def check(
        self,
        user_id: str,
        resource_uri: str,
        privilege: Privilege,
        roles: Iterable[str] = (),
    ) -> bool:
        """Check if user, or one of their roles, holds privilege on resource."""
        permissions = await self.get_permissions(user_id, roles, [resource_uri])
        return privilege in permissions[resource_uri]

    async def get_permissions(
        self, user_id: str, roles: Iterable[str], resource_ids: Iterable[str]
    ) -> dict[str, set[Privilege]]:
        roles = list(roles)
        ids = list(resource_ids)
        if self._administrator_role and self._administrator_role in roles:
            return {rid: set(SUPPORTED_RIGHTS) for rid in ids}
        return await self._store.get_permissions_for_users_and_resources([*roles, user_id], ids)

    def supported_rights(self) -> list[Privilege]:
        # strongest first
        return sorted(SUPPORTED_RIGHTS, key=list(Privilege).index, reverse=True)

    @staticmethod
    def right_labels() -> dict[Privilege, str]:
        return dict(RIGHT_LABELS)

    async def on_resource_created(self, resource: Resource) -> None:
        """Give a resource without ACL the ACL of its parent class."""
        if await self._store.get_resource_permissions(resource.uri):
            return

        parent = await self._tree.get_parent(resource)
        if parent is None:
            return

        inherited = await self._store.get_resource_permissions(parent.uri)
        logger.debug("Resource %s inherits ACL of %s", resource.uri, parent.uri)
        for user_id, privileges in inherited.items():
            await self._store.add_permissions(user_id, resource.uri, privileges)

    async def handle_resource_created(self, event: ResourceCreatedEvent) -> None:
        await self.on_resource_created(event.resource)
