"""Administrative helpers over the privilege store."""

from collections.abc import Iterable

from dacsimple.application.ports import ResourceTree
from dacsimple.application.services.privilege_store import PrivilegeStore
from dacsimple.domain.entities import Resource
from dacsimple.domain.value_objects import Privilege


class AdminService:
    """Direct ACL manipulation used by setup scripts.

    Writes bypass the delta strategy and the GRANT check; callers are
    trusted.
    """

    def __init__(self, privilege_store: PrivilegeStore, resource_tree: ResourceTree) -> None:
        self._store = privilege_store
        self._tree = resource_tree

    async def get_users_permissions(self, resource_uri: str) -> dict[str, list[Privilege]]:
        """Principal -> privileges on one resource, in storage order."""
        permissions: dict[str, list[Privilege]] = {}
        for row in await self._store.get_users_with_permissions([resource_uri]):
            permissions.setdefault(row.user_id, []).append(row.privilege)
        return permissions

    async def add_permission_to_class(
        self, resource_class: Resource, user_id: str, rights: Iterable[Privilege]
    ) -> None:
        """Add ``rights`` to the class, its instances and every subclass below."""
        rights = frozenset(rights)
        await self._store.add_permissions(user_id, resource_class.uri, rights)
        for instance in await self._tree.get_instances(resource_class, transitive=False):
            await self._store.add_permissions(user_id, instance.uri, rights)
        for subclass in await self._tree.get_subclasses(resource_class, transitive=False):
            await self.add_permission_to_class(subclass, user_id, rights)
