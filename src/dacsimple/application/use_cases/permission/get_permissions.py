"""Get permissions use case."""

from collections.abc import Iterable

from dacsimple.application.ports import PermissionChecker, ResourceTree
from dacsimple.application.services.privilege_store import PrivilegeStore
from dacsimple.domain.exceptions import NotFound, PermissionDenied
from dacsimple.domain.value_objects import Privilege


class GetPermissionsUseCase:
    """Read a resource's ACL. Requires GRANT, as only grantors manage it."""

    def __init__(
        self,
        privilege_store: PrivilegeStore,
        resource_tree: ResourceTree,
        permission_checker: PermissionChecker,
    ) -> None:
        self._store = privilege_store
        self._tree = resource_tree
        self._permission_checker = permission_checker

    async def execute(
        self, actor_id: str, resource_uri: str, roles: Iterable[str] = ()
    ) -> dict[str, set[Privilege]]:
        resource = await self._tree.get_resource(resource_uri)
        if resource is None:
            raise NotFound("Resource", resource_uri)

        has_grant = await self._permission_checker.check(
            actor_id, resource_uri, Privilege.GRANT, roles
        )
        if not has_grant:
            raise PermissionDenied("User does not have grant access to resource")

        return await self._store.get_resource_permissions(resource_uri)
