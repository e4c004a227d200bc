"""Resource moved handler - realign ACLs after a move in the tree."""

import logging

from dacsimple.application.ports import ResourceTree
from dacsimple.application.services.role_privilege_retriever import RolePrivilegeRetriever
from dacsimple.application.use_cases.permission.change_permissions import (
    ChangePermissionsUseCase,
)
from dacsimple.domain.events import ResourceMovedEvent
from dacsimple.domain.value_objects import Privilege

logger = logging.getLogger(__name__)


class ResourceMovedHandler:
    """Re-applies merged ACLs of the moved resource and its new parent.

    ``change_permissions`` must be built with a SYNC strategy: the merged
    map is the complete desired state. Instances of a moved class get their
    own previous ACL back afterwards.
    """

    def __init__(
        self,
        change_permissions: ChangePermissionsUseCase,
        role_privilege_retriever: RolePrivilegeRetriever,
        resource_tree: ResourceTree,
    ) -> None:
        self._change_permissions = change_permissions
        self._retriever = role_privilege_retriever
        self._tree = resource_tree

    async def handle(self, event: ResourceMovedEvent) -> None:
        moved = event.moved_resource
        merged = await self._retriever.retrieve_by_resource_ids(
            [event.destination_class.uri, moved.uri]
        )

        item_privileges: dict[str, dict[str, set[Privilege]]] = {}
        instances = []
        if moved.is_class:
            instances = await self._tree.get_instances(moved, transitive=True)
            for item in instances:
                item_privileges[item.uri] = await self._retriever.retrieve_by_resource_ids(
                    [item.uri]
                )

        logger.info("Resource %s moved to %s", moved.uri, event.destination_class.uri)
        await self._change_permissions.save_resource_permissions_recursive(moved, merged)

        for item in instances:
            await self._change_permissions.save_resource_permissions_recursive(
                item, item_privileges[item.uri]
            )
