"""Save permissions use case - synchronous change or background propagation."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from dacsimple.application.dto.change_permissions_command import ChangePermissionsCommand
from dacsimple.application.ports import PermissionChecker, ResourceTree
from dacsimple.application.use_cases.permission.change_permissions import (
    ChangePermissionsUseCase,
)
from dacsimple.application.use_cases.permission.propagate_permissions import (
    PropagatePermissionsUseCase,
)
from dacsimple.domain.entities import TaskHandle
from dacsimple.domain.exceptions import NotFound, PermissionDenied
from dacsimple.domain.value_objects import PermissionsDelta, Privilege

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SavePermissionsResult:
    """Either the applied root delta or the handle of the propagation task."""

    delta: PermissionsDelta | None = None
    task: TaskHandle | None = None

    @property
    def is_async(self) -> bool:
        return self.task is not None


class SavePermissionsUseCase:
    """Apply a target ACL, switching to the task pipeline for large subtrees."""

    def __init__(
        self,
        change_permissions: ChangePermissionsUseCase,
        propagate_permissions: PropagatePermissionsUseCase,
        resource_tree: ResourceTree,
        permission_checker: PermissionChecker,
        async_threshold: int = 100,
    ) -> None:
        self._change_permissions = change_permissions
        self._propagate_permissions = propagate_permissions
        self._tree = resource_tree
        self._permission_checker = permission_checker
        self._async_threshold = async_threshold

    async def execute(
        self,
        actor_id: str | None,
        resource_uri: str,
        privileges: Mapping[str, Iterable[str]],
        recursive: bool = False,
        roles: Iterable[str] = (),
    ) -> SavePermissionsResult:
        """Save ``privileges`` on ``resource_uri``.

        ``actor_id`` None means a trusted internal caller; otherwise the actor
        needs GRANT on the resource, held directly or through ``roles``, and
        may not lock themself out. Background propagation is validated over
        the whole scope before any task is enqueued.
        """
        resource = await self._tree.get_resource(resource_uri)
        if resource is None:
            raise NotFound("Resource", resource_uri)

        if actor_id is not None:
            has_grant = await self._permission_checker.check(
                actor_id, resource_uri, Privilege.GRANT, roles
            )
            if not has_grant:
                raise PermissionDenied("User does not have grant access to resource")

        command = ChangePermissionsCommand.from_request(resource, privileges)
        if recursive:
            command = command.with_recursion()

        if recursive and resource.is_class:
            scope = await self._change_permissions.resolve_scope(command)
            if len(scope) > self._async_threshold:
                await self._change_permissions.validate(command, actor_id=actor_id)
                logger.info(
                    "Propagating permissions of %s over %d resources in background",
                    resource_uri,
                    len(scope),
                )
                task = await self._propagate_permissions.execute(
                    resource, command.privileges_per_user, actor_id=actor_id
                )
                return SavePermissionsResult(task=task)

        delta = await self._change_permissions.execute(command, actor_id=actor_id)
        return SavePermissionsResult(delta=delta)
