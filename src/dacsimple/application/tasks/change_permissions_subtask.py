"""Apply a permission change to one class of a propagated subtree."""

import logging
from typing import Any

from dacsimple.application.dto.change_permissions_command import ChangePermissionsCommand
from dacsimple.application.ports import ResourceTree
from dacsimple.application.tasks.base import TaskAction
from dacsimple.application.use_cases.permission.change_permissions import (
    ChangePermissionsUseCase,
)
from dacsimple.domain.entities import TaskReport
from dacsimple.domain.exceptions import DacError, NotFound
from dacsimple.domain.value_objects import parse_privilege_map

logger = logging.getLogger(__name__)


class ChangePermissionsSubtask(TaskAction):
    """Handles a class and its direct instances, never deeper.

    Each instance is diffed against its own ACL, matching a synchronous
    recursive change.

    Events are left to the sentinel so the whole propagation announces
    itself once.
    """

    name = "dac.change_permissions_subtask"

    PARAM_ROOT = "root"
    PARAM_RESOURCE = "resource"
    PARAM_PRIVILEGES = "privileges"
    PARAM_ACTOR = "actor_id"
    MANDATORY_PARAMS = (PARAM_PRIVILEGES, PARAM_RESOURCE)

    def __init__(
        self, change_permissions: ChangePermissionsUseCase, resource_tree: ResourceTree
    ) -> None:
        self._change_permissions = change_permissions
        self._tree = resource_tree

    async def __call__(self, params: dict[str, Any]) -> TaskReport:
        self.validate_params(params)
        resource_uri = str(params[self.PARAM_RESOURCE])
        try:
            resource = await self._tree.get_resource(resource_uri)
            if resource is None:
                raise NotFound("Resource", resource_uri)
            command = ChangePermissionsCommand(
                root=resource,
                privileges_per_user=parse_privilege_map(params[self.PARAM_PRIVILEGES]),
            ).with_nested_resources(compare_each=True)
            await self._change_permissions.apply(command, params.get(self.PARAM_ACTOR))
        except DacError as exc:
            message = f"Changing permissions of {resource_uri} failed: {exc}"
            logger.error(message)
            return TaskReport.create_failure(message)

        logger.debug(
            "Subtree permissions of %s applied (root %s)",
            resource_uri,
            params.get(self.PARAM_ROOT),
        )
        return TaskReport.create_success(f"Permissions applied to {resource_uri}")
