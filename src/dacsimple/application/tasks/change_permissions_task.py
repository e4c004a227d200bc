"""Apply a permission change in the background."""

import logging
from typing import Any

from dacsimple.application.ports import ResourceTree
from dacsimple.application.tasks.base import TaskAction
from dacsimple.application.use_cases.permission.change_permissions import (
    ChangePermissionsUseCase,
)
from dacsimple.domain.entities import TaskReport
from dacsimple.domain.exceptions import DacError, NotFound
from dacsimple.domain.value_objects import parse_privilege_map

logger = logging.getLogger(__name__)


class ChangePermissionsTask(TaskAction):
    """Runs the orchestrator for ``resource`` with ``privileges``."""

    name = "dac.change_permissions"

    PARAM_RECURSIVE = "recursive"
    PARAM_RESOURCE = "resource"
    PARAM_PRIVILEGES = "privileges"
    MANDATORY_PARAMS = (PARAM_RECURSIVE, PARAM_PRIVILEGES, PARAM_RESOURCE)

    def __init__(
        self, change_permissions: ChangePermissionsUseCase, resource_tree: ResourceTree
    ) -> None:
        self._change_permissions = change_permissions
        self._tree = resource_tree

    async def __call__(self, params: dict[str, Any]) -> TaskReport:
        self.validate_params(params)
        try:
            resource = await self._tree.get_resource(str(params[self.PARAM_RESOURCE]))
            if resource is None:
                raise NotFound("Resource", params[self.PARAM_RESOURCE])
            await self._change_permissions.save_permissions(
                bool(params[self.PARAM_RECURSIVE]),
                resource,
                parse_privilege_map(params[self.PARAM_PRIVILEGES]),
            )
        except DacError as exc:
            message = f"Saving permissions failed: {exc}"
            logger.error(message)
            return TaskReport.create_failure(message)

        return TaskReport.create_success("Permission(s) applied")
