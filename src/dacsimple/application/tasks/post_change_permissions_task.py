"""Emit change events for an already applied delta."""

import logging
from typing import Any

from dacsimple.application.services.event_emitter import EventEmitter
from dacsimple.application.tasks.base import TaskAction
from dacsimple.domain.entities import TaskReport
from dacsimple.domain.exceptions import DacError
from dacsimple.domain.value_objects import PermissionsDelta

logger = logging.getLogger(__name__)


class PostChangePermissionsTask(TaskAction):
    name = "dac.post_change_permissions"

    PARAM_RESOURCE_ID = "resourceId"
    PARAM_PERMISSIONS_DELTA = "permissionsDelta"
    PARAM_IS_RECURSIVE = "isRecursive"
    MANDATORY_PARAMS = (PARAM_RESOURCE_ID, PARAM_PERMISSIONS_DELTA, PARAM_IS_RECURSIVE)

    def __init__(self, event_emitter: EventEmitter) -> None:
        self._emitter = event_emitter

    async def __call__(self, params: dict[str, Any]) -> TaskReport:
        self.validate_params(params)
        delta = PermissionsDelta.from_dict(params[self.PARAM_PERMISSIONS_DELTA])

        try:
            await self._emitter.emit_change(
                str(params[self.PARAM_RESOURCE_ID]),
                delta,
                bool(params[self.PARAM_IS_RECURSIVE]),
            )
        except DacError as exc:
            message = f"Error: {exc}"
            logger.error(message)
            return TaskReport.create_failure(message)

        return TaskReport.create_success(
            "Success",
            [
                TaskReport.create_success("Root permission changes announced"),
                TaskReport.create_success("Affected users successfully updated"),
            ],
        )
