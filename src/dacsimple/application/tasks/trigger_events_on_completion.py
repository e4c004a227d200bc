"""Sentinel task - joins propagation subtasks, then finalizes the root.

The sentinel never waits inside a worker: while a subtask is unfinished it
enqueues a copy of itself with a growing delay and exits.
"""

import logging
from typing import Any

from dacsimple.application.dto.change_permissions_command import ChangePermissionsCommand
from dacsimple.application.ports import ResourceTree, TaskLog, TaskQueue
from dacsimple.application.tasks.base import TaskAction
from dacsimple.application.use_cases.permission.change_permissions import (
    ChangePermissionsUseCase,
)
from dacsimple.domain.entities import TaskReport
from dacsimple.domain.exceptions import DacError, NotFound
from dacsimple.domain.value_objects import PermissionsDelta, TaskStatus, parse_privilege_map

logger = logging.getLogger(__name__)

# CHILD_RUNNING counts: such a child has handed off to its own sentinel.
FINISHED_STATUSES = frozenset(
    {
        TaskStatus.COMPLETED,
        TaskStatus.CANCELLED,
        TaskStatus.ARCHIVED,
        TaskStatus.FAILED,
        TaskStatus.CHILD_RUNNING,
    }
)


class TriggerEventsOnCompletionSubtask(TaskAction):
    """Polls subtask statuses; applies the root and emits events when all finished."""

    name = "dac.trigger_events_on_completion"

    PARAM_ROOT_RESOURCE = "root_resource"
    PARAM_SUBTASK_IDS = "subtask_ids"
    PARAM_PRIVILEGES = "privileges"
    PARAM_DELTA = "delta"
    PARAM_ATTEMPT = "attempt"
    PARAM_ACTOR = "actor_id"
    MANDATORY_PARAMS = (PARAM_ROOT_RESOURCE, PARAM_SUBTASK_IDS, PARAM_PRIVILEGES)

    DESCRIPTION = "Waiting for subtasks to finish to trigger change events"

    def __init__(
        self,
        change_permissions: ChangePermissionsUseCase,
        resource_tree: ResourceTree,
        task_queue: TaskQueue,
        task_log: TaskLog,
        base_delay_seconds: float = 10.0,
        max_delay_seconds: float = 300.0,
        max_attempts: int | None = None,
    ) -> None:
        self._change_permissions = change_permissions
        self._tree = resource_tree
        self._queue = task_queue
        self._task_log = task_log
        self._base_delay = base_delay_seconds
        self._max_delay = max_delay_seconds
        self._max_attempts = max_attempts

    async def __call__(self, params: dict[str, Any]) -> TaskReport:
        self.validate_params(params)
        root_uri = str(params[self.PARAM_ROOT_RESOURCE])
        attempt = int(params.get(self.PARAM_ATTEMPT) or 0)

        for subtask_id in params[self.PARAM_SUBTASK_IDS]:
            if not await self._subtask_has_finished(str(subtask_id)):
                return await self._reschedule(params, attempt)

        logger.info("Subtasks of %s finished, applying root and triggering events", root_uri)
        try:
            root = await self._tree.get_resource(root_uri)
            if root is None:
                raise NotFound("Resource", root_uri)
            command = ChangePermissionsCommand(
                root=root,
                privileges_per_user=parse_privilege_map(params[self.PARAM_PRIVILEGES]),
            ).with_nested_resources(compare_each=True)
            root_delta = await self._change_permissions.apply(
                command, params.get(self.PARAM_ACTOR)
            )
        except DacError as exc:
            message = f"Applying permissions to root {root_uri} failed: {exc}"
            logger.error(message)
            return TaskReport.create_failure(message)

        normalized = params.get(self.PARAM_DELTA)
        delta = PermissionsDelta.from_dict(normalized) if normalized else root_delta
        await self._change_permissions.trigger_events_for_root_resource(root_uri, delta, True)
        return TaskReport.create_success("Events triggered")

    def next_delay(self, attempt: int) -> float:
        """Backoff before poll number ``attempt + 1``."""
        return min(self._base_delay * 2**attempt, self._max_delay)

    async def _reschedule(self, params: dict[str, Any], attempt: int) -> TaskReport:
        if self._max_attempts is not None and attempt + 1 >= self._max_attempts:
            message = (
                f"Subtasks of {params[self.PARAM_ROOT_RESOURCE]} still running after "
                f"{attempt + 1} polls, giving up"
            )
            logger.error(message)
            return TaskReport.create_failure(message)

        await self._queue.create_task(
            self.name,
            {**params, self.PARAM_ATTEMPT: attempt + 1},
            self.DESCRIPTION,
            delay_seconds=self.next_delay(attempt),
        )
        return TaskReport.create_success("Change permissions subtasks in progress")

    async def _subtask_has_finished(self, subtask_id: str) -> bool:
        status = await self._task_log.get_status(subtask_id)
        logger.debug("Subtask %s status: %s", subtask_id, status)
        return status in FINISHED_STATUSES
