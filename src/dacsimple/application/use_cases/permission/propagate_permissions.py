"""Propagate permissions use case - fan a recursive change out as tasks."""

import logging
from collections.abc import Iterable, Mapping

from dacsimple.application.ports import ResourceTree, TaskQueue
from dacsimple.application.services.privilege_store import PrivilegeStore
from dacsimple.application.tasks.change_permissions_subtask import ChangePermissionsSubtask
from dacsimple.application.tasks.trigger_events_on_completion import (
    TriggerEventsOnCompletionSubtask,
)
from dacsimple.domain.entities import Resource, TaskHandle
from dacsimple.domain.services import PermissionsStrategy
from dacsimple.domain.value_objects import Privilege, serialize_privilege_map

logger = logging.getLogger(__name__)


class PropagatePermissionsUseCase:
    """Enqueue one subtask per subclass plus a sentinel joining them.

    The root itself is left to the sentinel, so root events fire only after
    the whole subtree settled.
    """

    def __init__(
        self,
        resource_tree: ResourceTree,
        privilege_store: PrivilegeStore,
        strategy: PermissionsStrategy,
        task_queue: TaskQueue,
    ) -> None:
        self._tree = resource_tree
        self._store = privilege_store
        self._strategy = strategy
        self._queue = task_queue

    async def execute(
        self,
        root: Resource,
        privileges: Mapping[str, Iterable[Privilege]],
        actor_id: str | None = None,
    ) -> TaskHandle:
        """Returns the sentinel's handle.

        ``actor_id`` travels with every task so each apply keeps the
        self-revocation guard.
        """
        current = await self._store.get_resource_permissions(root.uri)
        delta = self._strategy.compute_delta(current, privileges)
        serialized = serialize_privilege_map(privileges)

        subtask_ids = []
        for subclass in await self._tree.get_subclasses(root, transitive=True):
            handle = await self._queue.create_task(
                ChangePermissionsSubtask.name,
                {
                    ChangePermissionsSubtask.PARAM_ROOT: root.uri,
                    ChangePermissionsSubtask.PARAM_RESOURCE: subclass.uri,
                    ChangePermissionsSubtask.PARAM_PRIVILEGES: serialized,
                    ChangePermissionsSubtask.PARAM_ACTOR: actor_id,
                },
                f"Processing permissions for class {subclass.uri}",
            )
            subtask_ids.append(handle.id)

        logger.info(
            "Enqueued %d permission subtasks below %s", len(subtask_ids), root.uri
        )
        return await self._queue.create_task(
            TriggerEventsOnCompletionSubtask.name,
            {
                TriggerEventsOnCompletionSubtask.PARAM_ROOT_RESOURCE: root.uri,
                TriggerEventsOnCompletionSubtask.PARAM_SUBTASK_IDS: subtask_ids,
                TriggerEventsOnCompletionSubtask.PARAM_PRIVILEGES: serialized,
                TriggerEventsOnCompletionSubtask.PARAM_DELTA: delta.to_dict(),
                TriggerEventsOnCompletionSubtask.PARAM_ATTEMPT: 0,
                TriggerEventsOnCompletionSubtask.PARAM_ACTOR: actor_id,
            },
            TriggerEventsOnCompletionSubtask.DESCRIPTION,
        )
