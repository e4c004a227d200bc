"""Background task actions of the propagation pipeline."""

from dacsimple.application.tasks.base import TaskAction
from dacsimple.application.tasks.change_permissions_subtask import ChangePermissionsSubtask
from dacsimple.application.tasks.change_permissions_task import ChangePermissionsTask
from dacsimple.application.tasks.post_change_permissions_task import (
    PostChangePermissionsTask,
)
from dacsimple.application.tasks.trigger_events_on_completion import (
    TriggerEventsOnCompletionSubtask,
)

__all__ = [
    "ChangePermissionsSubtask",
    "ChangePermissionsTask",
    "PostChangePermissionsTask",
    "TaskAction",
    "TriggerEventsOnCompletionSubtask",
]
