"""Domain entities."""

from dacsimple.domain.entities.permission_row import PermissionRow
from dacsimple.domain.entities.resource import Resource
from dacsimple.domain.entities.task import TaskHandle, TaskRecord, TaskReport

__all__ = [
    "PermissionRow",
    "Resource",
    "TaskHandle",
    "TaskRecord",
    "TaskReport",
]
