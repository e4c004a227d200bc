"""Application ports - interfaces for external adapters."""

from dacsimple.application.ports.event_bus import EventBus
from dacsimple.application.ports.permission_checker import PermissionChecker
from dacsimple.application.ports.resource_tree import ResourceTree
from dacsimple.application.ports.task_queue import TaskLog, TaskQueue
from dacsimple.application.ports.unit_of_work import UnitOfWork, UnitOfWorkFactory

__all__ = [
    "EventBus",
    "PermissionChecker",
    "ResourceTree",
    "TaskLog",
    "TaskQueue",
    "UnitOfWork",
    "UnitOfWorkFactory",
]
