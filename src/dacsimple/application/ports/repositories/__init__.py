"""Repository ports."""

from dacsimple.application.ports.repositories.privilege_repository import (
    PrivilegeRepository,
)
from dacsimple.application.ports.repositories.resource_repository import (
    ResourceRepository,
)
from dacsimple.application.ports.repositories.task_repository import TaskRepository

__all__ = [
    "PrivilegeRepository",
    "ResourceRepository",
    "TaskRepository",
]
