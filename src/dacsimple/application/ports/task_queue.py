"""Task queue and task log ports."""

from typing import Any, Protocol

from dacsimple.domain.entities import TaskHandle, TaskRecord
from dacsimple.domain.value_objects import TaskStatus


class TaskQueue(Protocol):
    """Port for enqueueing background tasks."""

    async def create_task(
        self,
        action: str,
        params: dict[str, Any],
        description: str,
        delay_seconds: float = 0,
    ) -> TaskHandle: ...


class TaskLog(Protocol):
    """Port for querying task status."""

    async def get_status(self, task_id: str) -> TaskStatus: ...

    async def get_task(self, task_id: str) -> TaskRecord | None: ...
