"""Task log repository port."""

from datetime import datetime
from typing import Protocol

from dacsimple.domain.entities import TaskRecord, TaskReport
from dacsimple.domain.value_objects import TaskStatus


class TaskRepository(Protocol):
    """Port for task log persistence."""

    async def get_by_id(self, task_id: str) -> TaskRecord | None: ...

    async def create(self, task: TaskRecord) -> TaskRecord: ...

    async def claim_next(self, now: datetime) -> TaskRecord | None: ...

    async def update_status(
        self, task_id: str, status: TaskStatus, report: TaskReport | None = None
    ) -> None: ...
