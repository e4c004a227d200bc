"""Task queue and task log over the task_log table."""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

from dacsimple.domain.entities import TaskHandle, TaskRecord
from dacsimple.domain.exceptions import NotFound
from dacsimple.domain.value_objects import TaskStatus

logger = logging.getLogger(__name__)


class DacTaskQueue:
    """Enqueues tasks as pending task_log rows picked up by TaskRunner."""

    def __init__(self, unit_of_work_factory: type) -> None:
        self._uow_factory = unit_of_work_factory

    async def create_task(
        self,
        action: str,
        params: dict[str, Any],
        description: str,
        delay_seconds: float = 0,
    ) -> TaskHandle:
        now = datetime.now(UTC)
        task = TaskRecord(
            id=str(uuid4()),
            action=action,
            params=params,
            description=description,
            status=TaskStatus.PENDING,
            run_after=now + timedelta(seconds=delay_seconds),
            created_at=now,
            updated_at=now,
        )
        async with self._uow_factory() as uow:
            await uow.tasks.create(task)

        logger.debug("Enqueued %s task %s (delay %ss)", action, task.id, delay_seconds)
        return TaskHandle(task.id)


class DacTaskLog:
    """Reads task status from task_log."""

    def __init__(self, unit_of_work_factory: type) -> None:
        self._uow_factory = unit_of_work_factory

    async def get_task(self, task_id: str) -> TaskRecord | None:
        async with self._uow_factory() as uow:
            return await uow.tasks.get_by_id(task_id)

    async def get_status(self, task_id: str) -> TaskStatus:
        task = await self.get_task(task_id)
        if task is None:
            raise NotFound("Task", task_id)
        return task.status
