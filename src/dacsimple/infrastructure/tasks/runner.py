"""Task runner - claims due tasks and dispatches them to their action."""

import asyncio
import logging
from collections.abc import Iterable
from datetime import UTC, datetime

from dacsimple.application.tasks.base import TaskAction
from dacsimple.domain.entities import TaskRecord, TaskReport
from dacsimple.domain.exceptions import DacError
from dacsimple.domain.value_objects import TaskStatus

logger = logging.getLogger(__name__)


class TaskRunner:
    """Runs one task per call to run_next.

    Claiming happens in its own unit of work so the row is visible as
    RUNNING to other workers while the action executes.
    """

    def __init__(self, unit_of_work_factory: type, actions: Iterable[TaskAction]) -> None:
        self._uow_factory = unit_of_work_factory
        self._actions = {action.name: action for action in actions}

    @property
    def actions(self) -> dict[str, TaskAction]:
        return dict(self._actions)

    async def run_next(self) -> TaskRecord | None:
        """Run the oldest due task. Returns it, or None if nothing was due."""
        async with self._uow_factory() as uow:
            task = await uow.tasks.claim_next(datetime.now(UTC))
        if task is None:
            return None

        report = await self._dispatch(task)
        status = TaskStatus.COMPLETED if report.success else TaskStatus.FAILED
        async with self._uow_factory() as uow:
            await uow.tasks.update_status(task.id, status, report)

        logger.info("Task %s (%s) %s: %s", task.id, task.action, status, report.message)
        task.status = status
        task.report = report
        return task

    async def run(self, stop: asyncio.Event, poll_interval: float = 1.0) -> None:
        """Drain due tasks, then sleep poll_interval, until stop is set."""
        while not stop.is_set():
            try:
                task = await self.run_next()
            except Exception:
                logger.exception("Task runner iteration failed")
                task = None
            if task is not None:
                continue
            try:
                await asyncio.wait_for(stop.wait(), timeout=poll_interval)
            except TimeoutError:
                pass

    async def _dispatch(self, task: TaskRecord) -> TaskReport:
        action = self._actions.get(task.action)
        if action is None:
            return TaskReport.create_failure(f"Unknown task action {task.action}")
        try:
            return await action(task.params)
        except DacError as exc:
            logger.error("Task %s (%s) failed: %s", task.id, task.action, exc)
            return TaskReport.create_failure(str(exc))
        except Exception as exc:
            logger.exception("Task %s (%s) crashed", task.id, task.action)
            return TaskReport.create_failure(f"Unexpected error: {exc}")
