"""Lifespan middleware - opens the pool and runs the task worker."""

import asyncio
import logging
from typing import Any

from psycopg_pool import AsyncConnectionPool

from dacsimple.infrastructure.tasks.runner import TaskRunner

logger = logging.getLogger(__name__)


class LifespanMiddleware:
    """Opens the connection pool on startup and closes it on shutdown.

    With a runner, a background worker drains the task log for the lifetime
    of the server.
    """

    def __init__(
        self,
        pool: AsyncConnectionPool,
        runner: TaskRunner | None = None,
        poll_interval: float = 1.0,
    ) -> None:
        self._pool = pool
        self._runner = runner
        self._poll_interval = poll_interval
        self._stop = asyncio.Event()
        self._worker: asyncio.Task | None = None

    async def process_startup(
        self, scope: dict[str, Any], event: dict[str, Any]
    ) -> None:
        """Open pool when ASGI server starts."""
        await self._pool.open()
        if self._runner is not None:
            self._stop.clear()
            self._worker = asyncio.create_task(
                self._runner.run(self._stop, self._poll_interval)
            )
            logger.info("Task worker started")

    async def process_shutdown(
        self, scope: dict[str, Any], event: dict[str, Any]
    ) -> None:
        """Stop the worker, then close pool."""
        if self._worker is not None:
            self._stop.set()
            await self._worker
            self._worker = None
            logger.info("Task worker stopped")
        await self._pool.close()
