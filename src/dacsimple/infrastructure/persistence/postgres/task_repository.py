"""PostgreSQL task log repository implementation."""

from datetime import datetime

from psycopg import AsyncConnection
from psycopg.types.json import Jsonb

from dacsimple.domain.entities import TaskRecord, TaskReport
from dacsimple.domain.value_objects import TaskStatus

_COLUMNS = "id, action, params, description, status, run_after, created_at, updated_at, report"


def _task(r: tuple) -> TaskRecord:
    return TaskRecord(
        id=r[0],
        action=r[1],
        params=r[2] or {},
        description=r[3],
        status=TaskStatus(r[4]),
        run_after=r[5],
        created_at=r[6],
        updated_at=r[7],
        report=TaskReport.from_dict(r[8]) if r[8] else None,
    )


class PostgresTaskRepository:
    """Task repository over the task_log table."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def get_by_id(self, task_id: str) -> TaskRecord | None:
        """Get task by id."""
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM task_log WHERE id = %s",
            (task_id,),
        )
        r = await cur.fetchone()
        if not r:
            return None
        return _task(r)

    async def create(self, task: TaskRecord) -> TaskRecord:
        """Create task."""
        await self._conn.execute(
            "INSERT INTO task_log (id, action, params, description, status, run_after, "
            "created_at, updated_at, report) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)",
            (
                task.id,
                task.action,
                Jsonb(task.params),
                task.description,
                task.status.value,
                task.run_after,
                task.created_at,
                task.updated_at,
                Jsonb(task.report.to_dict()) if task.report else None,
            ),
        )
        return task

    async def claim_next(self, now: datetime) -> TaskRecord | None:
        """Mark the oldest due pending task running and return it.

        Rows locked by another worker are skipped.
        """
        cur = await self._conn.execute(
            f"""
            UPDATE task_log SET status = %s, updated_at = %s
            WHERE id = (
                SELECT id FROM task_log
                WHERE status = %s AND run_after <= %s
                ORDER BY run_after, created_at
                LIMIT 1
                FOR UPDATE SKIP LOCKED
            )
            RETURNING {_COLUMNS}
            """,
            (TaskStatus.RUNNING.value, now, TaskStatus.PENDING.value, now),
        )
        r = await cur.fetchone()
        if not r:
            return None
        return _task(r)

    async def update_status(
        self, task_id: str, status: TaskStatus, report: TaskReport | None = None
    ) -> None:
        """Update status and, when given, the report."""
        await self._conn.execute(
            "UPDATE task_log SET status = %s, report = COALESCE(%s, report), updated_at = now() "
            "WHERE id = %s",
            (status.value, Jsonb(report.to_dict()) if report else None, task_id),
        )
