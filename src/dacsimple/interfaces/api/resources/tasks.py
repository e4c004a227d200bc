"""Task status API resource."""

import falcon.asgi

from dacsimple.application.ports import TaskLog


class TaskResource:
    """GET /v1/tasks/{task_id} - status of a background task."""

    def __init__(self, task_log: TaskLog) -> None:
        self._task_log = task_log

    async def on_get(
        self,
        req: falcon.asgi.Request,
        resp: falcon.asgi.Response,
        task_id: str,
    ) -> None:
        user = getattr(req.context, "user", None)
        if not user:
            resp.status = falcon.HTTP_401
            resp.media = {"error": "Unauthorized"}
            return

        task = await self._task_log.get_task(task_id)
        if task is None:
            resp.status = falcon.HTTP_404
            resp.media = {"error": "Task not found"}
            return

        resp.media = {
            "id": task.id,
            "action": task.action,
            "description": task.description,
            "status": str(task.status),
            "report": task.report.to_dict() if task.report else None,
            "created_at": task.created_at.isoformat(),
            "updated_at": task.updated_at.isoformat(),
        }
        resp.status = falcon.HTTP_200
