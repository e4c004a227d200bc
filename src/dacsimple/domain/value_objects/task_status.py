"""Background task statuses."""

from enum import StrEnum


class TaskStatus(StrEnum):
    """Lifecycle status of a queued task."""

    PENDING = "pending"
    RUNNING = "running"
    CHILD_RUNNING = "child_running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ARCHIVED = "archived"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (
            TaskStatus.COMPLETED,
            TaskStatus.CANCELLED,
            TaskStatus.ARCHIVED,
            TaskStatus.FAILED,
        )
