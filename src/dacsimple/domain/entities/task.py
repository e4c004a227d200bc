"""Background task entities."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from dacsimple.domain.value_objects import TaskStatus


@dataclass(frozen=True)
class TaskHandle:
    """Reference to an enqueued task."""

    id: str


@dataclass
class TaskReport:
    """Outcome of a task run, stored in the task log."""

    success: bool
    message: str
    children: list["TaskReport"] = field(default_factory=list)

    @classmethod
    def create_success(cls, message: str, children: list["TaskReport"] | None = None) -> "TaskReport":
        return cls(success=True, message=message, children=children or [])

    @classmethod
    def create_failure(cls, message: str) -> "TaskReport":
        return cls(success=False, message=message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "children": [c.to_dict() for c in self.children],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TaskReport":
        return cls(
            success=bool(data.get("success")),
            message=str(data.get("message", "")),
            children=[cls.from_dict(c) for c in data.get("children", [])],
        )


@dataclass
class TaskRecord:
    """Task log entry - action name, parameters and status."""

    id: str
    action: str
    params: dict[str, Any]
    description: str
    status: TaskStatus
    run_after: datetime
    created_at: datetime
    updated_at: datetime
    report: TaskReport | None = None
