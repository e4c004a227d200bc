"""Base class for background task actions."""

from typing import Any, ClassVar

from dacsimple.domain.entities import TaskReport
from dacsimple.domain.exceptions import MissingParameterError


class TaskAction:
    """Callable registered with the task runner under ``name``.

    Parameters arrive as a flat, JSON-serializable mapping; mandatory keys
    are checked before any side effect.
    """

    name: ClassVar[str]
    MANDATORY_PARAMS: ClassVar[tuple[str, ...]] = ()

    async def __call__(self, params: dict[str, Any]) -> TaskReport:
        raise NotImplementedError

    def validate_params(self, params: dict[str, Any]) -> None:
        for param in self.MANDATORY_PARAMS:
            if params.get(param) is None:
                raise MissingParameterError(param, type(self).__name__)
