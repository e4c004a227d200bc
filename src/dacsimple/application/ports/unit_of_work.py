"""Unit of Work port - transactional boundary."""

from collections.abc import AsyncIterator
from typing import Protocol

from dacsimple.application.ports.repositories.privilege_repository import (
    PrivilegeRepository,
)
from dacsimple.application.ports.repositories.resource_repository import (
    ResourceRepository,
)
from dacsimple.application.ports.repositories.task_repository import TaskRepository


class UnitOfWork(Protocol):
    """Unit of Work - manages transaction and repository access."""

    @property
    def privileges(self) -> PrivilegeRepository: ...

    @property
    def resources(self) -> ResourceRepository: ...

    @property
    def tasks(self) -> TaskRepository: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class UnitOfWorkFactory(Protocol):
    """Factory for creating UnitOfWork instances."""

    async def __call__(self) -> AsyncIterator[UnitOfWork]: ...
