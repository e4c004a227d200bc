"""PostgreSQL Unit of Work implementation."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import psycopg
from psycopg_pool import AsyncConnectionPool

from dacsimple.domain.exceptions import StorageError
from dacsimple.infrastructure.persistence.postgres.privilege_repository import (
    PostgresPrivilegeRepository,
)
from dacsimple.infrastructure.persistence.postgres.resource_repository import (
    PostgresResourceRepository,
)
from dacsimple.infrastructure.persistence.postgres.task_repository import (
    PostgresTaskRepository,
)


class PostgresUnitOfWork:
    """PostgreSQL Unit of Work - one connection, one transaction."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool
        self._conn: object | None = None
        self._conn_cm: object | None = None

    async def __aenter__(self) -> "PostgresUnitOfWork":
        self._conn_cm = self._pool.connection()
        self._conn = await self._conn_cm.__aenter__()
        self._privileges = PostgresPrivilegeRepository(self._conn)
        self._resources = PostgresResourceRepository(self._conn)
        self._tasks = PostgresTaskRepository(self._conn)
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        if exc_type and self._conn:
            await self._conn.rollback()
        if self._conn_cm:
            await self._conn_cm.__aexit__(exc_type, exc_val, exc_tb)

    @property
    def privileges(self) -> PostgresPrivilegeRepository:
        return self._privileges

    @property
    def resources(self) -> PostgresResourceRepository:
        return self._resources

    @property
    def tasks(self) -> PostgresTaskRepository:
        return self._tasks

    async def commit(self) -> None:
        if self._conn:
            await self._conn.commit()

    async def rollback(self) -> None:
        if self._conn:
            await self._conn.rollback()


def create_uow_factory(pool: AsyncConnectionPool) -> object:
    """Create UnitOfWork factory (async context manager).

    Driver errors leave the factory as StorageError.
    """

    @asynccontextmanager
    async def factory() -> AsyncIterator[PostgresUnitOfWork]:
        try:
            uow = PostgresUnitOfWork(pool)
            async with uow:
                try:
                    yield uow
                    await uow.commit()
                except BaseException:
                    await uow.rollback()
                    raise
        except psycopg.Error as exc:
            raise StorageError(str(exc)) from exc

    return factory
