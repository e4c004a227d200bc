"""PostgreSQL privilege repository implementation."""

from collections.abc import Iterable

from psycopg import AsyncConnection

from dacsimple.domain.entities import PermissionRow
from dacsimple.domain.value_objects import SUPPORTED_RIGHTS, Privilege

# Rows with legacy privileges (OWNER) stay in the table but are never read.
_SUPPORTED = sorted(p.value for p in SUPPORTED_RIGHTS)


def _row(r: tuple) -> PermissionRow:
    return PermissionRow(user_id=r[0], resource_id=r[1], privilege=Privilege(r[2]))


class PostgresPrivilegeRepository:
    """Privilege repository over the data_privileges table."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def list_by_resources(self, resource_ids: list[str]) -> list[PermissionRow]:
        """List rows for resources."""
        cur = await self._conn.execute(
            "SELECT user_id, resource_id, privilege FROM data_privileges "
            "WHERE resource_id = ANY(%s) AND privilege = ANY(%s) "
            "ORDER BY resource_id, user_id, privilege",
            (list(resource_ids), _SUPPORTED),
        )
        return [_row(r) for r in await cur.fetchall()]

    async def list_by_users_and_resources(
        self, user_ids: list[str], resource_ids: list[str]
    ) -> list[PermissionRow]:
        """List rows of any of the users on the resources."""
        cur = await self._conn.execute(
            "SELECT user_id, resource_id, privilege FROM data_privileges "
            "WHERE user_id = ANY(%s) AND resource_id = ANY(%s) AND privilege = ANY(%s)",
            (list(user_ids), list(resource_ids), _SUPPORTED),
        )
        return [_row(r) for r in await cur.fetchall()]

    async def list_users_with_rows(self, user_ids: list[str]) -> list[str]:
        """Users among user_ids present in the table."""
        cur = await self._conn.execute(
            "SELECT DISTINCT user_id FROM data_privileges WHERE user_id = ANY(%s)",
            (list(user_ids),),
        )
        return [r[0] for r in await cur.fetchall()]

    async def add(self, rows: list[PermissionRow]) -> None:
        """Insert rows, skipping triples already present."""
        async with self._conn.cursor() as cur:
            await cur.executemany(
                "INSERT INTO data_privileges (user_id, resource_id, privilege) "
                "VALUES (%s, %s, %s) ON CONFLICT DO NOTHING",
                [(r.user_id, r.resource_id, r.privilege.value) for r in rows],
            )

    async def delete(self, user_id: str, resource_id: str, privileges: list[Privilege]) -> None:
        """Delete the user's privileges on the resource."""
        await self._conn.execute(
            "DELETE FROM data_privileges "
            "WHERE user_id = %s AND resource_id = %s AND privilege = ANY(%s)",
            (user_id, resource_id, [p.value for p in privileges]),
        )

    async def delete_by_resources(
        self, resource_ids: list[str], keep: Iterable[Privilege] = ()
    ) -> None:
        """Delete every row of the resources except privileges in keep."""
        await self._conn.execute(
            "DELETE FROM data_privileges "
            "WHERE resource_id = ANY(%s) AND NOT (privilege = ANY(%s))",
            (list(resource_ids), [p.value for p in keep]),
        )
