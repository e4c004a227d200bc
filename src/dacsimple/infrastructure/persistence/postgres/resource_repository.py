"""PostgreSQL resource tree repository implementation."""

from psycopg import AsyncConnection

from dacsimple.domain.entities import Resource

_COLUMNS = "uri, is_class, label, parent_uri"


def _resource(r: tuple) -> Resource:
    return Resource(uri=r[0], is_class=r[1], label=r[2], parent_uri=r[3])


class PostgresResourceRepository:
    """Resource repository over the adjacency-list resource table."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def get_by_uri(self, uri: str) -> Resource | None:
        """Get resource by uri."""
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM resource WHERE uri = %s",
            (uri,),
        )
        r = await cur.fetchone()
        if not r:
            return None
        return _resource(r)

    async def list_children(self, uri: str, is_class: bool) -> list[Resource]:
        """Direct subclasses (is_class) or direct instances of a class."""
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM resource WHERE parent_uri = %s AND is_class = %s "
            "ORDER BY uri",
            (uri, is_class),
        )
        return [_resource(r) for r in await cur.fetchall()]

    async def list_descendants(self, uri: str, is_class: bool) -> list[Resource]:
        """All subclasses or all instances below a class, breadth first."""
        cur = await self._conn.execute(
            f"""
            WITH RECURSIVE tree AS (
                SELECT {_COLUMNS}, 1 AS level
                FROM resource WHERE parent_uri = %s
                UNION ALL
                SELECT r.uri, r.is_class, r.label, r.parent_uri, t.level + 1
                FROM resource r
                JOIN tree t ON r.parent_uri = t.uri
                WHERE t.is_class
            )
            SELECT {_COLUMNS} FROM tree WHERE is_class = %s
            ORDER BY level, uri
            """,
            (uri, is_class),
        )
        return [_resource(r) for r in await cur.fetchall()]

    async def create(self, resource: Resource) -> Resource:
        """Create resource."""
        await self._conn.execute(
            f"INSERT INTO resource ({_COLUMNS}) VALUES (%s, %s, %s, %s)",
            (resource.uri, resource.is_class, resource.label, resource.parent_uri),
        )
        return resource
