"""Privilege repository port."""

from collections.abc import Iterable
from typing import Protocol

from dacsimple.domain.entities import PermissionRow
from dacsimple.domain.value_objects import Privilege


class PrivilegeRepository(Protocol):
    """Port for the (user_id, resource_id, privilege) table."""

    async def list_by_resources(self, resource_ids: list[str]) -> list[PermissionRow]: ...

    async def list_by_users_and_resources(
        self, user_ids: list[str], resource_ids: list[str]
    ) -> list[PermissionRow]: ...

    async def list_users_with_rows(self, user_ids: list[str]) -> list[str]: ...

    async def add(self, rows: list[PermissionRow]) -> None: ...

    async def delete(self, user_id: str, resource_id: str, privileges: list[Privilege]) -> None: ...

    async def delete_by_resources(
        self, resource_ids: list[str], keep: Iterable[Privilege] = ()
    ) -> None: ...
