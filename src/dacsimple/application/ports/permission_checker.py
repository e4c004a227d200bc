"""Permission checker port - DAC authorization."""

from collections.abc import Iterable
from typing import Protocol

from dacsimple.domain.value_objects import Privilege


class PermissionChecker(Protocol):
    """Port for checking a principal's privilege on a resource."""

    async def check(
        self,
        user_id: str,
        resource_uri: str,
        privilege: Privilege,
        roles: Iterable[str] = (),
    ) -> bool: ...
