"""Merge ACLs of several resources per principal."""

import logging
from collections.abc import Iterable

from dacsimple.application.services.privilege_store import PrivilegeStore
from dacsimple.domain.value_objects import Privilege

logger = logging.getLogger(__name__)


class RolePrivilegeRetriever:
    def __init__(self, privilege_store: PrivilegeStore) -> None:
        self._store = privilege_store

    async def retrieve_by_resource_ids(
        self, resource_ids: Iterable[str]
    ) -> dict[str, set[Privilege]]:
        """Principal -> union of its privileges over ``resource_ids``."""
        ids = list(resource_ids)
        permissions: dict[str, set[Privilege]] = {}
        for row in await self._store.get_users_with_permissions(ids):
            permissions.setdefault(row.user_id, set()).add(row.privilege)

        logger.debug("Retrieved permissions for %s: %s", ", ".join(ids), permissions)
        return permissions
