"""Permissions API resources."""

import logging
from typing import Any

import falcon.asgi

from dacsimple.application.use_cases.permission.get_permissions import GetPermissionsUseCase
from dacsimple.application.use_cases.permission.save_permissions import SavePermissionsUseCase
from dacsimple.domain.exceptions import (
    InconsistentPermissionsError,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from dacsimple.domain.value_objects import PrincipalType, serialize_privilege_map

logger = logging.getLogger(__name__)


def parse_privileges_body(body: Any) -> dict[str, list[str]]:
    """Read the target ACL from a request body.

    Accepts ``{"privileges": {principal: [...]}}`` or
    ``{"users": {principal: {"type": "user"|"role", "privileges": [...]}}}``.
    """
    if not isinstance(body, dict):
        raise ValidationError("Request body must be an object")

    if "privileges" in body:
        privileges = body["privileges"]
        if not isinstance(privileges, dict):
            raise ValidationError("privileges must be an object")
        return privileges

    users = body.get("users")
    if not isinstance(users, dict):
        raise ValidationError("Missing required field: privileges")

    result = {}
    for principal, entry in users.items():
        if not isinstance(entry, dict):
            raise ValidationError(f"Invalid entry for {principal}")
        try:
            PrincipalType(entry.get("type", PrincipalType.USER))
        except ValueError as e:
            raise ValidationError(f"Unknown principal type for {principal}") from e
        result[principal] = entry.get("privileges", [])
    return result


class ResourcePermissionsResource:
    """GET/PUT /v1/resources/{resource_id}/permissions - read and save ACL."""

    def __init__(
        self,
        get_permissions: GetPermissionsUseCase,
        save_permissions: SavePermissionsUseCase,
    ) -> None:
        self._get = get_permissions
        self._save = save_permissions

    async def on_get(
        self,
        req: falcon.asgi.Request,
        resp: falcon.asgi.Response,
        resource_id: str,
    ) -> None:
        """Current ACL of the resource."""
        user = getattr(req.context, "user", None)
        if not user:
            resp.status = falcon.HTTP_401
            resp.media = {"error": "Unauthorized"}
            return

        try:
            permissions = await self._get.execute(user.user_id, resource_id, user.roles)
        except PermissionDenied:
            resp.status = falcon.HTTP_403
            resp.media = {"error": "Permission denied"}
            return
        except NotFound:
            resp.status = falcon.HTTP_404
            resp.media = {"error": "Resource not found"}
            return

        resp.media = {
            "resource": resource_id,
            "privileges": serialize_privilege_map(permissions),
        }
        resp.status = falcon.HTTP_200

    async def on_put(
        self,
        req: falcon.asgi.Request,
        resp: falcon.asgi.Response,
        resource_id: str,
    ) -> None:
        """Save the target ACL; large recursive saves run in background."""
        user = getattr(req.context, "user", None)
        if not user:
            resp.status = falcon.HTTP_401
            resp.media = {"error": "Unauthorized"}
            return

        try:
            body = await req.get_media()
            privileges = parse_privileges_body(body)
            recursive = bool(body.get("recursive", False))
            result = await self._save.execute(
                user.user_id, resource_id, privileges, recursive, user.roles
            )
        except (ValidationError, InconsistentPermissionsError) as e:
            resp.status = falcon.HTTP_400
            resp.media = {"error": str(e)}
            return
        except PermissionDenied:
            resp.status = falcon.HTTP_403
            resp.media = {"error": "Permission denied"}
            return
        except NotFound:
            resp.status = falcon.HTTP_404
            resp.media = {"error": "Resource not found"}
            return

        if result.is_async:
            resp.status = falcon.HTTP_202
            resp.location = f"/v1/tasks/{result.task.id}"
            resp.media = {"resource": resource_id, "task_id": result.task.id}
            return

        resp.media = {"resource": resource_id, "delta": result.delta.to_dict()}
        resp.status = falcon.HTTP_200
