"""Auth middleware - takes the acting user from gateway headers."""

from dataclasses import dataclass, field

import falcon.asgi

USER_HEADER = "X-User-Id"
ROLES_HEADER = "X-User-Roles"


@dataclass
class RequestUser:
    """User from request context."""

    user_id: str
    roles: list[str] = field(default_factory=list)


class AuthMiddleware:
    """Sets req.context.user from headers set by the authenticating gateway.

    Requests without a user header get ``None``; resources answer 401.
    """

    async def process_request(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response
    ) -> None:
        """Extract user from X-User-Id / X-User-Roles."""
        user_id = (req.get_header(USER_HEADER) or "").strip()
        if not user_id:
            req.context.user = None
            return

        roles = req.get_header(ROLES_HEADER) or ""
        req.context.user = RequestUser(
            user_id=user_id,
            roles=[r.strip() for r in roles.split(",") if r.strip()],
        )
