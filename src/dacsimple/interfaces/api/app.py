"""Falcon ASGI application."""

import logging

import falcon
import falcon.asgi
from falcon.asgi import App

from dacsimple.interfaces.api.middleware.auth import AuthMiddleware
from dacsimple.interfaces.api.resources.health import HealthResource
from dacsimple.interfaces.api.resources.permissions import ResourcePermissionsResource
from dacsimple.interfaces.api.resources.tasks import TaskResource

logger = logging.getLogger(__name__)


async def log_exception(req, resp, ex, params):
    logger.exception("Unhandled error on %s %s", req.method, req.path)
    resp.status = falcon.HTTP_500
    resp.media = {"title": "500 Internal Server Error"}


def create_app(
    permissions_resource: ResourcePermissionsResource,
    task_resource: TaskResource,
    health_resource: HealthResource,
    middleware: list | None = None,
) -> App:
    """Create Falcon ASGI app with routes."""
    app = falcon.asgi.App(middleware=[*(middleware or []), AuthMiddleware()])
    app.add_error_handler(Exception, log_exception)
    app.add_route("/v1/health", health_resource)
    app.add_route("/v1/health/ready", health_resource, suffix="ready")
    app.add_route("/v1/resources/{resource_id}/permissions", permissions_resource)
    app.add_route("/v1/tasks/{task_id}", task_resource)
    return app
