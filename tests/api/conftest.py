"""Fixtures for API tests."""

from contextlib import asynccontextmanager

import pytest
from falcon.testing import TestClient

from dacsimple.config import Settings
from dacsimple.domain.value_objects import Privilege
from dacsimple.interfaces.api.app import create_app
from dacsimple.interfaces.api.resources.health import HealthResource
from dacsimple.interfaces.api.resources.permissions import ResourcePermissionsResource
from dacsimple.interfaces.api.resources.tasks import TaskResource
from dacsimple.main import build_services

from tests.conftest import FakeUnitOfWork

ADMIN = "admin"
READER = "reader"


@pytest.fixture
def api_uow() -> FakeUnitOfWork:
    """Root class with one subclass, an instance under each; admin holds everything."""
    uow = FakeUnitOfWork()
    uow.resources.add("Root", is_class=True)
    uow.resources.add("Sub", is_class=True, parent_uri="Root")
    uow.resources.add("item1", parent_uri="Root")
    uow.resources.add("item2", parent_uri="Sub")
    for uri in ("Root", "Sub", "item1", "item2"):
        uow.privileges.seed(ADMIN, uri, Privilege)
        uow.privileges.seed(READER, uri, [Privilege.READ])
    uow.privileges.seed("editors", "Sub", [Privilege.GRANT])
    return uow


@pytest.fixture
def uow_factory(api_uow):
    """UoW factory - yields same UoW for all requests in a test."""

    @asynccontextmanager
    async def _factory():
        yield api_uow

    return _factory


@pytest.fixture
def services(uow_factory):
    return build_services(Settings(async_propagation_threshold=3), uow_factory)


@pytest.fixture
def app(services):
    """Falcon ASGI app with API resources for testing."""
    return create_app(
        permissions_resource=ResourcePermissionsResource(
            services.get_permissions, services.save_permissions
        ),
        task_resource=TaskResource(services.task_log),
        health_resource=HealthResource(),
    )


@pytest.fixture
def client(app):
    """Falcon ASGI test client."""
    return TestClient(app)


def as_user(user_id: str, roles: str = "") -> dict[str, str]:
    headers = {"X-User-Id": user_id}
    if roles:
        headers["X-User-Roles"] = roles
    return headers
