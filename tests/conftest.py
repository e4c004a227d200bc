"""Pytest fixtures for dacsimple tests."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime

import pytest

from dacsimple.application.services.event_emitter import EventEmitter
from dacsimple.application.services.privilege_store import PrivilegeStore
from dacsimple.application.use_cases.permission.change_permissions import (
    ChangePermissionsUseCase,
)
from dacsimple.domain.entities import PermissionRow, Resource, TaskRecord, TaskReport
from dacsimple.domain.events import DomainEvent
from dacsimple.domain.services import PermissionsStrategy
from dacsimple.domain.value_objects import Privilege, ReconciliationPolicy, TaskStatus
from dacsimple.infrastructure.ontology.resource_tree import RelationalResourceTree

ROOT = "http://example.org/ontology#Root"
SUBCLASS = "http://example.org/ontology#Sub"
ROOT_ITEM = "http://example.org/ontology#item1"
SUB_ITEM = "http://example.org/ontology#item2"


# --- Fake repositories ---


class FakePrivilegeRepository:
    """In-memory data_privileges table."""

    def __init__(self) -> None:
        self.rows: set[tuple[str, str, Privilege]] = set()
        self.write_count = 0

    def seed(self, user_id: str, resource_id: str, privileges: Iterable[Privilege]) -> None:
        for privilege in privileges:
            self.rows.add((user_id, resource_id, Privilege(privilege)))

    def snapshot(self, resource_id: str) -> dict[str, set[Privilege]]:
        result: dict[str, set[Privilege]] = {}
        for user_id, rid, privilege in self.rows:
            if rid == resource_id:
                result.setdefault(user_id, set()).add(privilege)
        return result

    async def list_by_resources(self, resource_ids: list[str]) -> list[PermissionRow]:
        return [
            PermissionRow(u, r, p)
            for u, r, p in sorted(self.rows)
            if r in resource_ids
        ]

    async def list_by_users_and_resources(
        self, user_ids: list[str], resource_ids: list[str]
    ) -> list[PermissionRow]:
        return [
            PermissionRow(u, r, p)
            for u, r, p in sorted(self.rows)
            if u in user_ids and r in resource_ids
        ]

    async def list_users_with_rows(self, user_ids: list[str]) -> list[str]:
        return sorted({u for u, _, _ in self.rows if u in user_ids})

    async def add(self, rows: list[PermissionRow]) -> None:
        self.write_count += 1
        for row in rows:
            self.rows.add((row.user_id, row.resource_id, row.privilege))

    async def delete(self, user_id: str, resource_id: str, privileges: list[Privilege]) -> None:
        self.write_count += 1
        for privilege in privileges:
            self.rows.discard((user_id, resource_id, privilege))

    async def delete_by_resources(
        self, resource_ids: list[str], keep: Iterable[Privilege] = ()
    ) -> None:
        self.write_count += 1
        kept = set(keep)
        self.rows = {
            (u, r, p) for u, r, p in self.rows if r not in resource_ids or p in kept
        }


class FakeResourceRepository:
    """In-memory resource tree."""

    def __init__(self) -> None:
        self._by_uri: dict[str, Resource] = {}

    def add(self, uri: str, is_class: bool = False, parent_uri: str | None = None) -> Resource:
        resource = Resource(uri=uri, is_class=is_class, parent_uri=parent_uri)
        self._by_uri[uri] = resource
        return resource

    async def get_by_uri(self, uri: str) -> Resource | None:
        return self._by_uri.get(uri)

    async def list_children(self, uri: str, is_class: bool) -> list[Resource]:
        return sorted(
            (
                r
                for r in self._by_uri.values()
                if r.parent_uri == uri and r.is_class == is_class
            ),
            key=lambda r: r.uri,
        )

    async def list_descendants(self, uri: str, is_class: bool) -> list[Resource]:
        result: list[Resource] = []
        level = [uri]
        while level:
            children = sorted(
                (r for r in self._by_uri.values() if r.parent_uri in level),
                key=lambda r: r.uri,
            )
            result += [r for r in children if r.is_class == is_class]
            level = [r.uri for r in children if r.is_class]
        return result

    async def create(self, resource: Resource) -> Resource:
        self._by_uri[resource.uri] = resource
        return resource


class FakeTaskRepository:
    """In-memory task_log."""

    def __init__(self) -> None:
        self.by_id: dict[str, TaskRecord] = {}

    def of_action(self, action: str) -> list[TaskRecord]:
        return [t for t in self.by_id.values() if t.action == action]

    async def get_by_id(self, task_id: str) -> TaskRecord | None:
        return self.by_id.get(task_id)

    async def create(self, task: TaskRecord) -> TaskRecord:
        self.by_id[task.id] = task
        return task

    async def claim_next(self, now: datetime) -> TaskRecord | None:
        due = sorted(
            (
                t
                for t in self.by_id.values()
                if t.status == TaskStatus.PENDING and t.run_after <= now
            ),
            key=lambda t: (t.run_after, t.created_at),
        )
        if not due:
            return None
        claimed = replace(due[0], status=TaskStatus.RUNNING)
        self.by_id[claimed.id] = claimed
        return claimed

    async def update_status(
        self, task_id: str, status: TaskStatus, report: TaskReport | None = None
    ) -> None:
        task = self.by_id[task_id]
        self.by_id[task_id] = replace(task, status=status, report=report or task.report)


# --- Fake UnitOfWork ---


class FakeUnitOfWork:
    """In-memory Unit of Work with fake repositories."""

    def __init__(self) -> None:
        self.privileges = FakePrivilegeRepository()
        self.resources = FakeResourceRepository()
        self.tasks = FakeTaskRepository()

    async def commit(self) -> None:
        pass

    async def rollback(self) -> None:
        pass


class RecordingEventBus:
    """Event bus keeping every triggered event."""

    def __init__(self) -> None:
        self.events: list[DomainEvent] = []

    @property
    def names(self) -> list[str]:
        return [e.name for e in self.events]

    def of_type(self, event_type: type) -> list:
        return [e for e in self.events if isinstance(e, event_type)]

    async def trigger(self, event: DomainEvent) -> None:
        self.events.append(event)


def build_tree(uow: FakeUnitOfWork) -> dict[str, Resource]:
    """Root class with one subclass and one instance under each class."""
    return {
        ROOT: uow.resources.add(ROOT, is_class=True),
        SUBCLASS: uow.resources.add(SUBCLASS, is_class=True, parent_uri=ROOT),
        ROOT_ITEM: uow.resources.add(ROOT_ITEM, parent_uri=ROOT),
        SUB_ITEM: uow.resources.add(SUB_ITEM, parent_uri=SUBCLASS),
    }


def make_change_permissions(
    uow_factory,
    event_bus: RecordingEventBus,
    policy: ReconciliationPolicy = ReconciliationPolicy.MERGE,
    cascade: bool = False,
) -> ChangePermissionsUseCase:
    return ChangePermissionsUseCase(
        PrivilegeStore(uow_factory, event_bus),
        RelationalResourceTree(uow_factory),
        PermissionsStrategy(policy, cascade),
        EventEmitter(event_bus),
    )


# --- Fixtures ---


@pytest.fixture
def fake_uow() -> FakeUnitOfWork:
    """Fresh in-memory UnitOfWork for each test."""
    return FakeUnitOfWork()


@pytest.fixture
def uow_factory(fake_uow):
    """Factory yielding the same FakeUnitOfWork for every call in a test."""

    @asynccontextmanager
    async def _factory() -> AsyncIterator[FakeUnitOfWork]:
        yield fake_uow

    return _factory


@pytest.fixture
def event_bus() -> RecordingEventBus:
    return RecordingEventBus()


@pytest.fixture
def tree(fake_uow) -> dict[str, Resource]:
    return build_tree(fake_uow)


@pytest.fixture
def privilege_store(uow_factory, event_bus) -> PrivilegeStore:
    return PrivilegeStore(uow_factory, event_bus)


@pytest.fixture
def resource_tree(uow_factory) -> RelationalResourceTree:
    return RelationalResourceTree(uow_factory)


@pytest.fixture
def change_permissions(uow_factory, event_bus) -> ChangePermissionsUseCase:
    return make_change_permissions(uow_factory, event_bus)


@pytest.fixture
def mock_permission_checker():
    """AsyncMock for PermissionChecker - returns True by default."""
    from unittest.mock import AsyncMock

    mock = AsyncMock()
    mock.check.return_value = True
    return mock
