"""Unit tests for SavePermissionsUseCase and GetPermissionsUseCase."""

import pytest

from dacsimple.application.services.privilege_store import PrivilegeStore
from dacsimple.application.tasks import ChangePermissionsSubtask
from dacsimple.application.use_cases.permission.get_permissions import GetPermissionsUseCase
from dacsimple.application.use_cases.permission.propagate_permissions import (
    PropagatePermissionsUseCase,
)
from dacsimple.application.use_cases.permission.save_permissions import SavePermissionsUseCase
from dacsimple.config import Settings
from dacsimple.domain.exceptions import (
    InconsistentPermissionsError,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from dacsimple.domain.services import PermissionsStrategy
from dacsimple.domain.value_objects import Privilege, TaskStatus
from dacsimple.infrastructure.permission.permission_provider import DacPermissionProvider
from dacsimple.infrastructure.tasks.task_queue import DacTaskQueue
from dacsimple.main import build_services

from tests.conftest import ROOT, SUB_ITEM, SUBCLASS

R, W, G = Privilege.READ, Privilege.WRITE, Privilege.GRANT


def _save_use_case(uow_factory, event_bus, change_permissions, resource_tree, threshold):
    store = PrivilegeStore(uow_factory, event_bus)
    return SavePermissionsUseCase(
        change_permissions,
        PropagatePermissionsUseCase(
            resource_tree, store, PermissionsStrategy(), DacTaskQueue(uow_factory)
        ),
        resource_tree,
        DacPermissionProvider(store, resource_tree),
        async_threshold=threshold,
    )


@pytest.fixture
def seeded(fake_uow, tree):
    for uri in tree:
        fake_uow.privileges.seed("admin", uri, [R, W, G])
    return tree


@pytest.mark.asyncio
async def test_small_recursive_save_runs_synchronously(
    uow_factory, event_bus, change_permissions, resource_tree, fake_uow, seeded
) -> None:
    save = _save_use_case(uow_factory, event_bus, change_permissions, resource_tree, 100)

    result = await save.execute("admin", ROOT, {"u2": ["READ"]}, recursive=True)

    assert not result.is_async
    assert result.delta.add == {"u2": frozenset({R})}
    assert fake_uow.privileges.snapshot(SUB_ITEM)["u2"] == {R}
    assert fake_uow.tasks.by_id == {}


@pytest.mark.asyncio
async def test_large_recursive_save_goes_to_background(
    uow_factory, event_bus, change_permissions, resource_tree, fake_uow, seeded
) -> None:
    save = _save_use_case(uow_factory, event_bus, change_permissions, resource_tree, 3)

    result = await save.execute("admin", ROOT, {"u2": ["READ"]}, recursive=True)

    assert result.is_async
    assert result.task.id in fake_uow.tasks.by_id
    assert len(fake_uow.tasks.of_action(ChangePermissionsSubtask.name)) == 1
    assert "u2" not in fake_uow.privileges.snapshot(ROOT)


@pytest.mark.asyncio
async def test_non_recursive_save_ignores_threshold(
    uow_factory, event_bus, change_permissions, resource_tree, fake_uow, seeded
) -> None:
    save = _save_use_case(uow_factory, event_bus, change_permissions, resource_tree, 0)

    result = await save.execute("admin", ROOT, {"u2": ["READ"]})

    assert not result.is_async
    assert fake_uow.privileges.snapshot(ROOT)["u2"] == {R}


@pytest.mark.asyncio
async def test_save_requires_grant(
    uow_factory, event_bus, change_permissions, resource_tree, fake_uow, seeded
) -> None:
    fake_uow.privileges.seed("u3", ROOT, [R, W])
    save = _save_use_case(uow_factory, event_bus, change_permissions, resource_tree, 100)

    with pytest.raises(PermissionDenied):
        await save.execute("u3", ROOT, {"u3": ["READ", "WRITE", "GRANT"]})


@pytest.mark.asyncio
async def test_save_unknown_resource(
    uow_factory, event_bus, change_permissions, resource_tree, seeded
) -> None:
    save = _save_use_case(uow_factory, event_bus, change_permissions, resource_tree, 100)

    with pytest.raises(NotFound):
        await save.execute("admin", "http://example.org/ontology#missing", {})


@pytest.mark.asyncio
async def test_save_rejects_unknown_privilege(
    uow_factory, event_bus, change_permissions, resource_tree, seeded
) -> None:
    save = _save_use_case(uow_factory, event_bus, change_permissions, resource_tree, 100)

    with pytest.raises(ValidationError):
        await save.execute("admin", ROOT, {"u2": ["OWNER"]})


@pytest.mark.asyncio
async def test_save_guards_actor_self_revocation(
    uow_factory, event_bus, change_permissions, resource_tree, fake_uow, seeded
) -> None:
    fake_uow.privileges.seed("owner", ROOT, [G])
    save = _save_use_case(uow_factory, event_bus, change_permissions, resource_tree, 100)

    with pytest.raises(InconsistentPermissionsError):
        await save.execute("admin", ROOT, {"admin": ["READ"]})

    assert fake_uow.privileges.snapshot(ROOT)["admin"] == {R, W, G}


@pytest.mark.asyncio
async def test_trusted_caller_skips_grant_check(
    uow_factory, event_bus, change_permissions, resource_tree, fake_uow, seeded
) -> None:
    save = _save_use_case(uow_factory, event_bus, change_permissions, resource_tree, 100)

    await save.execute(None, ROOT, {"u2": ["READ"]})

    assert fake_uow.privileges.snapshot(ROOT)["u2"] == {R}


@pytest.mark.asyncio
async def test_get_permissions(privilege_store, resource_tree, fake_uow, seeded) -> None:
    fake_uow.privileges.seed("u2", ROOT, [R])
    provider = DacPermissionProvider(privilege_store, resource_tree)
    use_case = GetPermissionsUseCase(privilege_store, resource_tree, provider)

    assert await use_case.execute("admin", ROOT) == {"admin": {R, W, G}, "u2": {R}}
    with pytest.raises(PermissionDenied):
        await use_case.execute("u2", ROOT)
    with pytest.raises(NotFound):
        await use_case.execute("admin", "missing")


# --- Synchronous and background saves end in the same state ---


async def _save_and_drain(uow_factory, threshold, actor_id, privileges):
    services = build_services(Settings(async_propagation_threshold=threshold), uow_factory)
    result = await services.save_permissions.execute(actor_id, ROOT, privileges, recursive=True)
    while await services.task_runner.run_next() is not None:
        pass
    return result


@pytest.mark.asyncio
@pytest.mark.parametrize("threshold", [100, 0])
async def test_recursive_save_diffs_every_instance_against_its_own_acl(
    uow_factory, fake_uow, seeded, threshold
) -> None:
    fake_uow.privileges.seed("u1", SUBCLASS, [R, W])

    result = await _save_and_drain(
        uow_factory,
        threshold,
        "admin",
        {"admin": ["READ", "WRITE", "GRANT"], "u1": ["READ", "WRITE"]},
    )

    assert result.is_async is (threshold == 0)
    for uri in seeded:
        assert fake_uow.privileges.snapshot(uri) == {"admin": {R, W, G}, "u1": {R, W}}
    assert all(t.status == TaskStatus.COMPLETED for t in fake_uow.tasks.by_id.values())


@pytest.mark.asyncio
@pytest.mark.parametrize("threshold", [100, 0])
async def test_recursive_save_keeps_actor_rights(
    uow_factory, fake_uow, seeded, threshold
) -> None:
    with pytest.raises(InconsistentPermissionsError, match="cannot revoke own access"):
        await _save_and_drain(
            uow_factory,
            threshold,
            "admin",
            {"admin": ["READ"], "u2": ["READ", "WRITE", "GRANT"]},
        )

    assert fake_uow.tasks.by_id == {}
    for uri in seeded:
        assert fake_uow.privileges.snapshot(uri) == {"admin": {R, W, G}}


@pytest.mark.asyncio
@pytest.mark.parametrize("threshold", [100, 0])
async def test_recursive_save_rejects_lost_grant_before_any_write(
    uow_factory, fake_uow, seeded, threshold
) -> None:
    fake_uow.privileges.seed("owner", ROOT, [G])
    writes = fake_uow.privileges.write_count

    with pytest.raises(InconsistentPermissionsError):
        await _save_and_drain(uow_factory, threshold, None, {"admin": ["READ"]})

    assert fake_uow.privileges.write_count == writes
    assert fake_uow.tasks.by_id == {}
    assert fake_uow.privileges.snapshot(SUBCLASS) == {"admin": {R, W, G}}


@pytest.mark.asyncio
async def test_background_tasks_carry_actor(uow_factory, fake_uow, seeded) -> None:
    services = build_services(Settings(async_propagation_threshold=0), uow_factory)

    result = await services.save_permissions.execute(
        "admin", ROOT, {"u2": ["READ"]}, recursive=True
    )

    assert result.is_async
    assert {t.params["actor_id"] for t in fake_uow.tasks.by_id.values()} == {"admin"}


# --- Roles ---


@pytest.mark.asyncio
async def test_grant_through_role_is_honoured(
    uow_factory, fake_uow, seeded
) -> None:
    fake_uow.privileges.seed("editors", ROOT, [G])
    services = build_services(Settings(), uow_factory)

    await services.save_permissions.execute("carol", ROOT, {"u2": ["READ"]}, roles=["editors"])

    assert fake_uow.privileges.snapshot(ROOT)["u2"] == {R}
    assert "carol" not in await services.get_permissions.execute(
        "carol", ROOT, roles=["editors"]
    )
    with pytest.raises(PermissionDenied):
        await services.get_permissions.execute("carol", ROOT)


@pytest.mark.asyncio
async def test_administrator_role_may_manage_any_resource(
    uow_factory, fake_uow, seeded
) -> None:
    services = build_services(Settings(dac_administrator_role="DacAdministrator"), uow_factory)

    permissions = await services.get_permissions.execute(
        "root", SUB_ITEM, roles=["DacAdministrator"]
    )

    assert permissions == {"admin": {R, W, G}}
