"""Unit tests for the permission provider, copier, retriever, admin service and handlers."""

import pytest

from dacsimple.application.services.admin_service import AdminService
from dacsimple.application.services.permission_copier import PermissionCopier
from dacsimple.application.services.role_privilege_retriever import RolePrivilegeRetriever
from dacsimple.application.use_cases.resource.handle_resource_moved import ResourceMovedHandler
from dacsimple.domain.events import (
    ResourceCopiedEvent,
    ResourceCreatedEvent,
    ResourceMovedEvent,
)
from dacsimple.domain.value_objects import SUPPORTED_RIGHTS, Privilege, ReconciliationPolicy
from dacsimple.infrastructure.events.event_manager import EventManager
from dacsimple.infrastructure.permission.permission_provider import DacPermissionProvider

from tests.conftest import ROOT, ROOT_ITEM, SUB_ITEM, SUBCLASS, make_change_permissions

R, W, G = Privilege.READ, Privilege.WRITE, Privilege.GRANT


# --- DacPermissionProvider ---


@pytest.fixture
def provider(privilege_store, resource_tree) -> DacPermissionProvider:
    return DacPermissionProvider(privilege_store, resource_tree, "DacAdministrator")


@pytest.mark.asyncio
async def test_provider_unions_user_and_role_rows(provider, fake_uow) -> None:
    fake_uow.privileges.seed("u1", "r1", [R])
    fake_uow.privileges.seed("authors", "r1", [W])
    fake_uow.privileges.seed("authors", "r2", [R])

    permissions = await provider.get_permissions("u1", ["authors"], ["r1", "r2", "r3"])

    assert permissions == {"r1": {R, W}, "r2": {R}, "r3": set()}


@pytest.mark.asyncio
async def test_provider_administrator_role_has_everything(provider, fake_uow) -> None:
    permissions = await provider.get_permissions("u1", ["DacAdministrator"], ["r1"])

    assert permissions == {"r1": {R, W, G}}


@pytest.mark.asyncio
async def test_provider_check(provider, fake_uow) -> None:
    fake_uow.privileges.seed("u1", "r1", [R, G])

    assert await provider.check("u1", "r1", G)
    assert not await provider.check("u1", "r1", W)
    assert not await provider.check("u2", "r1", R)


@pytest.mark.asyncio
async def test_provider_check_honours_roles(provider, fake_uow) -> None:
    fake_uow.privileges.seed("editors", "r1", [G])

    assert await provider.check("u1", "r1", G, roles=["editors"])
    assert not await provider.check("u1", "r1", G)
    assert await provider.check("u1", "r9", G, roles=["DacAdministrator"])


def test_provider_rights_and_labels(provider) -> None:
    assert provider.supported_rights() == [G, W, R]
    assert set(provider.supported_rights()) == SUPPORTED_RIGHTS
    assert provider.right_labels() == {G: "grant", W: "write", R: "read"}


@pytest.mark.asyncio
async def test_created_resource_inherits_parent_acl(provider, fake_uow, tree) -> None:
    fake_uow.privileges.seed("admin", ROOT, [R, W, G])
    fake_uow.privileges.seed("u2", ROOT, [R])
    created = fake_uow.resources.add("http://example.org/ontology#new", parent_uri=ROOT)

    await provider.handle_resource_created(ResourceCreatedEvent(created))

    assert fake_uow.privileges.snapshot(created.uri) == {"admin": {R, W, G}, "u2": {R}}


@pytest.mark.asyncio
async def test_created_resource_with_acl_is_left_alone(provider, fake_uow, tree) -> None:
    fake_uow.privileges.seed("admin", ROOT, [R, W, G])
    fake_uow.privileges.seed("u9", ROOT_ITEM, [G])

    await provider.on_resource_created(tree[ROOT_ITEM])

    assert fake_uow.privileges.snapshot(ROOT_ITEM) == {"u9": {G}}


# --- PermissionCopier ---


@pytest.mark.asyncio
async def test_copier_replaces_destination_acl(privilege_store, fake_uow, tree) -> None:
    fake_uow.privileges.seed("u1", ROOT_ITEM, [R, G])
    fake_uow.privileges.seed("u9", SUB_ITEM, [W])

    await PermissionCopier(privilege_store).handle_resource_copied(
        ResourceCopiedEvent(tree[ROOT_ITEM], tree[SUB_ITEM])
    )

    assert fake_uow.privileges.snapshot(SUB_ITEM) == {"u1": {R, G}}
    assert fake_uow.privileges.snapshot(ROOT_ITEM) == {"u1": {R, G}}


# --- RolePrivilegeRetriever / AdminService ---


@pytest.mark.asyncio
async def test_retriever_merges_without_duplicates(privilege_store, fake_uow) -> None:
    fake_uow.privileges.seed("role1", "r1", [R, W])
    fake_uow.privileges.seed("role1", "r2", [R])
    fake_uow.privileges.seed("role2", "r2", [G])

    merged = await RolePrivilegeRetriever(privilege_store).retrieve_by_resource_ids(["r1", "r2"])

    assert merged == {"role1": {R, W}, "role2": {G}}


@pytest.mark.asyncio
async def test_admin_service_users_permissions(privilege_store, resource_tree, fake_uow) -> None:
    fake_uow.privileges.seed("u1", "r1", [R, W])

    permissions = await AdminService(privilege_store, resource_tree).get_users_permissions("r1")

    assert {u: set(p) for u, p in permissions.items()} == {"u1": {R, W}}


@pytest.mark.asyncio
async def test_admin_service_adds_to_whole_class_tree(
    privilege_store, resource_tree, fake_uow, tree
) -> None:
    await AdminService(privilege_store, resource_tree).add_permission_to_class(
        tree[ROOT], "u1", [R, W, G]
    )

    for uri in (ROOT, SUBCLASS, ROOT_ITEM, SUB_ITEM):
        assert fake_uow.privileges.snapshot(uri) == {"u1": {R, W, G}}


# --- ResourceMovedHandler ---


@pytest.mark.asyncio
async def test_moved_class_gets_merged_acl_and_instances_keep_their_own(
    uow_factory, event_bus, privilege_store, resource_tree, fake_uow, tree
) -> None:
    destination = fake_uow.resources.add("http://example.org/ontology#Dest", is_class=True)
    fake_uow.privileges.seed("dest-owner", destination.uri, [R, W, G])
    fake_uow.privileges.seed("sub-owner", SUBCLASS, [R, W, G])
    fake_uow.privileges.seed("item-owner", SUB_ITEM, [R, W, G])
    handler = ResourceMovedHandler(
        make_change_permissions(uow_factory, event_bus, ReconciliationPolicy.SYNC),
        RolePrivilegeRetriever(privilege_store),
        resource_tree,
    )

    await handler.handle(ResourceMovedEvent(tree[SUBCLASS], destination))

    assert fake_uow.privileges.snapshot(SUBCLASS) == {
        "dest-owner": {R, W, G},
        "sub-owner": {R, W, G},
    }
    assert fake_uow.privileges.snapshot(SUB_ITEM) == {"item-owner": {R, W, G}}


@pytest.mark.asyncio
async def test_handlers_wired_through_event_manager(privilege_store, fake_uow, tree) -> None:
    manager = EventManager()
    copier = PermissionCopier(privilege_store)
    manager.attach(ResourceCopiedEvent.name, copier.handle_resource_copied)
    fake_uow.privileges.seed("u1", ROOT_ITEM, [G])

    await manager.trigger(ResourceCopiedEvent(tree[ROOT_ITEM], tree[SUB_ITEM]))

    assert fake_uow.privileges.snapshot(SUB_ITEM) == {"u1": {G}}
