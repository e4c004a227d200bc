"""Change permissions use case - the permission change orchestrator.

A request moves through RESOLVING_SCOPE, COMPUTING_DELTA, VALIDATING,
APPLYING and EMITTING. Validation is a dry run over in-memory snapshots, so a
request breaking the GRANT invariant fails before any row is touched. The
self-revocation guard fires while applying and is undone by compensating
writes, since the store has no transaction spanning resources. Changes handed
to background tasks are checked up front with ``validate``.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum

from dacsimple.application.dto.change_permissions_command import ChangePermissionsCommand
from dacsimple.application.ports import ResourceTree
from dacsimple.application.services.event_emitter import EventEmitter
from dacsimple.application.services.privilege_store import PrivilegeStore
from dacsimple.domain.entities import Resource
from dacsimple.domain.exceptions import DacError, InconsistentPermissionsError
from dacsimple.domain.services import PermissionsStrategy
from dacsimple.domain.value_objects import SUPPORTED_RIGHTS, PermissionsDelta, Privilege

logger = logging.getLogger(__name__)


class ChangeState(StrEnum):
    """Progress of a single change request."""

    RESOLVING_SCOPE = "resolving_scope"
    COMPUTING_DELTA = "computing_delta"
    VALIDATING = "validating"
    APPLYING = "applying"
    EMITTING = "emitting"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ResourceChange:
    """Planned writes for one resource."""

    resource: Resource
    current: dict[str, set[Privilege]]
    add: dict[str, set[Privilege]]
    remove: dict[str, set[Privilege]]

    @property
    def is_empty(self) -> bool:
        return not self.add and not self.remove

    def result(self) -> dict[str, set[Privilege]]:
        """Snapshot after applying remove then add."""
        permissions = {user: set(p) for user, p in self.current.items()}
        for user_id, privileges in self.remove.items():
            permissions[user_id] = permissions.get(user_id, set()) - privileges
        for user_id, privileges in self.add.items():
            permissions.setdefault(user_id, set()).update(privileges)
        return permissions


class ChangePermissionsUseCase:
    """Computes, validates, applies and announces permission changes."""

    def __init__(
        self,
        privilege_store: PrivilegeStore,
        resource_tree: ResourceTree,
        strategy: PermissionsStrategy,
        event_emitter: EventEmitter,
    ) -> None:
        self._store = privilege_store
        self._tree = resource_tree
        self._strategy = strategy
        self._emitter = event_emitter

    @property
    def strategy(self) -> PermissionsStrategy:
        return self._strategy

    async def execute(
        self, command: ChangePermissionsCommand, actor_id: str | None = None
    ) -> PermissionsDelta:
        """Apply the command and emit events. Returns the root's delta.

        When ``actor_id`` is given, the actor may not revoke their own full
        rights on any resource they fully control.
        """
        delta, changed = await self._apply(command, actor_id)
        if changed:
            self._log_state(command, ChangeState.EMITTING)
            await self._emitter.emit_change(command.root.uri, delta, command.is_recursive)
        self._log_state(command, ChangeState.DONE)
        return delta

    async def apply(
        self, command: ChangePermissionsCommand, actor_id: str | None = None
    ) -> PermissionsDelta:
        """Apply the command without emitting events (background subtasks)."""
        delta, _ = await self._apply(command, actor_id)
        return delta

    async def change_permissions(
        self,
        root: Resource,
        privileges_per_user: Mapping[str, Iterable[Privilege]],
        recursive: bool,
        actor_id: str | None = None,
    ) -> PermissionsDelta:
        command = ChangePermissionsCommand(
            root=root,
            privileges_per_user={u: frozenset(p) for u, p in privileges_per_user.items()},
        )
        if recursive:
            command = command.with_recursion()
        return await self.execute(command, actor_id=actor_id)

    async def save_permissions(
        self,
        recursive: bool,
        resource: Resource,
        target_privileges: Mapping[str, Iterable[Privilege]],
    ) -> PermissionsDelta:
        """Synchronous entry point kept for existing callers."""
        return await self.change_permissions(resource, target_privileges, recursive)

    async def save_resource_permissions_recursive(
        self, resource: Resource, privileges: Mapping[str, Iterable[Privilege]]
    ) -> PermissionsDelta:
        return await self.change_permissions(resource, privileges, recursive=True)

    async def trigger_events_for_root_resource(
        self, resource_id: str, delta: PermissionsDelta, is_recursive: bool
    ) -> None:
        await self._emitter.emit_change(resource_id, delta, is_recursive)

    async def resolve_scope(self, command: ChangePermissionsCommand) -> list[Resource]:
        """Root first, then subclasses and instances in tree-walk order."""
        root = command.root
        resources = [root]
        if root.is_class and command.is_recursive:
            resources += await self._tree.get_subclasses(root, transitive=True)
            resources += await self._tree.get_instances(root, transitive=True)
        elif root.is_class and command.apply_to_nested_resources:
            resources += await self._tree.get_instances(root, transitive=False)

        unique: dict[str, Resource] = {}
        for resource in resources:
            unique.setdefault(resource.uri, resource)
        return list(unique.values())

    async def validate(
        self, command: ChangePermissionsCommand, actor_id: str | None = None
    ) -> PermissionsDelta:
        """Check the whole scope without writing. Returns the root's delta.

        Raises InconsistentPermissionsError when a resource would lose its
        last GRANT holder, or when ``actor_id`` would lose full rights on a
        resource they fully control.
        """
        root_delta, changes = await self._prepare(command)
        self._log_state(command, ChangeState.VALIDATING)
        self._dry_run(changes)
        if actor_id is not None:
            for change in changes:
                held = change.current.get(actor_id, set())
                if actor_id in change.remove and held >= SUPPORTED_RIGHTS:
                    raise InconsistentPermissionsError(
                        change.resource.uri,
                        f"User {actor_id} cannot revoke own access to resource "
                        f"{change.resource.uri}",
                    )
        return root_delta

    async def _prepare(
        self, command: ChangePermissionsCommand
    ) -> tuple[PermissionsDelta, list[ResourceChange]]:
        self._log_state(command, ChangeState.RESOLVING_SCOPE)
        resources = await self.resolve_scope(command)
        logger.debug(
            "Resources to update for %s: %s",
            command.root.uri,
            ", ".join(r.uri for r in resources),
        )

        self._log_state(command, ChangeState.COMPUTING_DELTA)
        snapshots = await self._store.get_permissions_for_resources(r.uri for r in resources)
        root_delta = self._strategy.compute_delta(
            snapshots[command.root.uri], command.privileges_per_user
        )
        return root_delta, self._plan(command, resources, snapshots, root_delta)

    async def _apply(
        self, command: ChangePermissionsCommand, actor_id: str | None
    ) -> tuple[PermissionsDelta, bool]:
        root_delta, changes = await self._prepare(command)
        if all(change.is_empty for change in changes):
            logger.debug("Nothing to do for %s", command.root.uri)
            return root_delta, False

        self._log_state(command, ChangeState.VALIDATING)
        self._dry_run(changes)

        self._log_state(command, ChangeState.APPLYING)
        try:
            await self._wet_run(changes, actor_id)
        except InconsistentPermissionsError:
            self._log_state(command, ChangeState.FAILED)
            raise
        return root_delta, True

    def _plan(
        self,
        command: ChangePermissionsCommand,
        resources: list[Resource],
        snapshots: dict[str, dict[str, set[Privilege]]],
        root_delta: PermissionsDelta,
    ) -> list[ResourceChange]:
        changes = []
        for resource in resources:
            current = snapshots[resource.uri]
            if (
                resource.uri == command.root.uri
                or command.is_recursive
                or command.diff_each_resource
            ):
                delta = self._strategy.compute_delta(current, command.privileges_per_user)
            else:
                delta = root_delta
            changes.append(
                ResourceChange(
                    resource=resource,
                    current=current,
                    add=self._strategy.permissions_to_add(current, delta),
                    remove=self._strategy.permissions_to_remove(current, delta),
                )
            )
        return changes

    def _dry_run(self, changes: list[ResourceChange]) -> None:
        for change in changes:
            if change.is_empty:
                continue
            result = change.result()
            if not any(Privilege.GRANT in privileges for privileges in result.values()):
                raise InconsistentPermissionsError(change.resource.uri)

    async def _wet_run(self, changes: list[ResourceChange], actor_id: str | None) -> None:
        applied: list[ResourceChange] = []
        for change in changes:
            if change.is_empty:
                continue
            resource_id = change.resource.uri

            for user_id, privileges in change.remove.items():
                await self._store.remove_permissions(user_id, resource_id, privileges)

            if actor_id is not None and actor_id in change.remove:
                await self._guard_self_revocation(change, actor_id, applied)

            for user_id, privileges in change.add.items():
                await self._store.add_permissions(user_id, resource_id, privileges)
            applied.append(change)

    async def _guard_self_revocation(
        self, change: ResourceChange, actor_id: str, applied: list[ResourceChange]
    ) -> None:
        if not change.current.get(actor_id, set()) >= SUPPORTED_RIGHTS:
            return

        resource_id = change.resource.uri
        remaining = await self._store.get_permissions_for_users_and_resources(
            [actor_id], [resource_id]
        )
        if remaining[resource_id] == SUPPORTED_RIGHTS:
            return

        logger.warning(
            "User %s attempted to revoke own rights on %s, rolling back", actor_id, resource_id
        )
        partial = ResourceChange(change.resource, change.current, add={}, remove=change.remove)
        await self._rollback([*applied, partial])
        raise InconsistentPermissionsError(
            resource_id,
            f"User {actor_id} cannot revoke own access to resource {resource_id}",
        )

    async def _rollback(self, applied: list[ResourceChange]) -> None:
        for change in reversed(applied):
            resource_id = change.resource.uri
            try:
                for user_id, privileges in change.add.items():
                    await self._store.remove_permissions(user_id, resource_id, privileges)
                for user_id, privileges in change.remove.items():
                    await self._store.add_permissions(user_id, resource_id, privileges)
            except DacError:
                logger.exception("Rollback failed for resource %s", resource_id)

    @staticmethod
    def _log_state(command: ChangePermissionsCommand, state: ChangeState) -> None:
        logger.debug("Change on %s: %s", command.root.uri, state)
