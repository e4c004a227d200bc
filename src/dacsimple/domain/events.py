"""Domain events triggered on the event bus.

Events are immutable; subscribers receive them in emission order and may
serialize them with ``to_dict``.
"""

from dataclasses import dataclass
from typing import Any, ClassVar

from dacsimple.domain.entities import Resource
from dacsimple.domain.value_objects import PermissionsDelta, Privilege


@dataclass(frozen=True)
class DomainEvent:
    """Base class; ``name`` is the routing key on the bus."""

    name: ClassVar[str] = "dac.event"

    def to_dict(self) -> dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class PermissionAddedEvent(DomainEvent):
    """Rows were inserted for one principal on one resource."""

    name: ClassVar[str] = "dac.permission_added"

    user_id: str
    resource_id: str
    privileges: tuple[Privilege, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "userUri": self.user_id,
            "accessUri": self.resource_id,
            "privilege": [str(p) for p in self.privileges],
        }


@dataclass(frozen=True)
class PermissionRemovedEvent(PermissionAddedEvent):
    """Rows were deleted for one principal on one resource."""

    name: ClassVar[str] = "dac.permission_removed"


@dataclass(frozen=True)
class AllPermissionsRemovedEvent(DomainEvent):
    """Every row of a resource was deleted, except the kept privileges."""

    name: ClassVar[str] = "dac.all_permissions_removed"

    resource_id: str
    kept: tuple[Privilege, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"accessUri": self.resource_id, "kept": [str(p) for p in self.kept]}


@dataclass(frozen=True)
class DacRootChangedEvent(DomainEvent):
    """Root of a change request got a non-empty delta."""

    name: ClassVar[str] = "dac.root_changed"

    resource_uri: str
    permissions_delta: PermissionsDelta

    def to_dict(self) -> dict[str, Any]:
        return {
            "resourceUri": self.resource_uri,
            "permissionsDelta": self.permissions_delta.to_dict(),
        }


@dataclass(frozen=True)
class DataAccessControlChangedEvent(DomainEvent):
    """Generic access-control change, for cache invalidation."""

    name: ClassVar[str] = "dac.access_control_changed"

    resource_id: str
    permissions_delta: PermissionsDelta
    is_recursive: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "resourceId": self.resource_id,
            "permissionsDelta": self.permissions_delta.to_dict(),
            "isRecursive": self.is_recursive,
        }


@dataclass(frozen=True)
class DacAffectedUsersEvent(DomainEvent):
    """Principals whose effective access changed."""

    name: ClassVar[str] = "dac.affected_users"

    added_users: tuple[str, ...]
    removed_users: tuple[str, ...]

    @property
    def affected_users(self) -> list[str]:
        return sorted(set(self.added_users) | set(self.removed_users))

    def to_dict(self) -> dict[str, Any]:
        return {
            "addedUsers": list(self.added_users),
            "removedUsers": list(self.removed_users),
        }


@dataclass(frozen=True)
class ResourceCreatedEvent(DomainEvent):
    """Ontology created a resource."""

    name: ClassVar[str] = "ontology.resource_created"

    resource: Resource

    def to_dict(self) -> dict[str, Any]:
        return {"resourceUri": self.resource.uri}


@dataclass(frozen=True)
class ResourceCopiedEvent(DomainEvent):
    """Ontology copied a resource; the copy should get the source's ACL."""

    name: ClassVar[str] = "ontology.resource_copied"

    source: Resource
    destination: Resource

    def to_dict(self) -> dict[str, Any]:
        return {"sourceUri": self.source.uri, "destinationUri": self.destination.uri}


@dataclass(frozen=True)
class ResourceMovedEvent(DomainEvent):
    """Ontology moved a resource under another class."""

    name: ClassVar[str] = "ontology.resource_moved"

    moved_resource: Resource
    destination_class: Resource

    def to_dict(self) -> dict[str, Any]:
        return {
            "movedResourceUri": self.moved_resource.uri,
            "destinationClassUri": self.destination_class.uri,
        }
