"""Permissions delta - add/remove sets per principal."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from dacsimple.domain.exceptions import ValidationError
from dacsimple.domain.value_objects.privilege import (
    Privilege,
    parse_privilege_map,
    serialize_privilege_map,
)


@dataclass(frozen=True)
class PermissionsDelta:
    """Grant/revoke operations turning a current snapshot into a target one.

    For a given principal a privilege never appears in both ``add`` and
    ``remove``.
    """

    add: dict[str, frozenset[Privilege]] = field(default_factory=dict)
    remove: dict[str, frozenset[Privilege]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not any(self.add.values()) and not any(self.remove.values())

    @property
    def affected_users(self) -> list[str]:
        return sorted(set(self.add) | set(self.remove))

    def inverted(self) -> "PermissionsDelta":
        """Delta undoing this one."""
        return PermissionsDelta(add=dict(self.remove), remove=dict(self.add))

    def to_dict(self) -> dict[str, dict[str, list[str]]]:
        return {
            "add": serialize_privilege_map(self.add),
            "remove": serialize_privilege_map(self.remove),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PermissionsDelta":
        if "add" not in data or "remove" not in data:
            raise ValidationError('Permissions delta must contain "add" and "remove" keys')
        return cls(
            add=parse_privilege_map(data["add"] or {}),
            remove=parse_privilege_map(data["remove"] or {}),
        )
