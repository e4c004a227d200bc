"""Permission row entity - the persisted unit of access."""

from dataclasses import dataclass

from dacsimple.domain.value_objects import Privilege


@dataclass(frozen=True)
class PermissionRow:
    """Principal holds privilege on resource. The triple is the primary key."""

    user_id: str
    resource_id: str
    privilege: Privilege
