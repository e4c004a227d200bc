"""Change permissions command."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace

from dacsimple.domain.entities import Resource
from dacsimple.domain.value_objects import Privilege, parse_privilege_map


@dataclass(frozen=True)
class ChangePermissionsCommand:
    """Request to apply a target ACL to a root resource.

    By default only the root changes. ``with_recursion`` extends the change
    to every subclass and instance below a root class, each diffed against
    its own permissions. ``with_nested_resources`` extends it to the root
    class's direct instances only, projecting the root's delta onto them;
    with ``compare_each=True`` each instance is diffed against its own ACL
    instead, as a recursive change would.
    """

    root: Resource
    privileges_per_user: Mapping[str, frozenset[Privilege]] = field(default_factory=dict)
    is_recursive: bool = False
    apply_to_nested_resources: bool = False
    diff_each_resource: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "privileges_per_user",
            {user: frozenset(p) for user, p in self.privileges_per_user.items()},
        )

    @classmethod
    def from_request(
        cls, root: Resource, privileges: Mapping[str, Iterable[str]]
    ) -> "ChangePermissionsCommand":
        return cls(root=root, privileges_per_user=parse_privilege_map(privileges))

    def with_recursion(self) -> "ChangePermissionsCommand":
        return replace(self, is_recursive=True)

    def with_nested_resources(self, compare_each: bool = False) -> "ChangePermissionsCommand":
        return replace(
            self, apply_to_nested_resources=True, diff_each_resource=compare_each
        )
