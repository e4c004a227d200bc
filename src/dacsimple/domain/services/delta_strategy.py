"""Delta strategy - reconciles current and target privilege maps.

All operations are set arithmetic over ``{principal: set[Privilege]}``;
ordering of principals or privileges never matters.
"""

from collections.abc import Mapping

from dacsimple.domain.value_objects import PermissionsDelta, Privilege, ReconciliationPolicy
from dacsimple.domain.value_objects.privilege import (
    IMPLIED_ON_ADD,
    IMPLIED_ON_REMOVE,
    PrivilegeMap,
)


class PermissionsStrategy:
    """Computes add/remove sets under a reconciliation policy.

    MERGE reconciles only principals mentioned in the target, so an empty
    target is a no-op. SYNC treats the target as the complete state, so an
    empty target revokes everything.

    With ``cascade_dependent_privileges`` additions pull in the privileges
    they build on (GRANT needs WRITE and READ, WRITE needs READ) and removals
    drop the privileges built on them.
    """

    def __init__(
        self,
        policy: ReconciliationPolicy = ReconciliationPolicy.MERGE,
        cascade_dependent_privileges: bool = False,
    ) -> None:
        self._policy = policy
        self._cascade = cascade_dependent_privileges

    @property
    def policy(self) -> ReconciliationPolicy:
        return self._policy

    def compute_delta(self, current: PrivilegeMap, target: PrivilegeMap) -> PermissionsDelta:
        """Delta turning ``current`` into ``target`` for the reconciled principals."""
        users = list(target)
        if self._policy is ReconciliationPolicy.SYNC:
            users += [u for u in current if u not in target]

        add: dict[str, frozenset[Privilege]] = {}
        remove: dict[str, frozenset[Privilege]] = {}
        for user_id in users:
            wanted = frozenset(target.get(user_id, ()))
            if self._cascade:
                # upward-closed target keeps cascaded add and remove disjoint
                wanted |= _closure(set(wanted), IMPLIED_ON_ADD)
            held = frozenset(current.get(user_id, ()))
            if wanted - held:
                add[user_id] = wanted - held
            if held - wanted:
                remove[user_id] = held - wanted
        return PermissionsDelta(add=add, remove=remove)

    def permissions_to_add(
        self, current: PrivilegeMap, delta: PermissionsDelta
    ) -> dict[str, set[Privilege]]:
        """``delta.add`` minus what each principal already holds."""
        result: dict[str, set[Privilege]] = {}
        for user_id, privileges in delta.add.items():
            wanted = set(privileges)
            if self._cascade:
                wanted |= _closure(wanted, IMPLIED_ON_ADD)
            wanted -= set(current.get(user_id, ()))
            if wanted:
                result[user_id] = wanted
        return result

    def permissions_to_remove(
        self, current: PrivilegeMap, delta: PermissionsDelta
    ) -> dict[str, set[Privilege]]:
        """``delta.remove`` restricted to what each principal actually holds."""
        result: dict[str, set[Privilege]] = {}
        for user_id, privileges in delta.remove.items():
            unwanted = set(privileges)
            if self._cascade:
                unwanted |= _closure(unwanted, IMPLIED_ON_REMOVE)
            unwanted &= set(current.get(user_id, ()))
            if unwanted:
                result[user_id] = unwanted
        return result


def _closure(
    privileges: set[Privilege], implied: Mapping[Privilege, frozenset[Privilege]]
) -> set[Privilege]:
    result: set[Privilege] = set()
    for privilege in privileges:
        result |= implied.get(privilege, frozenset())
    return result
