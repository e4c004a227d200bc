"""Privileges a principal may hold on a resource."""

from collections.abc import Iterable, Mapping
from enum import StrEnum

from dacsimple.domain.exceptions import ValidationError


class Privilege(StrEnum):
    """Closed set of DAC privileges.

    The legacy single-owner ``OWNER`` privilege is not supported; ownership is
    expressed by holding ``GRANT``.
    """

    READ = "READ"
    WRITE = "WRITE"
    GRANT = "GRANT"


class PrincipalType(StrEnum):
    """Request metadata tag; the engine treats users and roles alike."""

    USER = "user"
    ROLE = "role"


SUPPORTED_RIGHTS: frozenset[Privilege] = frozenset(Privilege)

# Adding a privilege also adds the ones it builds on.
IMPLIED_ON_ADD: dict[Privilege, frozenset[Privilege]] = {
    Privilege.GRANT: frozenset({Privilege.WRITE, Privilege.READ}),
    Privilege.WRITE: frozenset({Privilege.READ}),
}

# Removing a privilege also removes the ones built on it.
IMPLIED_ON_REMOVE: dict[Privilege, frozenset[Privilege]] = {
    Privilege.READ: frozenset({Privilege.WRITE, Privilege.GRANT}),
    Privilege.WRITE: frozenset({Privilege.GRANT}),
}

PrivilegeMap = Mapping[str, Iterable[Privilege]]


def parse_privileges(values: Iterable[str]) -> frozenset[Privilege]:
    """Parse privilege names, rejecting anything outside the closed set."""
    if isinstance(values, str):
        raise ValidationError("Privileges must be a list, not a string")
    parsed = set()
    for value in values:
        try:
            parsed.add(Privilege(str(value).upper()))
        except ValueError:
            raise ValidationError(f"Unknown privilege: {value}") from None
    return frozenset(parsed)


def parse_privilege_map(raw: Mapping[str, Iterable[str]]) -> dict[str, frozenset[Privilege]]:
    """Parse ``{principal: [privilege, ...]}`` coming from a request or task."""
    if not isinstance(raw, Mapping):
        raise ValidationError("Privileges must be a mapping of principal to privileges")
    return {str(user_id): parse_privileges(values) for user_id, values in raw.items()}


def serialize_privilege_map(privileges: PrivilegeMap) -> dict[str, list[str]]:
    """Inverse of parse_privilege_map; lists are sorted for stable payloads."""
    return {
        user_id: sorted(str(p) for p in values) for user_id, values in privileges.items()
    }
