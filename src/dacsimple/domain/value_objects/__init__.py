"""Domain value objects."""

from dacsimple.domain.value_objects.permissions_delta import PermissionsDelta
from dacsimple.domain.value_objects.privilege import (
    SUPPORTED_RIGHTS,
    PrincipalType,
    Privilege,
    parse_privilege_map,
    parse_privileges,
    serialize_privilege_map,
)
from dacsimple.domain.value_objects.reconciliation_policy import ReconciliationPolicy
from dacsimple.domain.value_objects.task_status import TaskStatus

__all__ = [
    "SUPPORTED_RIGHTS",
    "PermissionsDelta",
    "PrincipalType",
    "Privilege",
    "ReconciliationPolicy",
    "TaskStatus",
    "parse_privilege_map",
    "parse_privileges",
    "serialize_privilege_map",
]
