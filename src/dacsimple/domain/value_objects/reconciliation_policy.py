"""Reconciliation policy for permission deltas."""

from enum import StrEnum


class ReconciliationPolicy(StrEnum):
    """How a target privilege map is reconciled with the current one.

    MERGE leaves principals absent from the target untouched.
    SYNC treats the target as authoritative and revokes everything else.
    """

    MERGE = "merge"
    SYNC = "sync"
