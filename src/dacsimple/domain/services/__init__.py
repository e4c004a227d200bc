"""Pure domain services."""

from dacsimple.domain.services.delta_strategy import PermissionsStrategy

__all__ = ["PermissionsStrategy"]
