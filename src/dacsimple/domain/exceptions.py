"""Domain exceptions."""


class DacError(Exception):
    """Base exception for dacsimple."""

    pass


class PermissionDenied(DacError):
    """Acting user does not hold the privilege required for the request."""

    pass


class NotFound(DacError):
    """Requested resource or task was not found."""

    pass


class ValidationError(DacError):
    """Validation failed for input data."""

    pass


class MissingParameterError(ValidationError):
    """A mandatory task or request parameter is absent."""

    def __init__(self, parameter: str, owner: str) -> None:
        self.parameter = parameter
        self.owner = owner
        super().__init__(f"Missing parameter `{parameter}` in {owner}")


class InconsistentPermissionsError(DacError):
    """A change would leave a resource in an unsafe permission state."""

    def __init__(self, resource_id: str, message: str | None = None) -> None:
        self.resource_id = resource_id
        super().__init__(
            message
            or f"Resource {resource_id} should have at least one user with GRANT access"
        )


class StorageError(DacError):
    """Underlying storage failed (connection loss, constraint violation)."""

    pass
