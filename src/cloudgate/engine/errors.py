"""CloudGate engine errors."""


class CloudGateError(Exception):
    """Base error for CloudGate operations."""

    def __init__(self, message: str, code: str = "CLOUDGATE_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ResourceNotFound(CloudGateError):
    """Resource does not exist (or is not visible to the caller)."""

    resource_type = "Resource"

    def __init__(self, guid: str):
        super().__init__(
            f"{self.resource_type} not found: {guid}",
            f"{self.resource_type.upper()}_NOT_FOUND",
        )
        self.guid = guid


class OrganizationNotFound(ResourceNotFound):
    resource_type = "Organization"


class SpaceNotFound(ResourceNotFound):
    resource_type = "Space"


class AppNotFound(ResourceNotFound):
    resource_type = "App"


class DeploymentNotFound(ResourceNotFound):
    resource_type = "Deployment"


class InvalidStateTransition(CloudGateError):
    """Invalid deployment state transition."""

    def __init__(self, current_state: str, requested_state: str):
        super().__init__(
            f"Cannot transition from {current_state} to {requested_state}",
            "INVALID_STATE_TRANSITION",
        )
        self.current_state = current_state
        self.requested_state = requested_state


class ValidationFailed(CloudGateError):
    """Model validation failed."""

    def __init__(self, message: str):
        super().__init__(message, "VALIDATION_FAILED")


class MissingRelationError(CloudGateError):
    """A mandatory relation was not loaded - a data-integrity bug, not user error."""

    def __init__(self, resource: str, relation: str):
        super().__init__(
            f"{resource} is missing required relation '{relation}'",
            "MISSING_RELATION",
        )
        self.resource = resource
        self.relation = relation


class UnauthorizedError(CloudGateError):
    """Operation not authorized."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, "UNAUTHORIZED")
