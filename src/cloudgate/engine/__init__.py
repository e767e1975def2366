"""CloudGate engine - service operations over repositories.

Only errors are re-exported here; import ``ControllerEngine`` from
``cloudgate.engine.core`` (presenters depend on these errors).
"""

from cloudgate.engine.errors import (
    AppNotFound,
    CloudGateError,
    DeploymentNotFound,
    InvalidStateTransition,
    MissingRelationError,
    OrganizationNotFound,
    ResourceNotFound,
    SpaceNotFound,
    UnauthorizedError,
    ValidationFailed,
)

__all__ = [
    "AppNotFound",
    "CloudGateError",
    "DeploymentNotFound",
    "InvalidStateTransition",
    "MissingRelationError",
    "OrganizationNotFound",
    "ResourceNotFound",
    "SpaceNotFound",
    "UnauthorizedError",
    "ValidationFailed",
]
