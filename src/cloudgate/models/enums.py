"""CloudGate enumerations."""

from enum import Enum


class DeploymentState(str, Enum):
    """Deployment lifecycle state."""

    DEPLOYING = "DEPLOYING"
    DEPLOYED = "DEPLOYED"
    CANCELING = "CANCELING"
    CANCELED = "CANCELED"


class DeploymentStatusValue(str, Enum):
    """Coarse deployment status."""

    ACTIVE = "ACTIVE"
    FINALIZED = "FINALIZED"


class DeploymentStatusReason(str, Enum):
    """Why a deployment is in its current status."""

    DEPLOYING = "DEPLOYING"
    CANCELING = "CANCELING"
    DEPLOYED = "DEPLOYED"
    CANCELED = "CANCELED"
    SUPERSEDED = "SUPERSEDED"


class DeploymentStrategy(str, Enum):
    """Deployment rollout strategy."""

    ROLLING = "rolling"


class RoleType(str, Enum):
    """Role memberships that grant read access."""

    SPACE_DEVELOPER = "space_developer"
    SPACE_AUDITOR = "space_auditor"
    SPACE_MANAGER = "space_manager"
    ORGANIZATION_MANAGER = "organization_manager"

    @classmethod
    def space_roles(cls) -> set["RoleType"]:
        """Roles scoped to a space."""
        return {cls.SPACE_DEVELOPER, cls.SPACE_AUDITOR, cls.SPACE_MANAGER}

    def is_space_scoped(self) -> bool:
        return self in self.space_roles()


class EventType(str, Enum):
    """Audit event types."""

    SPACE_CREATE = "audit.space.create"
    SPACE_UPDATE = "audit.space.update"
    SPACE_DELETE_REQUEST = "audit.space.delete-request"
    APP_DEPLOYMENT_CREATE = "audit.app.deployment.create"
    APP_DEPLOYMENT_CANCEL = "audit.app.deployment.cancel"


class ActeeType(str, Enum):
    """Kinds of entity an audit event can be about."""

    SPACE = "space"
    APP = "app"
