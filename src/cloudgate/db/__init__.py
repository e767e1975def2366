"""CloudGate database layer."""

from cloudgate.db.base import Base, init_db
from cloudgate.db.tables import (
    AppTable,
    DeploymentAnnotationTable,
    DeploymentLabelTable,
    DeploymentProcessTable,
    DeploymentTable,
    EventTable,
    OrganizationTable,
    RoleMembershipTable,
    SpaceTable,
)

__all__ = [
    "AppTable",
    "Base",
    "DeploymentAnnotationTable",
    "DeploymentLabelTable",
    "DeploymentProcessTable",
    "DeploymentTable",
    "EventTable",
    "OrganizationTable",
    "RoleMembershipTable",
    "SpaceTable",
    "init_db",
]
