"""CloudGate data models."""

from cloudgate.models.enums import (
    ActeeType,
    DeploymentState,
    DeploymentStatusReason,
    DeploymentStatusValue,
    DeploymentStrategy,
    EventType,
    RoleType,
)
from cloudgate.models.principal import UserAuditInfo
from cloudgate.models.role import ResourceScope, RoleMembership
from cloudgate.models.space import Organization, Space
from cloudgate.models.app import App, validate_app_name
from cloudgate.models.deployment import Deployment, DeploymentProcess, MetadataEntry
from cloudgate.models.audit import AuditEvent

__all__ = [
    "ActeeType",
    "App",
    "AuditEvent",
    "Deployment",
    "DeploymentProcess",
    "DeploymentState",
    "DeploymentStatusReason",
    "DeploymentStatusValue",
    "DeploymentStrategy",
    "EventType",
    "MetadataEntry",
    "Organization",
    "ResourceScope",
    "RoleMembership",
    "RoleType",
    "Space",
    "UserAuditInfo",
    "validate_app_name",
]
