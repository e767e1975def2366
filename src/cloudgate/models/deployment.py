"""Deployment model - rolling updates of an app."""

from datetime import datetime

from pydantic import BaseModel, Field

from cloudgate.models.app import App
from cloudgate.models.enums import (
    DeploymentState,
    DeploymentStatusReason,
    DeploymentStatusValue,
    DeploymentStrategy,
)


class MetadataEntry(BaseModel):
    """A single label or annotation row."""

    key_prefix: str | None = None
    key_name: str
    value: str | None = None


class DeploymentProcess(BaseModel):
    """Process created while a deployment ran. Append-only."""

    process_guid: str
    process_type: str


class Deployment(BaseModel):
    """A deployment together with its loaded relations."""

    guid: str
    state: DeploymentState
    status_value: DeploymentStatusValue
    status_reason: DeploymentStatusReason | None = None
    last_healthy_at: datetime | None = None
    strategy: DeploymentStrategy = DeploymentStrategy.ROLLING
    droplet_guid: str | None = None
    previous_droplet_guid: str | None = None
    revision_guid: str | None = None
    revision_version: int | None = None
    app_guid: str
    created_at: datetime
    updated_at: datetime

    # Loaded relations
    app: App | None = None
    historical_related_processes: list[DeploymentProcess] = Field(default_factory=list)
    labels: list[MetadataEntry] = Field(default_factory=list)
    annotations: list[MetadataEntry] = Field(default_factory=list)
