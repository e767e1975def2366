"""API request/response schemas."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from cloudgate.models import validate_app_name


# ============================================================================
# Shared schemas
# ============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


class RelationshipData(BaseModel):
    guid: str = Field(..., min_length=1)


class ToOneRelationship(BaseModel):
    """``{"data": {"guid": ...}}`` reference."""

    data: RelationshipData

    @property
    def guid(self) -> str:
        return self.data.guid


class MetadataRequest(BaseModel):
    """Labels and annotations supplied on create."""

    labels: dict[str, Optional[str]] = Field(default_factory=dict)
    annotations: dict[str, Optional[str]] = Field(default_factory=dict)


# ============================================================================
# Organizations & spaces
# ============================================================================


class CreateOrganizationRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class OrganizationResponse(BaseModel):
    guid: str
    name: str
    created_at: datetime
    updated_at: datetime


class SpaceRelationships(BaseModel):
    organization: ToOneRelationship


class CreateSpaceRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    relationships: SpaceRelationships


class UpdateSpaceRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class SpaceResponse(BaseModel):
    guid: str
    name: str
    organization_guid: str
    created_at: datetime
    updated_at: datetime


# ============================================================================
# Apps
# ============================================================================


class AppRelationships(BaseModel):
    space: ToOneRelationship


class CreateAppRequest(BaseModel):
    name: str
    relationships: AppRelationships
    enable_ssh: Optional[bool] = Field(None, description="Defaults to server setting")
    revisions_enabled: bool = True
    droplet_guid: Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return validate_app_name(v)


class AppResponse(BaseModel):
    guid: str
    name: str
    space_guid: str
    revisions_enabled: bool
    enable_ssh: bool
    droplet_guid: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# ============================================================================
# Deployments
# ============================================================================


class DeploymentRelationships(BaseModel):
    app: ToOneRelationship


class CreateDeploymentRequest(BaseModel):
    relationships: DeploymentRelationships
    droplet: Optional[dict[str, str]] = Field(None, description='{"guid": ...}')
    revision: Optional[dict[str, Any]] = Field(None, description='{"guid": ..., "version": ...}')
    metadata: MetadataRequest = Field(default_factory=MetadataRequest)


class ListResponse(BaseModel):
    """Paginated list of presented resources."""

    pagination: dict[str, Any]
    resources: list[dict[str, Any]]
