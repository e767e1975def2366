"""Role membership model - read-time authorization grants."""

from pydantic import BaseModel, model_validator

from cloudgate.models.enums import RoleType


class RoleMembership(BaseModel):
    """A user's role in a single space or organization."""

    user_guid: str
    role: RoleType
    space_guid: str | None = None
    organization_guid: str | None = None

    @model_validator(mode="after")
    def check_scope(self) -> "RoleMembership":
        if self.role.is_space_scoped():
            if not self.space_guid or self.organization_guid:
                raise ValueError(f"{self.role.value} must be scoped to a space only")
        elif not self.organization_guid or self.space_guid:
            raise ValueError(f"{self.role.value} must be scoped to an organization only")
        return self


class ResourceScope(BaseModel):
    """Where a resource lives: its space (if any) and organization."""

    space_guid: str | None = None
    organization_guid: str
