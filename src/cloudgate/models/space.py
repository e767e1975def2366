"""Organization and space models."""

from datetime import datetime

from pydantic import BaseModel

from cloudgate.models.role import ResourceScope


class Organization(BaseModel):
    """Top-level tenant grouping spaces."""

    guid: str
    name: str
    created_at: datetime
    updated_at: datetime

    @property
    def scope(self) -> ResourceScope:
        return ResourceScope(organization_guid=self.guid)


class Space(BaseModel):
    """A space inside an organization; apps live here."""

    guid: str
    name: str
    organization_guid: str
    created_at: datetime
    updated_at: datetime

    @property
    def scope(self) -> ResourceScope:
        return ResourceScope(
            space_guid=self.guid,
            organization_guid=self.organization_guid,
        )
