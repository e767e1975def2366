"""App model and name rules."""

from datetime import datetime

from pydantic import BaseModel

from cloudgate.models.role import ResourceScope


def validate_app_name(name: str) -> str:
    """
    Strip and validate an app name.

    Any printable character is allowed (punctuation, backslashes, unicode);
    newlines, escapes and other control characters are not.

    Raises:
        ValueError: If the name is empty or contains non-printable characters
    """
    stripped = name.strip()
    if not stripped:
        raise ValueError("name must not be empty")
    if not stripped.isprintable():
        raise ValueError("name must contain only printable characters")
    return stripped


class App(BaseModel):
    """An application owning deployments.

    ``organization_guid`` is denormalised from the owning space at load time
    so visibility checks never need another query.
    """

    guid: str
    name: str
    space_guid: str
    organization_guid: str
    revisions_enabled: bool = True
    enable_ssh: bool = True
    droplet_guid: str | None = None
    created_at: datetime
    updated_at: datetime

    @property
    def scope(self) -> ResourceScope:
        return ResourceScope(
            space_guid=self.space_guid,
            organization_guid=self.organization_guid,
        )
