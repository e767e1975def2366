"""Principal identity bundle - who performed an audited action."""

from pydantic import BaseModel, ConfigDict


class UserAuditInfo(BaseModel):
    """Identity of the acting user, as forwarded by the authentication layer."""

    model_config = ConfigDict(frozen=True)

    user_guid: str
    user_email: str | None = None
    user_name: str | None = None
