"""Audit event model - immutable record of a state-changing action."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from cloudgate.models.enums import EventType


class AuditEvent(BaseModel):
    """Audit trail entry. Written once, never updated."""

    model_config = ConfigDict(frozen=True)

    guid: str
    type: EventType
    actee: str
    actee_type: str
    actee_name: str | None = None
    actor: str
    actor_type: str
    actor_name: str | None = None
    actor_username: str | None = None
    timestamp: datetime
    space_guid: str | None = None
    organization_guid: str | None = None
    metadata: dict[str, Any]
