"""Audit event presenter."""

from typing import Any

from cloudgate.models import AuditEvent
from cloudgate.utils.time import to_iso8601


def present_audit_event(event: AuditEvent) -> dict[str, Any]:
    return {
        "guid": event.guid,
        "type": event.type.value,
        "created_at": to_iso8601(event.timestamp),
        "actor": {
            "guid": event.actor,
            "type": event.actor_type,
            "name": event.actor_name,
        },
        "target": {
            "guid": event.actee,
            "type": event.actee_type,
            "name": event.actee_name,
        },
        "data": event.metadata,
        "space": {"guid": event.space_guid} if event.space_guid else None,
        "organization": {"guid": event.organization_guid} if event.organization_guid else None,
    }
