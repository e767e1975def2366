"""
Audit event repositories.

Each ``record_*`` call writes exactly one immutable row to ``events``. The
timestamp is assigned by the database at insert time. Storage errors are
not caught here: callers decide whether the primary mutation rolls back.
"""

from typing import Any
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cloudgate.db.tables import EventTable
from cloudgate.models import (
    ActeeType,
    App,
    AuditEvent,
    Deployment,
    EventType,
    Space,
    UserAuditInfo,
)

USER_ACTOR_TYPE = "user"


class EventRepository:
    """Writes and reads audit events."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        type: EventType,
        actee: str,
        actee_type: str,
        actee_name: str | None,
        user_audit_info: UserAuditInfo,
        metadata: dict[str, Any],
        space_guid: str | None = None,
        organization_guid: str | None = None,
        linked_space_guid: str | None = None,
    ) -> AuditEvent:
        """Insert one audit event and return it with its stored timestamp."""
        row = EventTable(
            guid=str(uuid4()),
            type=type.value,
            actee=actee,
            actee_type=actee_type,
            actee_name=actee_name,
            actor=user_audit_info.user_guid,
            actor_type=USER_ACTOR_TYPE,
            actor_name=user_audit_info.user_email,
            actor_username=user_audit_info.user_name,
            linked_space_guid=linked_space_guid,
            space_guid=space_guid,
            organization_guid=organization_guid,
            metadata_=metadata,
        )
        self.session.add(row)
        await self.session.flush()
        # Pick up the server-assigned timestamp
        await self.session.refresh(row)
        return self._row_to_model(row)

    async def get(self, guid: str) -> AuditEvent | None:
        result = await self.session.execute(select(EventTable).where(EventTable.guid == guid))
        row = result.scalar_one_or_none()
        return self._row_to_model(row) if row else None

    async def list(
        self,
        actee: str | None = None,
        types: list[EventType] | None = None,
        space_guids: set[str] | None = None,
        organization_guids: set[str] | None = None,
        limit: int = 50,
        cursor: int | None = None,
    ) -> tuple[list[AuditEvent], int | None]:
        """
        List events, newest first.

        ``space_guids``/``organization_guids`` restrict results to events in
        those scopes (either match is enough). The cursor is the row id of
        the last event on the previous page.
        """
        query = select(EventTable)

        if actee:
            query = query.where(EventTable.actee == actee)
        if types:
            query = query.where(EventTable.type.in_([t.value for t in types]))
        if space_guids is not None or organization_guids is not None:
            query = query.where(
                EventTable.space_guid.in_(list(space_guids or ()))
                | EventTable.organization_guid.in_(list(organization_guids or ()))
            )
        if cursor:
            query = query.where(EventTable.id < cursor)

        query = query.order_by(EventTable.id.desc()).limit(limit + 1)

        result = await self.session.execute(query)
        rows = list(result.scalars().all())

        next_cursor = None
        if len(rows) > limit:
            rows = rows[:limit]
            next_cursor = rows[-1].id

        return [self._row_to_model(r) for r in rows], next_cursor

    def _row_to_model(self, row: EventTable) -> AuditEvent:
        """Convert database row to model."""
        return AuditEvent(
            guid=row.guid,
            type=EventType(row.type),
            actee=row.actee,
            actee_type=row.actee_type,
            actee_name=row.actee_name,
            actor=row.actor,
            actor_type=row.actor_type,
            actor_name=row.actor_name,
            actor_username=row.actor_username,
            timestamp=row.timestamp,
            space_guid=row.space_guid,
            organization_guid=row.organization_guid,
            metadata=row.metadata_,
        )


class SpaceEventRepository:
    """Audit events for space lifecycle actions."""

    def __init__(self, session: AsyncSession):
        self.events = EventRepository(session)

    async def record_space_create(
        self,
        space: Space,
        user_audit_info: UserAuditInfo,
        request_attrs: Any,
    ) -> AuditEvent:
        return await self._record_linked(EventType.SPACE_CREATE, space, user_audit_info, request_attrs)

    async def record_space_update(
        self,
        space: Space,
        user_audit_info: UserAuditInfo,
        request_attrs: Any,
    ) -> AuditEvent:
        return await self._record_linked(EventType.SPACE_UPDATE, space, user_audit_info, request_attrs)

    async def record_space_delete_request(
        self,
        space: Space,
        user_audit_info: UserAuditInfo,
        recursive: bool,
    ) -> AuditEvent:
        """
        Record a request to delete a space.

        The space may be gone by the time anyone reads this event, so no
        link to it is stored; only its guid and its organization's guid.
        """
        return await self.events.create(
            type=EventType.SPACE_DELETE_REQUEST,
            actee=space.guid,
            actee_type=ActeeType.SPACE.value,
            actee_name=space.name,
            user_audit_info=user_audit_info,
            metadata={"request": {"recursive": recursive}},
            space_guid=space.guid,
            organization_guid=space.organization_guid,
        )

    async def _record_linked(
        self,
        type: EventType,
        space: Space,
        user_audit_info: UserAuditInfo,
        request_attrs: Any,
    ) -> AuditEvent:
        return await self.events.create(
            type=type,
            actee=space.guid,
            actee_type=ActeeType.SPACE.value,
            actee_name=space.name,
            user_audit_info=user_audit_info,
            metadata={"request": request_attrs},
            space_guid=space.guid,
            organization_guid=space.organization_guid,
            linked_space_guid=space.guid,
        )


class DeploymentEventRepository:
    """Audit events for deployment actions. The actee is the owning app."""

    def __init__(self, session: AsyncSession):
        self.events = EventRepository(session)

    async def record_create(
        self,
        deployment: Deployment,
        app: App,
        user_audit_info: UserAuditInfo,
        request_attrs: Any,
    ) -> AuditEvent:
        return await self._record(
            EventType.APP_DEPLOYMENT_CREATE, deployment, app, user_audit_info, request_attrs
        )

    async def record_cancel(
        self,
        deployment: Deployment,
        app: App,
        user_audit_info: UserAuditInfo,
    ) -> AuditEvent:
        return await self._record(
            EventType.APP_DEPLOYMENT_CANCEL, deployment, app, user_audit_info, {}
        )

    async def _record(
        self,
        type: EventType,
        deployment: Deployment,
        app: App,
        user_audit_info: UserAuditInfo,
        request_attrs: Any,
    ) -> AuditEvent:
        return await self.events.create(
            type=type,
            actee=app.guid,
            actee_type=ActeeType.APP.value,
            actee_name=app.name,
            user_audit_info=user_audit_info,
            metadata={
                "deployment_guid": deployment.guid,
                "droplet_guid": deployment.droplet_guid,
                "request": request_attrs,
            },
            space_guid=app.space_guid,
            organization_guid=app.organization_guid,
            linked_space_guid=app.space_guid,
        )
