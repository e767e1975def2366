"""Database repositories for CloudGate entities."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cloudgate.authz.visibility import filter_visible
from cloudgate.config import settings
from cloudgate.db.tables import (
    AppTable,
    DeploymentAnnotationTable,
    DeploymentLabelTable,
    DeploymentProcessTable,
    DeploymentTable,
    OrganizationTable,
    RoleMembershipTable,
    SpaceTable,
)
from cloudgate.engine.errors import ValidationFailed
from cloudgate.models import (
    App,
    Deployment,
    DeploymentProcess,
    DeploymentState,
    DeploymentStatusReason,
    DeploymentStatusValue,
    MetadataEntry,
    Organization,
    RoleMembership,
    Space,
    validate_app_name,
)
from cloudgate.presenters.metadata import parse_metadata_key
from cloudgate.utils.time import utc_now


class OrganizationRepository:
    """Repository for organization operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, name: str) -> Organization:
        """Create an organization. Names are globally unique."""
        now = utc_now()
        row = OrganizationTable(guid=str(uuid4()), name=name, created_at=now, updated_at=now)
        self.session.add(row)
        try:
            await self.session.flush()
        except IntegrityError:
            await self.session.rollback()
            raise ValidationFailed("Organization name must be unique")
        return self._row_to_model(row)

    async def get(self, guid: str) -> Organization | None:
        row = await self.session.get(OrganizationTable, guid)
        return self._row_to_model(row) if row else None

    def _row_to_model(self, row: OrganizationTable) -> Organization:
        return Organization(
            guid=row.guid,
            name=row.name,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


class SpaceRepository:
    """Repository for space operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, organization_guid: str, name: str) -> Space:
        """Create a space. Names are unique within an organization."""
        if await self._name_taken(organization_guid, name):
            raise ValidationFailed("name must be unique in organization")

        now = utc_now()
        row = SpaceTable(
            guid=str(uuid4()),
            name=name,
            organization_guid=organization_guid,
            created_at=now,
            updated_at=now,
        )
        self.session.add(row)
        try:
            await self.session.flush()
        except IntegrityError:
            # Lost a race against a concurrent create with the same name
            await self.session.rollback()
            raise ValidationFailed("name must be unique in organization")
        return self._row_to_model(row)

    async def get(self, guid: str) -> Space | None:
        row = await self.session.get(SpaceTable, guid, populate_existing=True)
        return self._row_to_model(row) if row else None

    async def rename(self, guid: str, name: str) -> Space | None:
        """
        Rename a space.

        Raises:
            ValidationFailed: If another space in the organization has the name
        """
        row = await self.session.get(SpaceTable, guid)
        if row is None:
            return None
        if await self._name_taken(row.organization_guid, name, exclude_guid=guid):
            raise ValidationFailed("name must be unique in organization")

        try:
            await self.session.execute(
                update(SpaceTable)
                .where(SpaceTable.guid == guid)
                .values(name=name, updated_at=utc_now())
            )
        except IntegrityError:
            await self.session.rollback()
            raise ValidationFailed("name must be unique in organization")
        row = await self.session.get(SpaceTable, guid, populate_existing=True)
        return self._row_to_model(row) if row else None

    async def delete(self, guid: str) -> bool:
        """Delete a space. Returns True if a row was removed."""
        result = await self.session.execute(delete(SpaceTable).where(SpaceTable.guid == guid))
        return result.rowcount > 0

    async def _name_taken(
        self, organization_guid: str, name: str, exclude_guid: str | None = None
    ) -> bool:
        query = select(func.count()).select_from(SpaceTable).where(
            SpaceTable.organization_guid == organization_guid,
            SpaceTable.name == name,
        )
        if exclude_guid:
            query = query.where(SpaceTable.guid != exclude_guid)
        result = await self.session.execute(query)
        return result.scalar_one() > 0

    def _row_to_model(self, row: SpaceTable) -> Space:
        return Space(
            guid=row.guid,
            name=row.name,
            organization_guid=row.organization_guid,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


class AppRepository:
    """Repository for app operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        space: Space,
        name: str,
        enable_ssh: bool | None = None,
        revisions_enabled: bool = True,
        droplet_guid: str | None = None,
    ) -> App:
        """
        Create an app.

        The name is stripped and checked for printable characters, then for
        case-insensitive uniqueness within the space. ``enable_ssh`` falls
        back to ``settings.default_app_ssh_access`` when not given.

        Raises:
            ValidationFailed: If the name is invalid or taken in the space
        """
        try:
            name = validate_app_name(name)
        except ValueError as e:
            raise ValidationFailed(str(e))

        if await self._name_taken(space.guid, name):
            raise ValidationFailed("name must be unique in space")

        if enable_ssh is None:
            enable_ssh = settings.default_app_ssh_access

        now = utc_now()
        row = AppTable(
            guid=str(uuid4()),
            name=name,
            space_guid=space.guid,
            revisions_enabled=revisions_enabled,
            enable_ssh=enable_ssh,
            droplet_guid=droplet_guid,
            created_at=now,
            updated_at=now,
        )
        self.session.add(row)
        try:
            await self.session.flush()
        except IntegrityError:
            # Lost a race against a concurrent create with the same name
            await self.session.rollback()
            raise ValidationFailed("name must be unique in space")

        return self._build(row, space.organization_guid)

    async def get(self, guid: str) -> App | None:
        result = await self.session.execute(
            select(AppTable)
            .where(AppTable.guid == guid)
            .options(selectinload(AppTable.space))
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return self._row_to_model(row) if row else None

    async def set_droplet(self, guid: str, droplet_guid: str | None) -> None:
        """Point the app at a new current droplet."""
        await self.session.execute(
            update(AppTable)
            .where(AppTable.guid == guid)
            .values(droplet_guid=droplet_guid, updated_at=utc_now())
        )

    async def _name_taken(self, space_guid: str, name: str) -> bool:
        result = await self.session.execute(
            select(func.count())
            .select_from(AppTable)
            .where(
                AppTable.space_guid == space_guid,
                func.lower(AppTable.name) == name.lower(),
            )
        )
        return result.scalar_one() > 0

    def _row_to_model(self, row: AppTable) -> App:
        return self._build(row, row.space.organization_guid)

    def _build(self, row: AppTable, organization_guid: str) -> App:
        return App(
            guid=row.guid,
            name=row.name,
            space_guid=row.space_guid,
            organization_guid=organization_guid,
            revisions_enabled=row.revisions_enabled,
            enable_ssh=row.enable_ssh,
            droplet_guid=row.droplet_guid,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


class RoleRepository:
    """Repository for role memberships."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, membership: RoleMembership) -> RoleMembership:
        """Grant a role. Granting an existing role is a no-op."""
        existing = await self.session.execute(
            select(RoleMembershipTable.id).where(
                RoleMembershipTable.user_guid == membership.user_guid,
                RoleMembershipTable.role == membership.role,
                RoleMembershipTable.space_guid == membership.space_guid,
                RoleMembershipTable.organization_guid == membership.organization_guid,
            )
        )
        if existing.scalar_one_or_none() is None:
            self.session.add(
                RoleMembershipTable(
                    user_guid=membership.user_guid,
                    role=membership.role,
                    space_guid=membership.space_guid,
                    organization_guid=membership.organization_guid,
                )
            )
            await self.session.flush()
        return membership

    async def list_for_user(self, user_guid: str) -> list[RoleMembership]:
        """All memberships held by a user, in grant order."""
        result = await self.session.execute(
            select(RoleMembershipTable)
            .where(RoleMembershipTable.user_guid == user_guid)
            .order_by(RoleMembershipTable.id)
        )
        return [
            RoleMembership(
                user_guid=row.user_guid,
                role=row.role,
                space_guid=row.space_guid,
                organization_guid=row.organization_guid,
            )
            for row in result.scalars().all()
        ]


class DeploymentRepository:
    """Repository for deployment operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        app: App,
        droplet_guid: str | None = None,
        previous_droplet_guid: str | None = None,
        revision_guid: str | None = None,
        revision_version: int | None = None,
        labels: dict[str, str | None] | None = None,
        annotations: dict[str, str | None] | None = None,
    ) -> Deployment:
        """Create a deployment in the DEPLOYING state."""
        now = utc_now()
        guid = str(uuid4())

        self.session.add(
            DeploymentTable(
                guid=guid,
                state=DeploymentState.DEPLOYING,
                status_value=DeploymentStatusValue.ACTIVE,
                status_reason=DeploymentStatusReason.DEPLOYING,
                droplet_guid=droplet_guid,
                previous_droplet_guid=previous_droplet_guid,
                revision_guid=revision_guid,
                revision_version=revision_version,
                app_guid=app.guid,
                created_at=now,
                updated_at=now,
            )
        )
        # Parent row first so the metadata FKs resolve
        await self.session.flush()

        for full_key, value in (labels or {}).items():
            prefix, name = parse_metadata_key(full_key)
            self.session.add(
                DeploymentLabelTable(
                    resource_guid=guid, key_prefix=prefix, key_name=name, value=value
                )
            )
        for full_key, value in (annotations or {}).items():
            prefix, name = parse_metadata_key(full_key)
            self.session.add(
                DeploymentAnnotationTable(
                    resource_guid=guid, key_prefix=prefix, key_name=name, value=value
                )
            )
        await self.session.flush()

        return await self.get(guid)

    async def get(self, guid: str) -> Deployment | None:
        """Get a deployment with all of its relations loaded."""
        result = await self.session.execute(
            self._select().where(DeploymentTable.guid == guid)
        )
        row = result.scalar_one_or_none()
        return self._row_to_model(row) if row else None

    async def list(
        self,
        app_guid: str | None = None,
        states: list[DeploymentState] | None = None,
        limit: int = 50,
        cursor: str | None = None,
    ) -> tuple[list[Deployment], str | None]:
        """List deployments, newest first, with optional filtering."""
        query = self._select()
        if app_guid:
            query = query.where(DeploymentTable.app_guid == app_guid)
        if states:
            query = query.where(DeploymentTable.state.in_(states))
        return await self._page(query, limit, cursor)

    async def list_for_user(
        self,
        user_guid: str,
        roles: RoleRepository | None = None,
        app_guid: str | None = None,
        states: list[DeploymentState] | None = None,
        limit: int = 50,
        cursor: str | None = None,
    ) -> tuple[list[Deployment], str | None]:
        """
        List the deployments a user may read.

        The query is narrowed to the user's spaces and organizations, then
        every candidate goes through the visibility predicate, which has the
        final say.
        """
        roles = roles or RoleRepository(self.session)
        memberships = await roles.list_for_user(user_guid)
        if not memberships:
            return [], None

        space_guids = {m.space_guid for m in memberships if m.space_guid}
        org_guids = {m.organization_guid for m in memberships if m.organization_guid}

        query = (
            self._select()
            .join(AppTable, AppTable.guid == DeploymentTable.app_guid)
            .join(SpaceTable, SpaceTable.guid == AppTable.space_guid)
            .where(
                or_(
                    SpaceTable.guid.in_(list(space_guids)),
                    SpaceTable.organization_guid.in_(list(org_guids)),
                )
            )
        )
        if app_guid:
            query = query.where(DeploymentTable.app_guid == app_guid)
        if states:
            query = query.where(DeploymentTable.state.in_(states))

        deployments, next_cursor = await self._page(query, limit, cursor)
        visible = filter_visible(memberships, deployments, lambda d: d.app.scope)
        return visible, next_cursor

    async def update_state(
        self,
        guid: str,
        state: DeploymentState,
        status_value: DeploymentStatusValue,
        status_reason: DeploymentStatusReason | None,
    ) -> Deployment | None:
        """Move a deployment to a new state/status."""
        await self.session.execute(
            update(DeploymentTable)
            .where(DeploymentTable.guid == guid)
            .values(
                state=state,
                status_value=status_value,
                status_reason=status_reason,
                updated_at=utc_now(),
            )
        )
        return await self.get(guid)

    async def mark_healthy(self, guid: str, at: datetime | None = None) -> None:
        """Record the last successful health check."""
        await self.session.execute(
            update(DeploymentTable)
            .where(DeploymentTable.guid == guid)
            .values(last_healthy_at=at or utc_now())
        )

    async def add_process(self, guid: str, process_guid: str, process_type: str) -> DeploymentProcess:
        """Append a historical process record. Existing records are never touched."""
        self.session.add(
            DeploymentProcessTable(
                deployment_guid=guid,
                process_guid=process_guid,
                process_type=process_type,
                created_at=utc_now(),
            )
        )
        await self.session.flush()
        return DeploymentProcess(process_guid=process_guid, process_type=process_type)

    def _select(self):
        return (
            select(DeploymentTable)
            .options(
                selectinload(DeploymentTable.app).selectinload(AppTable.space),
                selectinload(DeploymentTable.historical_related_processes),
                selectinload(DeploymentTable.labels),
                selectinload(DeploymentTable.annotations),
            )
            .execution_options(populate_existing=True)
        )

    async def _page(self, query, limit: int, cursor: str | None) -> tuple[list[Deployment], str | None]:
        # Cursor-based pagination
        if cursor:
            cursor_time = datetime.fromisoformat(cursor)
            query = query.where(DeploymentTable.created_at < cursor_time)

        query = query.order_by(DeploymentTable.created_at.desc()).limit(limit + 1)

        result = await self.session.execute(query)
        rows = list(result.scalars().all())

        next_cursor = None
        if len(rows) > limit:
            rows = rows[:limit]
            next_cursor = rows[-1].created_at.isoformat()

        return [self._row_to_model(r) for r in rows], next_cursor

    def _row_to_model(self, row: DeploymentTable) -> Deployment:
        """Convert database row (with loaded relations) to model."""
        app = None
        if row.app is not None:
            app = AppRepository(self.session)._row_to_model(row.app)

        return Deployment(
            guid=row.guid,
            state=row.state,
            status_value=row.status_value,
            status_reason=row.status_reason,
            last_healthy_at=row.last_healthy_at,
            strategy=row.strategy,
            droplet_guid=row.droplet_guid,
            previous_droplet_guid=row.previous_droplet_guid,
            revision_guid=row.revision_guid,
            revision_version=row.revision_version,
            app_guid=row.app_guid,
            created_at=row.created_at,
            updated_at=row.updated_at,
            app=app,
            historical_related_processes=[
                DeploymentProcess(process_guid=p.process_guid, process_type=p.process_type)
                for p in row.historical_related_processes
            ],
            labels=[self._metadata_entry(m) for m in row.labels],
            annotations=[self._metadata_entry(m) for m in row.annotations],
        )

    def _metadata_entry(self, row: Any) -> MetadataEntry:
        return MetadataEntry(key_prefix=row.key_prefix, key_name=row.key_name, value=row.value)
