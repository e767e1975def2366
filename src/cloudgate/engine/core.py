"""CloudGate core engine - canonical operations."""

import logging
from typing import Any
from uuid import uuid4

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cloudgate.authz.visibility import can_read, is_organization_manager, is_space_developer
from cloudgate.config import settings
from cloudgate.db.events import DeploymentEventRepository, EventRepository, SpaceEventRepository
from cloudgate.db.repositories import (
    AppRepository,
    DeploymentRepository,
    OrganizationRepository,
    RoleRepository,
    SpaceRepository,
)
from cloudgate.db.tables import AppTable
from cloudgate.engine.errors import (
    AppNotFound,
    DeploymentNotFound,
    InvalidStateTransition,
    OrganizationNotFound,
    SpaceNotFound,
    UnauthorizedError,
    ValidationFailed,
)
from cloudgate.models import (
    App,
    DeploymentState,
    DeploymentStatusReason,
    DeploymentStatusValue,
    Organization,
    ResourceScope,
    RoleMembership,
    Space,
    UserAuditInfo,
)
from cloudgate.presenters import (
    ApiUrlBuilder,
    present_audit_event,
    present_deployment,
    present_deployment_list,
)

logger = logging.getLogger(__name__)

WEB_PROCESS_TYPE = "web"


class ControllerEngine:
    """
    Core engine implementing canonical CloudGate operations.

    Every operation runs inside the caller's session transaction: a
    mutation and the audit event it records commit or roll back together.
    """

    def __init__(self, session: AsyncSession, url_builder: ApiUrlBuilder | None = None):
        self.session = session
        self.url_builder = url_builder or ApiUrlBuilder()
        self.organizations = OrganizationRepository(session)
        self.spaces = SpaceRepository(session)
        self.apps = AppRepository(session)
        self.deployments = DeploymentRepository(session)
        self.roles = RoleRepository(session)
        self.events = EventRepository(session)
        self.space_events = SpaceEventRepository(session)
        self.deployment_events = DeploymentEventRepository(session)

    # ------------------------------------------------------------------
    # Organizations & spaces
    # ------------------------------------------------------------------

    async def create_organization(self, name: str) -> Organization:
        org = await self.organizations.create(name)
        logger.info(f"Created organization {org.guid} ({org.name})")
        return org

    async def create_space(
        self,
        organization_guid: str,
        name: str,
        user_audit_info: UserAuditInfo,
        request_attrs: dict[str, Any],
    ) -> Space:
        """Create a space and record audit.space.create. Org managers only."""
        org = await self.organizations.get(organization_guid)
        if not org:
            raise OrganizationNotFound(organization_guid)

        roles = await self.roles.list_for_user(user_audit_info.user_guid)
        self._require_org_manager(roles, org.scope)

        space = await self.spaces.create(organization_guid, name)
        await self.space_events.record_space_create(space, user_audit_info, request_attrs)

        logger.info(f"Created space {space.guid} in org {organization_guid}")
        return space

    async def update_space(
        self,
        space_guid: str,
        name: str,
        user_audit_info: UserAuditInfo,
        request_attrs: dict[str, Any],
    ) -> Space:
        """Rename a space and record audit.space.update. Org managers only."""
        roles = await self.roles.list_for_user(user_audit_info.user_guid)
        space = await self._get_readable_space(space_guid, roles)
        self._require_org_manager(roles, space.scope)

        space = await self.spaces.rename(space_guid, name)
        await self.space_events.record_space_update(space, user_audit_info, request_attrs)
        return space

    async def delete_space(
        self,
        space_guid: str,
        user_audit_info: UserAuditInfo,
        recursive: bool = False,
    ) -> None:
        """
        Record audit.space.delete-request, then delete the space.

        Org managers only. A space that still has apps is only deleted when
        ``recursive`` is set.
        """
        roles = await self.roles.list_for_user(user_audit_info.user_guid)
        space = await self._get_readable_space(space_guid, roles)
        self._require_org_manager(roles, space.scope)

        if not recursive and await self._count_apps(space_guid) > 0:
            raise ValidationFailed(
                f"Space '{space.name}' is not empty; delete its apps or pass recursive=true"
            )

        await self.space_events.record_space_delete_request(space, user_audit_info, recursive)
        await self.spaces.delete(space_guid)
        logger.info(f"Deleted space {space_guid} (recursive={recursive})")

    # ------------------------------------------------------------------
    # Apps
    # ------------------------------------------------------------------

    async def create_app(
        self,
        space_guid: str,
        name: str,
        user_audit_info: UserAuditInfo,
        enable_ssh: bool | None = None,
        revisions_enabled: bool = True,
        droplet_guid: str | None = None,
    ) -> App:
        """Create an app. Space developers only."""
        roles = await self.roles.list_for_user(user_audit_info.user_guid)
        space = await self._get_readable_space(space_guid, roles)
        self._require_developer(roles, space.scope)

        app = await self.apps.create(
            space=space,
            name=name,
            enable_ssh=enable_ssh,
            revisions_enabled=revisions_enabled,
            droplet_guid=droplet_guid,
        )
        logger.info(f"Created app {app.guid} ({app.name}) in space {space_guid}")
        return app

    # ------------------------------------------------------------------
    # Deployments
    # ------------------------------------------------------------------

    async def create_deployment(
        self,
        app_guid: str,
        user_audit_info: UserAuditInfo,
        droplet_guid: str | None = None,
        revision_guid: str | None = None,
        revision_version: int | None = None,
        labels: dict[str, str | None] | None = None,
        annotations: dict[str, str | None] | None = None,
        request_attrs: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Start a rolling deployment of an app.

        The app's current droplet becomes ``previous_droplet``; the new
        droplet (or the current one, when none is given) becomes current. A
        new web process is recorded against the deployment.
        """
        roles = await self.roles.list_for_user(user_audit_info.user_guid)
        app = await self._get_readable_app(app_guid, roles)
        self._require_developer(roles, app.scope)

        target_droplet = droplet_guid or app.droplet_guid
        if not target_droplet:
            raise ValidationFailed("App has no droplet to deploy")

        deployment = await self.deployments.create(
            app=app,
            droplet_guid=target_droplet,
            previous_droplet_guid=app.droplet_guid,
            revision_guid=revision_guid,
            revision_version=revision_version,
            labels=labels,
            annotations=annotations,
        )
        await self.apps.set_droplet(app.guid, target_droplet)
        await self.deployments.add_process(deployment.guid, str(uuid4()), WEB_PROCESS_TYPE)

        await self.deployment_events.record_create(
            deployment, app, user_audit_info, request_attrs or {}
        )

        logger.info(
            f"Deployment {deployment.guid} started for app {app.guid} "
            f"(droplet {app.droplet_guid} -> {target_droplet})"
        )
        deployment = await self.deployments.get(deployment.guid)
        return present_deployment(deployment, self.url_builder)

    async def cancel_deployment(
        self,
        deployment_guid: str,
        user_audit_info: UserAuditInfo,
    ) -> dict[str, Any]:
        """
        Cancel a deployment that is still DEPLOYING.

        The app is pointed back at the previous droplet.
        """
        roles = await self.roles.list_for_user(user_audit_info.user_guid)
        deployment = await self.deployments.get(deployment_guid)
        if not deployment or not can_read(roles, deployment.app.scope):
            raise DeploymentNotFound(deployment_guid)
        self._require_developer(roles, deployment.app.scope)

        if deployment.state != DeploymentState.DEPLOYING:
            raise InvalidStateTransition(
                deployment.state.value, DeploymentState.CANCELING.value
            )

        deployment = await self.deployments.update_state(
            deployment_guid,
            DeploymentState.CANCELING,
            DeploymentStatusValue.ACTIVE,
            DeploymentStatusReason.CANCELING,
        )
        await self.apps.set_droplet(deployment.app_guid, deployment.previous_droplet_guid)
        await self.deployment_events.record_cancel(deployment, deployment.app, user_audit_info)

        logger.info(f"Deployment {deployment_guid} canceling")
        deployment = await self.deployments.get(deployment_guid)
        return present_deployment(deployment, self.url_builder)

    async def get_deployment(self, user_guid: str, deployment_guid: str) -> dict[str, Any]:
        """Get a presented deployment. Invisible deployments are not found."""
        roles = await self.roles.list_for_user(user_guid)
        deployment = await self.deployments.get(deployment_guid)
        if not deployment or not can_read(roles, deployment.app.scope):
            raise DeploymentNotFound(deployment_guid)
        return present_deployment(deployment, self.url_builder)

    async def list_deployments(
        self,
        user_guid: str,
        app_guid: str | None = None,
        states: list[str] | None = None,
        limit: int | None = None,
        cursor: str | None = None,
    ) -> dict[str, Any]:
        """List the deployments a user can see, presented."""
        limit = min(limit or settings.default_list_limit, settings.max_list_limit)
        deployment_states = [DeploymentState(s) for s in states] if states else None

        deployments, next_cursor = await self.deployments.list_for_user(
            user_guid,
            roles=self.roles,
            app_guid=app_guid,
            states=deployment_states,
            limit=limit,
            cursor=cursor,
        )
        return present_deployment_list(deployments, self.url_builder, next_cursor)

    # ------------------------------------------------------------------
    # Audit events
    # ------------------------------------------------------------------

    async def list_events(
        self,
        user_guid: str,
        actee: str | None = None,
        limit: int | None = None,
        cursor: int | None = None,
    ) -> dict[str, Any]:
        """List audit events in the spaces and organizations a user can read."""
        limit = min(limit or settings.default_list_limit, settings.max_list_limit)
        roles = await self.roles.list_for_user(user_guid)
        if not roles:
            return {"pagination": {"next": None}, "resources": []}

        events, next_cursor = await self.events.list(
            actee=actee,
            space_guids={m.space_guid for m in roles if m.space_guid},
            organization_guids={m.organization_guid for m in roles if m.organization_guid},
            limit=limit,
            cursor=cursor,
        )
        next_link = None
        if next_cursor:
            next_link = {
                "href": self.url_builder.build_url("/v3/audit_events", {"cursor": str(next_cursor)})
            }
        return {
            "pagination": {"next": next_link},
            "resources": [present_audit_event(e) for e in events],
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_readable_app(self, app_guid: str, roles: list[RoleMembership]) -> App:
        app = await self.apps.get(app_guid)
        if not app or not can_read(roles, app.scope):
            raise AppNotFound(app_guid)
        return app

    async def _get_readable_space(self, space_guid: str, roles: list[RoleMembership]) -> Space:
        space = await self.spaces.get(space_guid)
        if not space or not can_read(roles, space.scope):
            raise SpaceNotFound(space_guid)
        return space

    def _require_developer(self, roles: list[RoleMembership], scope: ResourceScope) -> None:
        if not is_space_developer(roles, scope):
            raise UnauthorizedError("You are not authorized to perform the requested action")

    def _require_org_manager(self, roles: list[RoleMembership], scope: ResourceScope) -> None:
        if not is_organization_manager(roles, scope):
            raise UnauthorizedError("You are not authorized to perform the requested action")

    async def _count_apps(self, space_guid: str) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(AppTable).where(AppTable.space_guid == space_guid)
        )
        return result.scalar_one()
