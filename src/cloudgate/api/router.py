"""REST API router."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from cloudgate.api.deps import get_db_session, get_user_audit_info, verify_api_key
from cloudgate.api.schemas import (
    AppResponse,
    CreateAppRequest,
    CreateDeploymentRequest,
    CreateOrganizationRequest,
    CreateSpaceRequest,
    HealthResponse,
    ListResponse,
    OrganizationResponse,
    SpaceResponse,
    UpdateSpaceRequest,
)
from cloudgate.engine import (
    CloudGateError,
    InvalidStateTransition,
    ResourceNotFound,
    UnauthorizedError,
    ValidationFailed,
)
from cloudgate.engine.core import ControllerEngine
from cloudgate.models import UserAuditInfo

API_VERSION = "0.1.0"

router = APIRouter(prefix="/v3", dependencies=[Depends(verify_api_key)])


def _to_http(e: CloudGateError) -> HTTPException:
    """Map engine errors to HTTP errors."""
    if isinstance(e, ResourceNotFound):
        return HTTPException(status_code=404, detail=e.message)
    if isinstance(e, UnauthorizedError):
        return HTTPException(status_code=403, detail=e.message)
    if isinstance(e, (InvalidStateTransition, ValidationFailed)):
        return HTTPException(status_code=422, detail=e.message)
    return HTTPException(status_code=500, detail=e.message)


# ============================================================================
# Health
# ============================================================================


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=API_VERSION)


# ============================================================================
# Organizations & spaces
# ============================================================================


@router.post("/organizations", response_model=OrganizationResponse, status_code=201)
async def create_organization(
    request: CreateOrganizationRequest,
    session: AsyncSession = Depends(get_db_session),
):
    """Create an organization."""
    engine = ControllerEngine(session)
    try:
        org = await engine.create_organization(request.name)
    except CloudGateError as e:
        raise _to_http(e)
    return OrganizationResponse(**org.model_dump())


@router.post("/spaces", response_model=SpaceResponse, status_code=201)
async def create_space(
    request: CreateSpaceRequest,
    session: AsyncSession = Depends(get_db_session),
    user: UserAuditInfo = Depends(get_user_audit_info),
):
    """Create a space."""
    engine = ControllerEngine(session)
    try:
        space = await engine.create_space(
            organization_guid=request.relationships.organization.guid,
            name=request.name,
            user_audit_info=user,
            request_attrs=request.model_dump(),
        )
    except CloudGateError as e:
        raise _to_http(e)
    return SpaceResponse(**space.model_dump())


@router.patch("/spaces/{space_guid}", response_model=SpaceResponse)
async def update_space(
    space_guid: str,
    request: UpdateSpaceRequest,
    session: AsyncSession = Depends(get_db_session),
    user: UserAuditInfo = Depends(get_user_audit_info),
):
    """Rename a space."""
    engine = ControllerEngine(session)
    try:
        space = await engine.update_space(
            space_guid=space_guid,
            name=request.name,
            user_audit_info=user,
            request_attrs=request.model_dump(),
        )
    except CloudGateError as e:
        raise _to_http(e)
    return SpaceResponse(**space.model_dump())


@router.delete("/spaces/{space_guid}", status_code=202)
async def delete_space(
    space_guid: str,
    recursive: bool = Query(False),
    session: AsyncSession = Depends(get_db_session),
    user: UserAuditInfo = Depends(get_user_audit_info),
):
    """Delete a space, recording a delete-request audit event."""
    engine = ControllerEngine(session)
    try:
        await engine.delete_space(space_guid, user, recursive=recursive)
    except CloudGateError as e:
        raise _to_http(e)
    return Response(status_code=202)


# ============================================================================
# Apps
# ============================================================================


@router.post("/apps", response_model=AppResponse, status_code=201)
async def create_app(
    request: CreateAppRequest,
    session: AsyncSession = Depends(get_db_session),
    user: UserAuditInfo = Depends(get_user_audit_info),
):
    """Create an app."""
    engine = ControllerEngine(session)
    try:
        app = await engine.create_app(
            space_guid=request.relationships.space.guid,
            name=request.name,
            user_audit_info=user,
            enable_ssh=request.enable_ssh,
            revisions_enabled=request.revisions_enabled,
            droplet_guid=request.droplet_guid,
        )
    except CloudGateError as e:
        raise _to_http(e)
    return AppResponse(**app.model_dump())


# ============================================================================
# Deployments
# ============================================================================


@router.post("/deployments", status_code=201)
async def create_deployment(
    request: CreateDeploymentRequest,
    session: AsyncSession = Depends(get_db_session),
    user: UserAuditInfo = Depends(get_user_audit_info),
):
    """Start a deployment."""
    engine = ControllerEngine(session)
    revision = request.revision or {}
    try:
        return await engine.create_deployment(
            app_guid=request.relationships.app.guid,
            user_audit_info=user,
            droplet_guid=(request.droplet or {}).get("guid"),
            revision_guid=revision.get("guid"),
            revision_version=revision.get("version"),
            labels=request.metadata.labels,
            annotations=request.metadata.annotations,
            request_attrs=request.model_dump(exclude_none=True),
        )
    except CloudGateError as e:
        raise _to_http(e)


@router.get("/deployments", response_model=ListResponse)
async def list_deployments(
    app_guids: Optional[str] = Query(None),
    states: Optional[str] = Query(None, description="Comma-separated states"),
    limit: Optional[int] = Query(None, ge=1, le=200),
    cursor: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_db_session),
    user: UserAuditInfo = Depends(get_user_audit_info),
):
    """List deployments visible to the user."""
    engine = ControllerEngine(session)
    state_list = [s.strip() for s in states.split(",")] if states else None
    if cursor:
        try:
            datetime.fromisoformat(cursor)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid cursor: {cursor}")
    try:
        result = await engine.list_deployments(
            user_guid=user.user_guid,
            app_guid=app_guids,
            states=state_list,
            limit=limit,
            cursor=cursor,
        )
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid states filter: {states}")
    return ListResponse(**result)


@router.get("/deployments/{deployment_guid}")
async def get_deployment(
    deployment_guid: str,
    session: AsyncSession = Depends(get_db_session),
    user: UserAuditInfo = Depends(get_user_audit_info),
):
    """Get a deployment."""
    engine = ControllerEngine(session)
    try:
        return await engine.get_deployment(user.user_guid, deployment_guid)
    except CloudGateError as e:
        raise _to_http(e)


@router.post("/deployments/{deployment_guid}/actions/cancel")
async def cancel_deployment(
    deployment_guid: str,
    session: AsyncSession = Depends(get_db_session),
    user: UserAuditInfo = Depends(get_user_audit_info),
):
    """Cancel a deployment."""
    engine = ControllerEngine(session)
    try:
        return await engine.cancel_deployment(deployment_guid, user)
    except CloudGateError as e:
        raise _to_http(e)


# ============================================================================
# Audit events
# ============================================================================


@router.get("/audit_events", response_model=ListResponse)
async def list_audit_events(
    target_guids: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=200),
    cursor: Optional[int] = Query(None),
    session: AsyncSession = Depends(get_db_session),
    user: UserAuditInfo = Depends(get_user_audit_info),
):
    """List audit events visible to the user."""
    engine = ControllerEngine(session)
    result = await engine.list_events(
        user_guid=user.user_guid,
        actee=target_guids,
        limit=limit,
        cursor=cursor,
    )
    return ListResponse(**result)
