"""
Repository tests: app naming rules, deployment relations and per-user listing.
"""

import pytest

from cloudgate.config import settings
from cloudgate.db.repositories import (
    AppRepository,
    DeploymentRepository,
    OrganizationRepository,
    RoleRepository,
    SpaceRepository,
)
from cloudgate.engine.errors import ValidationFailed
from cloudgate.models import DeploymentState, DeploymentStatusReason, DeploymentStatusValue
from cloudgate.models import RoleMembership, RoleType


# ============================================================================
# Apps
# ============================================================================


@pytest.mark.asyncio
async def test_app_name_is_stripped(session, space):
    app = await AppRepository(session).create(space, "  checkout  ")

    assert app.name == "checkout"


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["a\\b", "пример", "my app (v2)!", "emoji-☃"])
async def test_app_name_allows_printable_characters(session, space, name):
    app = await AppRepository(session).create(space, name)

    assert app.name == name


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["", "   ", "line\nbreak", "esc\x1b[0m", "tab\tname"])
async def test_app_name_rejects_empty_and_control_characters(session, space, name):
    with pytest.raises(ValidationFailed):
        await AppRepository(session).create(space, name)


@pytest.mark.asyncio
async def test_app_name_unique_case_insensitive_in_space(session, space):
    apps = AppRepository(session)
    await apps.create(space, "Checkout")

    with pytest.raises(ValidationFailed, match="unique"):
        await apps.create(space, "checkout")


@pytest.mark.asyncio
async def test_same_app_name_in_other_space(session, org, space):
    other = await SpaceRepository(session).create(org.guid, "other")
    apps = AppRepository(session)

    await apps.create(space, "checkout")
    app = await apps.create(other, "checkout")

    assert app.space_guid == other.guid


@pytest.mark.asyncio
async def test_enable_ssh_defaults_from_settings(session, space, monkeypatch):
    apps = AppRepository(session)

    monkeypatch.setattr(settings, "default_app_ssh_access", False)
    off = await apps.create(space, "no-ssh")
    monkeypatch.setattr(settings, "default_app_ssh_access", True)
    on = await apps.create(space, "with-ssh")
    explicit = await apps.create(space, "explicit", enable_ssh=False)

    assert off.enable_ssh is False
    assert on.enable_ssh is True
    assert explicit.enable_ssh is False


@pytest.mark.asyncio
async def test_app_carries_org_scope(session, org, app_model):
    loaded = await AppRepository(session).get(app_model.guid)

    assert loaded.organization_guid == org.guid
    assert loaded.scope.space_guid == app_model.space_guid


# ============================================================================
# Spaces
# ============================================================================


@pytest.mark.asyncio
async def test_space_name_unique_in_org(session, org, space):
    with pytest.raises(ValidationFailed):
        await SpaceRepository(session).create(org.guid, space.name)


@pytest.mark.asyncio
async def test_rename_and_delete_space(session, space):
    spaces = SpaceRepository(session)

    renamed = await spaces.rename(space.guid, "payments-prod")
    assert renamed.name == "payments-prod"

    assert await spaces.delete(space.guid) is True
    assert await spaces.delete(space.guid) is False


@pytest.mark.asyncio
async def test_rename_space_to_taken_name(session, org, space):
    spaces = SpaceRepository(session)
    other = await spaces.create(org.guid, "other")

    with pytest.raises(ValidationFailed, match="unique"):
        await spaces.rename(other.guid, space.name)

    assert (await spaces.rename(other.guid, "other")).name == "other"
    assert await spaces.rename("no-such-space", "x") is None


# ============================================================================
# Roles
# ============================================================================


@pytest.mark.asyncio
async def test_role_add_is_idempotent(session, space):
    roles = RoleRepository(session)
    membership = RoleMembership(
        user_guid="user-1", role=RoleType.SPACE_AUDITOR, space_guid=space.guid
    )

    await roles.add(membership)
    await roles.add(membership)

    assert await roles.list_for_user("user-1") == [membership]
    assert await roles.list_for_user("nobody") == []


# ============================================================================
# Deployments
# ============================================================================


@pytest.mark.asyncio
async def test_create_deployment_with_metadata(session, app_model):
    deployment = await DeploymentRepository(session).create(
        app=app_model,
        droplet_guid="droplet-2",
        previous_droplet_guid="droplet-1",
        labels={"team": "payments", "example.com/tier": "web"},
        annotations={"note": "first"},
    )

    assert deployment.state == DeploymentState.DEPLOYING
    assert deployment.status_value == DeploymentStatusValue.ACTIVE
    assert deployment.status_reason == DeploymentStatusReason.DEPLOYING
    assert deployment.app.guid == app_model.guid
    assert {(m.key_prefix, m.key_name, m.value) for m in deployment.labels} == {
        (None, "team", "payments"),
        ("example.com", "tier", "web"),
    }
    assert [(m.key_name, m.value) for m in deployment.annotations] == [("note", "first")]


@pytest.mark.asyncio
async def test_processes_are_append_only_and_ordered(session, app_model):
    deployments = DeploymentRepository(session)
    deployment = await deployments.create(app=app_model, droplet_guid="droplet-1")

    for i in range(3):
        await deployments.add_process(deployment.guid, f"proc-{i}", "web")

    loaded = await deployments.get(deployment.guid)
    assert [p.process_guid for p in loaded.historical_related_processes] == [
        "proc-0",
        "proc-1",
        "proc-2",
    ]


@pytest.mark.asyncio
async def test_update_state_and_mark_healthy(session, app_model):
    deployments = DeploymentRepository(session)
    deployment = await deployments.create(app=app_model, droplet_guid="droplet-1")

    await deployments.mark_healthy(deployment.guid)
    updated = await deployments.update_state(
        deployment.guid,
        DeploymentState.DEPLOYED,
        DeploymentStatusValue.FINALIZED,
        DeploymentStatusReason.DEPLOYED,
    )

    assert updated.state == DeploymentState.DEPLOYED
    assert updated.status_value == DeploymentStatusValue.FINALIZED
    assert updated.last_healthy_at is not None


@pytest.mark.asyncio
async def test_list_filters_by_state(session, app_model):
    deployments = DeploymentRepository(session)
    first = await deployments.create(app=app_model, droplet_guid="droplet-1")
    await deployments.create(app=app_model, droplet_guid="droplet-2")
    await deployments.update_state(
        first.guid,
        DeploymentState.CANCELED,
        DeploymentStatusValue.FINALIZED,
        DeploymentStatusReason.CANCELED,
    )

    canceled, _ = await deployments.list(states=[DeploymentState.CANCELED])
    everything, _ = await deployments.list(app_guid=app_model.guid)

    assert [d.guid for d in canceled] == [first.guid]
    assert len(everything) == 2


@pytest.mark.asyncio
async def test_list_for_user_applies_visibility(session, org, space, app_model):
    other_org = await OrganizationRepository(session).create("globex")
    other_space = await SpaceRepository(session).create(other_org.guid, "hidden")
    hidden_app = await AppRepository(session).create(other_space, "secret")

    deployments = DeploymentRepository(session)
    visible = await deployments.create(app=app_model, droplet_guid="droplet-1")
    await deployments.create(app=hidden_app, droplet_guid="droplet-x")

    roles = RoleRepository(session)
    await roles.add(
        RoleMembership(
            user_guid="manager",
            role=RoleType.ORGANIZATION_MANAGER,
            organization_guid=org.guid,
        )
    )

    seen, _ = await deployments.list_for_user("manager", roles=roles)
    nothing, cursor = await deployments.list_for_user("stranger", roles=roles)

    assert [d.guid for d in seen] == [visible.guid]
    assert nothing == []
    assert cursor is None
