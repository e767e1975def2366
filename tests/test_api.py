"""
HTTP API tests: the /v3 surface end to end through the ASGI app.
"""

import pytest

from cloudgate.db.repositories import RoleRepository, SpaceRepository
from cloudgate.models import RoleMembership, RoleType

DEV_HEADERS = {"X-User-ID": "user-dev", "X-User-Email": "dev@example.com", "X-User-Name": "dev"}
STRANGER_HEADERS = {"X-User-ID": "user-stranger"}


async def bootstrap(client, session) -> dict:
    """Create org, space and app over HTTP; user-dev manages the org and develops in the space."""
    org = (await client.post("/v3/organizations", json={"name": "acme"})).json()
    await RoleRepository(session).add(
        RoleMembership(
            user_guid="user-dev", role=RoleType.ORGANIZATION_MANAGER, organization_guid=org["guid"]
        )
    )
    space = (
        await client.post(
            "/v3/spaces",
            json={
                "name": "payments-dev",
                "relationships": {"organization": {"data": {"guid": org["guid"]}}},
            },
            headers=DEV_HEADERS,
        )
    ).json()
    await RoleRepository(session).add(
        RoleMembership(user_guid="user-dev", role=RoleType.SPACE_DEVELOPER, space_guid=space["guid"])
    )
    app = (
        await client.post(
            "/v3/apps",
            json={
                "name": "checkout",
                "relationships": {"space": {"data": {"guid": space["guid"]}}},
                "droplet_guid": "droplet-1",
            },
            headers=DEV_HEADERS,
        )
    ).json()
    return {"org": org, "space": space, "app": app}


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/v3/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_deployment_flow(client, session):
    world = await bootstrap(client, session)
    app_guid = world["app"]["guid"]

    response = await client.post(
        "/v3/deployments",
        json={
            "relationships": {"app": {"data": {"guid": app_guid}}},
            "droplet": {"guid": "droplet-2"},
            "metadata": {"labels": {"team": "payments"}},
        },
        headers=DEV_HEADERS,
    )
    assert response.status_code == 201, response.text
    deployment = response.json()
    assert deployment["state"] == "DEPLOYING"
    assert deployment["metadata"] == {"labels": {"team": "payments"}, "annotations": {}}
    assert deployment["relationships"]["app"]["data"]["guid"] == app_guid
    assert deployment["created_at"].endswith("Z")

    fetched = await client.get(f"/v3/deployments/{deployment['guid']}", headers=DEV_HEADERS)
    assert fetched.status_code == 200
    assert fetched.json()["guid"] == deployment["guid"]

    listed = await client.get("/v3/deployments", params={"app_guids": app_guid}, headers=DEV_HEADERS)
    assert [r["guid"] for r in listed.json()["resources"]] == [deployment["guid"]]

    canceled = await client.post(
        f"/v3/deployments/{deployment['guid']}/actions/cancel", headers=DEV_HEADERS
    )
    assert canceled.status_code == 200
    assert canceled.json()["state"] == "CANCELING"

    again = await client.post(
        f"/v3/deployments/{deployment['guid']}/actions/cancel", headers=DEV_HEADERS
    )
    assert again.status_code == 422


@pytest.mark.asyncio
async def test_other_users_get_404(client, session):
    world = await bootstrap(client, session)
    response = await client.post(
        "/v3/deployments",
        json={"relationships": {"app": {"data": {"guid": world["app"]["guid"]}}}},
        headers=DEV_HEADERS,
    )
    guid = response.json()["guid"]

    fetched = await client.get(f"/v3/deployments/{guid}", headers=STRANGER_HEADERS)
    listed = await client.get("/v3/deployments", headers=STRANGER_HEADERS)

    assert fetched.status_code == 404
    assert listed.status_code == 200
    assert listed.json()["resources"] == []


@pytest.mark.asyncio
async def test_auditor_gets_403_on_deploy(client, session):
    world = await bootstrap(client, session)
    await RoleRepository(session).add(
        RoleMembership(
            user_guid="user-auditor",
            role=RoleType.SPACE_AUDITOR,
            space_guid=world["space"]["guid"],
        )
    )

    response = await client.post(
        "/v3/deployments",
        json={"relationships": {"app": {"data": {"guid": world["app"]["guid"]}}}},
        headers={"X-User-ID": "user-auditor"},
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_missing_user_header_is_401(client):
    response = await client.get("/v3/deployments")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_invalid_state_filter_is_400(client, session):
    await bootstrap(client, session)

    response = await client.get("/v3/deployments", params={"states": "EXPLODED"}, headers=DEV_HEADERS)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_invalid_app_name_is_422(client, session):
    world = await bootstrap(client, session)

    response = await client.post(
        "/v3/apps",
        json={
            "name": "bad\nname",
            "relationships": {"space": {"data": {"guid": world["space"]["guid"]}}},
        },
        headers=DEV_HEADERS,
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_duplicate_app_name_is_422(client, session):
    world = await bootstrap(client, session)

    response = await client.post(
        "/v3/apps",
        json={
            "name": "CHECKOUT",
            "relationships": {"space": {"data": {"guid": world["space"]["guid"]}}},
        },
        headers=DEV_HEADERS,
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_space_lifecycle_and_audit_events(client, session):
    world = await bootstrap(client, session)
    space_guid = world["space"]["guid"]

    renamed = await client.patch(
        f"/v3/spaces/{space_guid}", json={"name": "payments"}, headers=DEV_HEADERS
    )
    assert renamed.status_code == 200
    assert renamed.json()["name"] == "payments"

    refused = await client.delete(f"/v3/spaces/{space_guid}", headers=DEV_HEADERS)
    assert refused.status_code == 422

    events = await client.get(
        "/v3/audit_events", params={"target_guids": space_guid}, headers=DEV_HEADERS
    )
    assert events.status_code == 200
    types = [e["type"] for e in events.json()["resources"]]
    assert types == ["audit.space.update", "audit.space.create"]
    created = events.json()["resources"][-1]
    assert created["actor"] == {"guid": "user-dev", "type": "user", "name": "dev@example.com"}
    assert created["target"]["name"] == "payments-dev"

    deleted = await client.delete(
        f"/v3/spaces/{space_guid}", params={"recursive": "true"}, headers=DEV_HEADERS
    )
    assert deleted.status_code == 202


@pytest.mark.asyncio
async def test_missing_relationship_guid_is_422(client):
    response = await client.post(
        "/v3/spaces",
        json={"name": "x", "relationships": {"organization": {"data": {}}}},
        headers=DEV_HEADERS,
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_unknown_org_is_404(client):
    response = await client.post(
        "/v3/spaces",
        json={"name": "x", "relationships": {"organization": {"data": {"guid": "nope"}}}},
        headers=DEV_HEADERS,
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_rename_space_to_taken_name_is_422(client, session):
    world = await bootstrap(client, session)
    other = await client.post(
        "/v3/spaces",
        json={
            "name": "payments-prod",
            "relationships": {"organization": {"data": {"guid": world["org"]["guid"]}}},
        },
        headers=DEV_HEADERS,
    )
    assert other.status_code == 201, other.text

    response = await client.patch(
        f"/v3/spaces/{other.json()['guid']}", json={"name": "payments-dev"}, headers=DEV_HEADERS
    )

    assert response.status_code == 422
    assert "unique" in response.json()["detail"]


@pytest.mark.asyncio
async def test_stranger_cannot_touch_space(client, session):
    world = await bootstrap(client, session)
    space_guid = world["space"]["guid"]

    deleted = await client.delete(
        f"/v3/spaces/{space_guid}", params={"recursive": "true"}, headers=STRANGER_HEADERS
    )
    renamed = await client.patch(
        f"/v3/spaces/{space_guid}", json={"name": "mine"}, headers=STRANGER_HEADERS
    )
    app = await client.post(
        "/v3/apps",
        json={"name": "intruder", "relationships": {"space": {"data": {"guid": space_guid}}}},
        headers=STRANGER_HEADERS,
    )

    assert deleted.status_code == 404
    assert renamed.status_code == 404
    assert app.status_code == 404
    assert (await SpaceRepository(session).get(space_guid)).name == "payments-dev"


@pytest.mark.asyncio
async def test_space_developer_cannot_delete_space(client, session):
    world = await bootstrap(client, session)
    space_guid = world["space"]["guid"]
    await RoleRepository(session).add(
        RoleMembership(user_guid="user-coder", role=RoleType.SPACE_DEVELOPER, space_guid=space_guid)
    )

    response = await client.delete(
        f"/v3/spaces/{space_guid}", params={"recursive": "true"}, headers={"X-User-ID": "user-coder"}
    )

    assert response.status_code == 403
    assert await SpaceRepository(session).get(space_guid) is not None


@pytest.mark.asyncio
async def test_invalid_cursor_is_400(client, session):
    await bootstrap(client, session)

    response = await client.get("/v3/deployments", params={"cursor": "not-a-date"}, headers=DEV_HEADERS)

    assert response.status_code == 400
    assert "Invalid cursor" in response.json()["detail"]
