"""Deployment presenter - domain object to API representation."""

from typing import Any, Iterable

from cloudgate.engine.errors import MissingRelationError
from cloudgate.models import App, Deployment
from cloudgate.presenters.metadata import hashified_annotations, hashified_labels
from cloudgate.presenters.url_builder import ApiUrlBuilder
from cloudgate.utils.time import to_iso8601


def _owning_app(deployment: Deployment) -> App:
    if deployment.app is None:
        raise MissingRelationError(f"Deployment {deployment.guid}", "app")
    return deployment.app


def _revision(deployment: Deployment, app: App) -> dict[str, Any] | None:
    if app.revisions_enabled and deployment.revision_guid:
        return {
            "guid": deployment.revision_guid,
            "version": deployment.revision_version,
        }
    return None


def _new_processes(deployment: Deployment) -> list[dict[str, str]]:
    return [
        {"guid": process.process_guid, "type": process.process_type}
        for process in deployment.historical_related_processes
    ]


def _links(deployment: Deployment, app: App, url_builder: ApiUrlBuilder) -> dict[str, Any]:
    return {
        "self": {"href": url_builder.build_url(f"/v3/deployments/{deployment.guid}")},
        "app": {"href": url_builder.build_url(f"/v3/apps/{app.guid}")},
    }


def present_deployment(
    deployment: Deployment,
    url_builder: ApiUrlBuilder | None = None,
) -> dict[str, Any]:
    """
    Render a deployment for the API.

    The key set is the same for every deployment. ``revision`` is always
    present but None unless the owning app has revisions enabled and the
    deployment references a revision.

    Raises:
        MissingRelationError: If the owning app was not loaded
    """
    app = _owning_app(deployment)
    url_builder = url_builder or ApiUrlBuilder()

    return {
        "guid": deployment.guid,
        "state": deployment.state.value,
        "status": {
            "value": deployment.status_value.value,
            "reason": deployment.status_reason.value if deployment.status_reason else None,
            "details": {
                "last_successful_healthcheck": to_iso8601(deployment.last_healthy_at),
            },
        },
        "strategy": deployment.strategy.value,
        "droplet": {"guid": deployment.droplet_guid},
        "previous_droplet": {"guid": deployment.previous_droplet_guid},
        "new_processes": _new_processes(deployment),
        "created_at": to_iso8601(deployment.created_at),
        "updated_at": to_iso8601(deployment.updated_at),
        "relationships": {
            "app": {"data": {"guid": app.guid}},
        },
        "metadata": {
            "labels": hashified_labels(deployment.labels),
            "annotations": hashified_annotations(deployment.annotations),
        },
        "links": _links(deployment, app, url_builder),
        "revision": _revision(deployment, app),
    }


def present_deployment_list(
    deployments: Iterable[Deployment],
    url_builder: ApiUrlBuilder | None = None,
    next_cursor: str | None = None,
) -> dict[str, Any]:
    """Render a page of deployments with a link to the next page."""
    url_builder = url_builder or ApiUrlBuilder()
    next_link = None
    if next_cursor:
        next_link = {"href": url_builder.build_url("/v3/deployments", {"cursor": next_cursor})}

    return {
        "pagination": {"next": next_link},
        "resources": [present_deployment(d, url_builder) for d in deployments],
    }
