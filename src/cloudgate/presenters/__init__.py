"""Presenters - turn domain models into API response bodies."""

from cloudgate.presenters.audit_event import present_audit_event
from cloudgate.presenters.deployment import present_deployment, present_deployment_list
from cloudgate.presenters.metadata import hashify, hashified_annotations, hashified_labels
from cloudgate.presenters.url_builder import ApiUrlBuilder

__all__ = [
    "ApiUrlBuilder",
    "hashified_annotations",
    "hashified_labels",
    "hashify",
    "present_audit_event",
    "present_deployment",
    "present_deployment_list",
]
