"""Authorization helpers."""

from cloudgate.authz.visibility import (
    READ_GRANTS,
    can_read,
    filter_visible,
    is_organization_manager,
    is_space_auditor,
    is_space_developer,
    is_space_manager,
)

__all__ = [
    "READ_GRANTS",
    "can_read",
    "filter_visible",
    "is_organization_manager",
    "is_space_auditor",
    "is_space_developer",
    "is_space_manager",
]
