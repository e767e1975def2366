"""
Read-time visibility filtering.

A user can read a resource when ANY of these grants holds for the
resource's space (or that space's organization):

- space developer
- space auditor
- space manager
- organization manager

Each grant is its own predicate. ``can_read`` evaluates every one of them
and ORs the results, so no grant can mask another.
"""

from typing import Callable, Iterable, Protocol, TypeVar

from cloudgate.models import ResourceScope, RoleMembership, RoleType


class HasGuid(Protocol):
    guid: str


R = TypeVar("R", bound=HasGuid)

Grant = Callable[[Iterable[RoleMembership], ResourceScope], bool]


def _has_space_role(
    roles: Iterable[RoleMembership], role: RoleType, scope: ResourceScope
) -> bool:
    if scope.space_guid is None:
        return False
    return any(m.role == role and m.space_guid == scope.space_guid for m in roles)


def is_space_developer(roles: Iterable[RoleMembership], scope: ResourceScope) -> bool:
    return _has_space_role(roles, RoleType.SPACE_DEVELOPER, scope)


def is_space_auditor(roles: Iterable[RoleMembership], scope: ResourceScope) -> bool:
    return _has_space_role(roles, RoleType.SPACE_AUDITOR, scope)


def is_space_manager(roles: Iterable[RoleMembership], scope: ResourceScope) -> bool:
    return _has_space_role(roles, RoleType.SPACE_MANAGER, scope)


def is_organization_manager(roles: Iterable[RoleMembership], scope: ResourceScope) -> bool:
    return any(
        m.role == RoleType.ORGANIZATION_MANAGER
        and m.organization_guid == scope.organization_guid
        for m in roles
    )


READ_GRANTS: tuple[Grant, ...] = (
    is_space_developer,
    is_space_auditor,
    is_space_manager,
    is_organization_manager,
)


def can_read(roles: Iterable[RoleMembership], scope: ResourceScope) -> bool:
    """Return True if any read grant holds for ``scope``."""
    roles = list(roles)
    results = [grant(roles, scope) for grant in READ_GRANTS]
    return any(results)


def filter_visible(
    roles: Iterable[RoleMembership],
    resources: Iterable[R],
    scope_of: Callable[[R], ResourceScope],
) -> list[R]:
    """
    Keep the resources the user may read.

    Input order is preserved and a guid seen twice is only kept once. A user
    with no memberships gets an empty list.
    """
    roles = list(roles)
    if not roles:
        return []

    visible: list[R] = []
    seen: set[str] = set()
    for resource in resources:
        if resource.guid in seen:
            continue
        if can_read(roles, scope_of(resource)):
            seen.add(resource.guid)
            visible.append(resource)
    return visible
