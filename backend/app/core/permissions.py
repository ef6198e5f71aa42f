"""
Role-based access control for the admin dashboard.

Every user has exactly one role. Roles grant actions on resources; the
only resource the storefront guards today is the admin ``Dashboard``.
"""

from typing import Dict, FrozenSet

ROLE_USER = "user"
ROLE_ADMIN = "admin"

VALID_ROLES = (ROLE_USER, ROLE_ADMIN)

DASHBOARD = "Dashboard"

# resource -> actions that exist for it
STATEMENTS: Dict[str, FrozenSet[str]] = {
    DASHBOARD: frozenset({"create", "share", "update", "delete"}),
}

# role -> resource -> granted actions
ROLE_GRANTS: Dict[str, Dict[str, FrozenSet[str]]] = {
    ROLE_USER: {},
    ROLE_ADMIN: {
        DASHBOARD: frozenset({"create", "update", "delete", "share"}),
    },
}


def is_valid_role(role: str) -> bool:
    return role in VALID_ROLES


def has_permission(role: str, resource: str, action: str) -> bool:
    """
    Check whether a role may perform an action on a resource.

    Unknown roles, resources or actions are denied.

    Example:
        >>> has_permission("admin", "Dashboard", "delete")
        True
        >>> has_permission("user", "Dashboard", "create")
        False
    """
    if action not in STATEMENTS.get(resource, frozenset()):
        return False
    return action in ROLE_GRANTS.get(role, {}).get(resource, frozenset())
