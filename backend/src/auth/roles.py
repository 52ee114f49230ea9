"""User roles and permission hierarchy.

Role Hierarchy (descending permissions):
- ADMIN: Everything an editor can do (reserved for org administration)
- EDITOR: Create documents, replace content, manage attachments and entitlement
- VIEWER: Read documents the organization has access to, poll transactions

Permission Matrix:
┌──────────────────────────┬───────┬────────┬────────┐
│ Action                   │ ADMIN │ EDITOR │ VIEWER │
├──────────────────────────┼───────┼────────┼────────┤
│ Create / delete document │   ✓   │   ✓    │        │
│ Update content/entitle.  │   ✓   │   ✓    │        │
│ Manage attachments       │   ✓   │   ✓    │        │
│ Read documents           │   ✓   │   ✓    │   ✓    │
│ Poll transactions        │   ✓   │   ✓    │   ✓    │
└──────────────────────────┴───────┴────────┴────────┘

Roles gate what a user may do; which documents an organization may see is
decided separately by the access resolver.
"""

from enum import Enum
from typing import Set


class UserRole(str, Enum):
    """User roles carried in the token's role claim."""
    ADMIN = "ADMIN"
    EDITOR = "EDITOR"
    VIEWER = "VIEWER"


# Role hierarchy: Each role includes permissions of all roles below it
ROLE_HIERARCHY = {
    UserRole.ADMIN: {UserRole.ADMIN, UserRole.EDITOR, UserRole.VIEWER},
    UserRole.EDITOR: {UserRole.EDITOR, UserRole.VIEWER},
    UserRole.VIEWER: {UserRole.VIEWER},
}


def has_permission(user_role: UserRole, required_role: UserRole) -> bool:
    """Check if a user role satisfies a required role.

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.EDITOR)
        True
        >>> has_permission(UserRole.VIEWER, UserRole.EDITOR)
        False
    """
    return required_role in ROLE_HIERARCHY.get(user_role, set())


def get_allowed_roles(required_role: UserRole) -> Set[UserRole]:
    """Get all roles that satisfy a required role.

    Example:
        >>> sorted(r.value for r in get_allowed_roles(UserRole.EDITOR))
        ['ADMIN', 'EDITOR']
    """
    return {role for role, permissions in ROLE_HIERARCHY.items() if required_role in permissions}
