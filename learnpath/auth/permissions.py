"""Role-based access control for LearnPath.

Hierarchical roles:
- ADMIN (level 2): Full access, including deletion of courses and enrollments
- STAFF (level 1): Authors and manages own courses
- STUDENT (level 0): Enrolls in published courses and consumes content
"""

from enum import Enum


class UserRole(str, Enum):
    """User roles with hierarchical levels.

    Higher level = more permissions.
    """

    STUDENT = "student"
    STAFF = "staff"
    ADMIN = "admin"


ROLE_HIERARCHY: dict[UserRole, int] = {
    UserRole.STUDENT: 0,
    UserRole.STAFF: 1,
    UserRole.ADMIN: 2,
}


def get_role_level(role: UserRole | str) -> int:
    """Get the permission level for a role.

    Unknown roles get the lowest level.
    """
    if isinstance(role, str):
        try:
            role = UserRole(role)
        except ValueError:
            return 0
    return ROLE_HIERARCHY.get(role, 0)


def has_permission(user_role: UserRole | str, required_role: UserRole | str) -> bool:
    """Check if user has at least the required permission level.

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.STAFF)
        True
        >>> has_permission(UserRole.STUDENT, UserRole.STAFF)
        False
        >>> has_permission("admin", "student")
        True
    """
    return get_role_level(user_role) >= get_role_level(required_role)


def is_admin(role: UserRole | str) -> bool:
    return get_role_level(role) >= ROLE_HIERARCHY[UserRole.ADMIN]


def is_staff(role: UserRole | str) -> bool:
    """Check if role is STAFF or ADMIN."""
    return has_permission(role, UserRole.STAFF)
