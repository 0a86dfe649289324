"""
Role-based permissions.

Each resource family declares which roles may read and which may write.
Superusers always pass.
"""
from rest_framework import permissions

from apps.authz.models import RoleChoices

ALL_ROLES = frozenset(RoleChoices.values)
CLINICAL_ROLES = frozenset({RoleChoices.ADMIN, RoleChoices.TEACHER, RoleChoices.STUDENT})


class RoleBasedPermission(permissions.BasePermission):
    """
    Grant access when the user holds one of the roles allowed for the
    request method: `read_roles` for safe methods, `write_roles` otherwise.
    """
    read_roles = frozenset()
    write_roles = frozenset()

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if user.is_superuser:
            return True

        allowed = self.read_roles if request.method in permissions.SAFE_METHODS else self.write_roles
        return bool(user.role_names() & allowed)


class IsAdmin(RoleBasedPermission):
    read_roles = frozenset({RoleChoices.ADMIN})
    write_roles = frozenset({RoleChoices.ADMIN})


class StaffDirectoryPermission(RoleBasedPermission):
    """Every role can look up staff; only admins manage accounts."""
    read_roles = ALL_ROLES
    write_roles = frozenset({RoleChoices.ADMIN})
