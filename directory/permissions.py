"""Role checks shared by every gated operation."""

from __future__ import annotations

from rest_framework import permissions

from .models import Role

ROLE_LADDER: tuple[Role, ...] = (
    Role.USER,
    Role.RESEARCHER,
    Role.REVIEWER,
    Role.EDITOR,
    Role.ADMIN,
    Role.SUPER_ADMIN,
)


def authorize(required_role: str, current_role: str | None) -> bool:
    """Return True when ``current_role`` ranks at or above ``required_role``."""
    if not current_role:
        return False
    try:
        current = ROLE_LADDER.index(Role(current_role))
        required = ROLE_LADDER.index(Role(required_role))
    except ValueError:
        return False
    return current >= required


def role_of(user) -> str | None:
    if user is None or not user.is_authenticated or not user.is_active:
        return None
    return user.role


class RolePermission(permissions.BasePermission):
    required_role: str = Role.ADMIN
    message = "You don't have permission to perform this action."

    def has_permission(self, request, view):
        return authorize(self.required_role, role_of(request.user))


class IsOperator(RolePermission):
    required_role = Role.ADMIN


class IsSuperAdmin(RolePermission):
    required_role = Role.SUPER_ADMIN
    message = "You don't have permission to access this page."


class IsOperatorOrReadOnly(IsOperator):
    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        return super().has_permission(request, view)
