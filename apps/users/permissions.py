"""Role permission classes for guest and host API space."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore

from .models import Role


class HasRole(permissions.BasePermission):
    """Authenticated caller holding ``required_role``.

    The routing middleware already partitions the URL space; this keeps the
    views safe when mounted elsewhere.
    """

    required_role: Role

    def has_permission(self, request, view) -> bool:  # type: ignore
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user.has_role(self.required_role)


class IsGuest(HasRole):
    required_role = Role.GUEST


class IsHost(HasRole):
    required_role = Role.HOST
