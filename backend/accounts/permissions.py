from rest_framework import permissions

from .models import User


class IsAdmin(permissions.BasePermission):
    message = 'Admin access required.'

    def has_permission(self, request, view):
        return getattr(request.user, 'role', None) == User.ROLE_ADMIN


class IsManagerOrAdmin(permissions.BasePermission):
    message = 'Manager or Admin access required.'

    def has_permission(self, request, view):
        return getattr(request.user, 'role', None) in (User.ROLE_MANAGER, User.ROLE_ADMIN)
