from rest_framework import permissions

from .models import is_admin


class IsInstructor(permissions.BasePermission):
    """Allow instructors (admin profiles) only."""

    message = "Only instructors may do this."

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and is_admin(request.user))
