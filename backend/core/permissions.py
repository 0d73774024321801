from rest_framework.permissions import BasePermission, SAFE_METHODS


class IsAdminRoleOrReadOnly(BasePermission):
    """Any signed-in user can read; writes need role 'admin' or a superuser"""
    message = 'Only admins can manage users.'

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        if request.method in SAFE_METHODS:
            return True
        return user.is_admin
