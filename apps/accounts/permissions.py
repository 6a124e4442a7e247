from rest_framework import permissions


class IsSACMember(permissions.BasePermission):
    """
    Permission: User must hold the SAC role.
    """
    message = 'SAC access required.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_sac)


class CanLookupStudents(permissions.BasePermission):
    """
    Permission: SAC staff or anyone staffing at least one booth.
    """
    message = 'Booth or SAC access required.'

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        return user.is_sac or user.booth_memberships.exists()
