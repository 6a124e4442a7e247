from rest_framework import permissions


class IsBoothMember(permissions.BasePermission):
    """
    Permission: User must have access to the booth (or be SAC).
    """
    message = 'You do not have access to this booth.'

    def has_object_permission(self, request, view, obj):
        # obj is a Booth instance
        return obj.can_sell(request.user)


class IsBoothManager(permissions.BasePermission):
    """
    Permission: User must be a booth manager (or SAC).
    """
    message = 'Only booth managers can do this.'

    def has_object_permission(self, request, view, obj):
        # obj is a Booth instance
        return obj.can_manage(request.user)
