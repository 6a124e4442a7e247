from rest_framework import permissions


class CanViewTransaction(permissions.BasePermission):
    """
    Permission: The buyer, members of the booth involved, or SAC.
    """
    message = 'You do not have access to this transaction.'

    def has_object_permission(self, request, view, obj):
        user = request.user
        if user.is_sac or obj.buyer_id == user.id:
            return True
        return obj.booth is not None and obj.booth.has_member(user)
