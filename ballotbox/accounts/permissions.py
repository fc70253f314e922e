from rest_framework import permissions

class IsAnonymousUser(permissions.BasePermission):
    """
    Only callers without a session or token may register a new voter
    """
    def has_permission(self, request, view):
        return not request.user.is_authenticated
