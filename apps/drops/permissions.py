"""
Custom permission classes for the drops app.

Drop management is an admin capability; everyone authenticated may browse.
"""
from rest_framework.permissions import BasePermission


class IsMarketplaceAdmin(BasePermission):
    """
    Allows access only to marketplace admins.

    Usage:
        def get_permissions(self):
            if self.action in ['create', 'transition']:
                return [IsAuthenticated(), IsMarketplaceAdmin()]
            return super().get_permissions()
    """

    message = 'Only marketplace admins can manage drops.'

    def has_permission(self, request, view):
        return bool(request.user and getattr(request.user, 'is_marketplace_admin', False))
