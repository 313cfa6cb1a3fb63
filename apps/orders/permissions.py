"""
Custom permission classes for the orders app.

Orders are visible to the staff who handle them: admins, the operators
of the order's pickup point and the supplying user.
"""
from rest_framework.permissions import BasePermission

from apps.accounts.models import UserRole


class CanViewOrders(BasePermission):
    """Denies consumers; everyone else is scoped by the queryset."""

    message = 'Only suppliers, pickup point staff and admins can view orders.'

    def has_permission(self, request, view):
        user = request.user
        return bool(
            user and user.is_authenticated
            and (user.is_marketplace_admin or user.is_pickup_operator or user.role == UserRole.SUPPLIER)
        )
