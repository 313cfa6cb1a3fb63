"""
Custom permission classes for the reservations app.

Owners see and cancel their reservations; pickup point operators handle
the reservations collected at their point; admins can do both.
"""
from rest_framework.permissions import BasePermission


class IsReservationParticipant(BasePermission):
    """
    Permission to view a reservation.

    Allows access if the user owns it, staffs its pickup point or is an
    admin.
    """

    message = 'You do not have access to this reservation.'

    def has_object_permission(self, request, view, obj):
        user = request.user
        if obj.user_id == user.id or user.is_marketplace_admin:
            return True
        return user.is_pickup_operator and user.pickup_point_id == obj.pickup_point_id


class IsPickupOperatorForReservation(BasePermission):
    """
    Permission to record pickups and returns.

    Allows operators of the reservation's pickup point and admins.

    Usage:
        def get_permissions(self):
            if self.action in ['pickup', 'record_return']:
                return [IsAuthenticated(), IsPickupOperatorForReservation()]
            return super().get_permissions()
    """

    message = 'Only staff of this pickup point can record pickups and returns.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and (user.is_marketplace_admin or user.is_pickup_operator))

    def has_object_permission(self, request, view, obj):
        user = request.user
        if user.is_marketplace_admin:
            return True
        return user.pickup_point_id is not None and user.pickup_point_id == obj.pickup_point_id
