import pytest
from rest_framework.test import APIRequestFactory
from apps.reservations.permissions import IsReservationParticipant, IsPickupOperatorForReservation


def _request_for(user):
    request = APIRequestFactory().get('/')
    request.user = user
    return request


# =============================================================================
# IsReservationParticipant Tests
# =============================================================================

@pytest.mark.django_db
class TestIsReservationParticipant:
    """Tests for IsReservationParticipant permission class."""

    def test_owner_allowed(self, consumer, reservation):
        permission = IsReservationParticipant()
        assert permission.has_object_permission(_request_for(consumer), None, reservation) is True

    def test_other_consumer_denied(self, other_consumer, reservation):
        permission = IsReservationParticipant()
        assert permission.has_object_permission(_request_for(other_consumer), None, reservation) is False

    def test_operator_of_pickup_point_allowed(self, operator, reservation):
        permission = IsReservationParticipant()
        assert permission.has_object_permission(_request_for(operator), None, reservation) is True

    def test_operator_of_other_point_denied(self, other_operator, reservation):
        permission = IsReservationParticipant()
        assert permission.has_object_permission(_request_for(other_operator), None, reservation) is False

    def test_admin_allowed(self, marketplace_admin, reservation):
        permission = IsReservationParticipant()
        assert permission.has_object_permission(_request_for(marketplace_admin), None, reservation) is True


# =============================================================================
# IsPickupOperatorForReservation Tests
# =============================================================================

@pytest.mark.django_db
class TestIsPickupOperatorForReservation:
    """Tests for IsPickupOperatorForReservation permission class."""

    def test_consumer_denied(self, consumer, reservation):
        permission = IsPickupOperatorForReservation()
        assert permission.has_permission(_request_for(consumer), None) is False

    def test_operator_allowed(self, operator, reservation):
        permission = IsPickupOperatorForReservation()
        request = _request_for(operator)

        assert permission.has_permission(request, None) is True
        assert permission.has_object_permission(request, None, reservation) is True

    def test_operator_of_other_point_denied(self, other_operator, reservation):
        permission = IsPickupOperatorForReservation()
        request = _request_for(other_operator)

        assert permission.has_permission(request, None) is True
        assert permission.has_object_permission(request, None, reservation) is False

    def test_admin_allowed(self, marketplace_admin, reservation):
        permission = IsPickupOperatorForReservation()
        request = _request_for(marketplace_admin)

        assert permission.has_permission(request, None) is True
        assert permission.has_object_permission(request, None, reservation) is True
