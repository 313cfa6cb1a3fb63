import pytest
from django.urls import reverse
from rest_framework import status
from apps.reputation.services import record_return


@pytest.mark.django_db
class TestMyReputation:
    """Tests for GET /api/reputation/me/"""

    def test_defaults_for_new_user(self, consumer_client):
        response = consumer_client.get(reverse('reputation:me'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['rating'] == '5.00'
        assert response.data['loyalty_eligible'] is True

    def test_after_return(self, consumer_client, consumer, captured_reservation):
        record_return(user=consumer, reservation=captured_reservation)

        response = consumer_client.get(reverse('reputation:me'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['rating'] == '4.50'
        assert response.data['lifetime_returns_count'] == 1
        assert response.data['is_suspended'] is False
        assert response.data['loyalty_eligible'] is False

    def test_requires_authentication(self, api_client):
        response = api_client.get(reverse('reputation:me'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
