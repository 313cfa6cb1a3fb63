import pytest
from django.urls import reverse
from rest_framework import status


# =============================================================================
# Token Tests
# =============================================================================

@pytest.mark.django_db
class TestToken:
    """Tests for POST /api/auth/token/"""

    def test_obtain_token(self, api_client, consumer):
        url = reverse('users:token-obtain')
        response = api_client.post(url, {'email': 'consumer@example.com', 'password': 'TestPass123!'})

        assert response.status_code == status.HTTP_200_OK
        assert 'access' in response.data
        assert 'refresh' in response.data

    def test_wrong_password(self, api_client, consumer):
        url = reverse('users:token-obtain')
        response = api_client.post(url, {'email': 'consumer@example.com', 'password': 'WrongPass!'})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_refresh_token(self, api_client, consumer):
        tokens = api_client.post(
            reverse('users:token-obtain'),
            {'email': 'consumer@example.com', 'password': 'TestPass123!'},
        ).data

        response = api_client.post(reverse('users:token-refresh'), {'refresh': tokens['refresh']})

        assert response.status_code == status.HTTP_200_OK
        assert 'access' in response.data


# =============================================================================
# Current User Tests
# =============================================================================

@pytest.mark.django_db
class TestCurrentUser:
    """Tests for GET /api/auth/user/"""

    def test_get_current_user(self, consumer_client, consumer):
        response = consumer_client.get(reverse('users:current-user'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['email'] == consumer.email
        assert response.data['role'] == 'consumer'
        assert response.data['pickup_point'] is None

    def test_operator_profile_has_pickup_point(self, operator_client, pickup_point):
        response = operator_client.get(reverse('users:current-user'))

        assert response.data['role'] == 'pickup_point'
        assert response.data['pickup_point'] == pickup_point.id

    def test_unauthenticated(self, api_client):
        response = api_client.get(reverse('users:current-user'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestHealthCheck:
    """Tests for GET /api/health/"""

    def test_health(self, client):
        response = client.get(reverse('health-check'))

        assert response.status_code == 200
        assert response.json() == {'status': 'ok', 'database': 'ok'}
