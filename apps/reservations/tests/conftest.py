import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.reservations.services import reserve


@pytest.fixture
def reservation(active_drop, consumer, consumer_card, headphones, gateway):
    """Authorized headphones reservation of the consumer."""
    return reserve(user=consumer, product=headphones, drop=active_drop)


@pytest.fixture
def other_operator(db, other_pickup_point):
    """Operator of a pickup point the drop does not use."""
    return User.objects.create_user(
        email='riverside@example.com',
        password='TestPass123!',
        role=UserRole.PICKUP_POINT,
        pickup_point=other_pickup_point,
    )


@pytest.fixture
def other_operator_client(other_operator):
    """Return API client authenticated as the other point's operator."""
    client = APIClient()
    refresh = RefreshToken.for_user(other_operator)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client
