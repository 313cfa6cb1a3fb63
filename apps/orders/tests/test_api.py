import pytest
import uuid
from django.urls import reverse
from rest_framework import status
from apps.accounts.models import User, UserRole
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken


# =============================================================================
# List / Retrieve
# =============================================================================

@pytest.mark.django_db
class TestOrderList:
    """Tests for GET /api/orders/"""

    def test_operator_lists_orders_at_their_point(self, operator_client, order):
        response = operator_client.get(reverse('orders:order-list'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        assert response.data['results'][0]['order_number'] == order.order_number

    def test_supplier_lists_own_orders(self, supplier_client, order):
        response = supplier_client.get(reverse('orders:order-list'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['results'][0]['id'] == str(order.id)

    def test_other_supplier_sees_nothing(self, order):
        other = User.objects.create_user(
            email='other-supplier@example.com',
            password='TestPass123!',
            role=UserRole.SUPPLIER,
        )
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {RefreshToken.for_user(other).access_token}')

        response = client.get(reverse('orders:order-list'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 0

    def test_admin_filters_by_drop(self, admin_api_client, order):
        url = reverse('orders:order-list')

        assert admin_api_client.get(url, {'drop': str(order.drop_id)}).data['count'] == 1
        assert admin_api_client.get(url, {'drop': str(uuid.uuid4())}).data['count'] == 0

    def test_consumer_forbidden(self, consumer_client, order):
        response = consumer_client.get(reverse('orders:order-list'))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_unauthenticated(self, api_client):
        response = api_client.get(reverse('orders:order-list'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestOrderDetail:
    """Tests for GET /api/orders/{id}/"""

    def test_retrieve_with_items(self, operator_client, order):
        response = operator_client.get(reverse('orders:order-detail', args=[order.id]))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total_value'] == '700.00'
        assert response.data['commission_amount'] == '35.00'
        assert response.data['supplier_payout'] == '665.00'
        assert len(response.data['items']) == 2
        assert {item['pickup_status'] for item in response.data['items']} == {'pending'}

    def test_consumer_cannot_retrieve(self, consumer_client, order):
        response = consumer_client.get(reverse('orders:order-detail', args=[order.id]))

        assert response.status_code == status.HTTP_403_FORBIDDEN
