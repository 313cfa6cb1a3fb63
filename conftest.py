import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.catalog.models import PickupPoint, SupplierList, Product
from apps.drops.services import create_drop, transition, DropAction
from apps.payments.gateway import get_gateway
from apps.payments.models import PaymentMethod, CardBrand
from apps.reservations.services import reserve


def _client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


# =============================================================================
# Users
# =============================================================================

@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def consumer(db):
    """Create and return a reserving user."""
    return User.objects.create_user(
        email='consumer@example.com',
        password='TestPass123!',
        display_name='Consumer',
    )


@pytest.fixture
def other_consumer(db):
    """Create and return a second reserving user."""
    return User.objects.create_user(
        email='other@example.com',
        password='TestPass123!',
        display_name='Other Consumer',
    )


@pytest.fixture
def marketplace_admin(db):
    """Create and return a marketplace admin."""
    return User.objects.create_user(
        email='admin@example.com',
        password='TestPass123!',
        display_name='Admin',
        role=UserRole.ADMIN,
    )


@pytest.fixture
def supplier(db):
    """Create and return the supplying user."""
    return User.objects.create_user(
        email='supplier@example.com',
        password='TestPass123!',
        display_name='Supplier',
        role=UserRole.SUPPLIER,
    )


@pytest.fixture
def operator(db, pickup_point):
    """Create and return a user staffing ``pickup_point``."""
    return User.objects.create_user(
        email='operator@example.com',
        password='TestPass123!',
        display_name='Pickup Operator',
        role=UserRole.PICKUP_POINT,
        pickup_point=pickup_point,
    )


@pytest.fixture
def consumer_client(consumer):
    """Return API client authenticated as consumer."""
    return _client_for(consumer)


@pytest.fixture
def other_client(other_consumer):
    """Return API client authenticated as the other consumer."""
    return _client_for(other_consumer)


@pytest.fixture
def admin_api_client(marketplace_admin):
    """Return API client authenticated as marketplace admin."""
    return _client_for(marketplace_admin)


@pytest.fixture
def operator_client(operator):
    """Return API client authenticated as pickup point operator."""
    return _client_for(operator)


@pytest.fixture
def supplier_client(supplier):
    """Return API client authenticated as the supplier."""
    return _client_for(supplier)


# =============================================================================
# Catalog
# =============================================================================

@pytest.fixture
def pickup_point(db):
    """Create and return an active pickup point."""
    return PickupPoint.objects.create(
        name='Central Station',
        city='Prague',
        address='Wilsonova 8',
    )


@pytest.fixture
def other_pickup_point(db):
    """Create and return a second pickup point."""
    return PickupPoint.objects.create(name='Riverside', city='Brno')


@pytest.fixture
def supplier_list(db, supplier):
    """Supplier list discounting 10% to 30%, funded at 500, capped at 1000."""
    return SupplierList.objects.create(
        supplier=supplier,
        name='Winter Electronics',
        min_discount=Decimal('10.00'),
        max_discount=Decimal('30.00'),
        min_reservation_value=Decimal('500.00'),
        max_reservation_value=Decimal('1000.00'),
    )


@pytest.fixture
def headphones(db, supplier_list):
    """Product priced at 400.00."""
    return Product.objects.create(
        supplier_list=supplier_list,
        name='Headphones',
        original_price=Decimal('400.00'),
        stock=10,
    )


@pytest.fixture
def speaker(db, supplier_list):
    """Product priced at 600.00."""
    return Product.objects.create(
        supplier_list=supplier_list,
        name='Speaker',
        original_price=Decimal('600.00'),
        stock=10,
    )


@pytest.fixture
def cable(db, supplier_list):
    """Cheap product priced at 100.00 with a single unit."""
    return Product.objects.create(
        supplier_list=supplier_list,
        name='Cable',
        original_price=Decimal('100.00'),
        stock=1,
    )


# =============================================================================
# Payments
# =============================================================================

@pytest.fixture
def gateway():
    """Fresh simulated gateway shared with code calling get_gateway()."""
    get_gateway.cache_clear()
    yield get_gateway()
    get_gateway.cache_clear()


@pytest.fixture
def make_payment_method(db):
    """Factory for saved cards; ``ref`` picks the simulated outcome."""
    def _make(user, ref='pm_card_visa', is_default=True, **kwargs):
        kwargs.setdefault('exp_month', 12)
        kwargs.setdefault('exp_year', 2099)
        return PaymentMethod.objects.create(
            user=user,
            processor_ref=ref,
            brand=CardBrand.VISA,
            last4='4242',
            is_default=is_default,
            **kwargs,
        )
    return _make


@pytest.fixture
def consumer_card(make_payment_method, consumer):
    """Default card of the consumer."""
    return make_payment_method(consumer)


@pytest.fixture
def other_card(make_payment_method, other_consumer):
    """Default card of the other consumer."""
    return make_payment_method(other_consumer)


# =============================================================================
# Drops
# =============================================================================

@pytest.fixture
def pending_drop(db, pickup_point, supplier_list, marketplace_admin):
    """Drop awaiting approval with a target of 1000.00."""
    return create_drop(
        name='Winter Drop',
        pickup_point=pickup_point,
        supplier_list=supplier_list,
        target_value=Decimal('1000.00'),
        created_by=marketplace_admin,
    )


@pytest.fixture
def active_drop(pending_drop, marketplace_admin, gateway):
    """Approved and activated drop accepting reservations."""
    drop = transition(pending_drop, DropAction.APPROVE, marketplace_admin)
    return transition(drop, DropAction.ACTIVATE, marketplace_admin)


@pytest.fixture
def captured_reservation(active_drop, consumer, consumer_card, headphones, marketplace_admin, gateway):
    """Headphones reserved by the consumer in a drop that has settled."""
    reservation = reserve(user=consumer, product=headphones, drop=active_drop)
    transition(active_drop, DropAction.COMPLETE, marketplace_admin)
    reservation.refresh_from_db()
    return reservation
