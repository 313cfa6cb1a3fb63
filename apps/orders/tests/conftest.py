import pytest
from apps.drops.services import DropAction, transition
from apps.orders.models import Order
from apps.reservations.services import reserve


@pytest.fixture
def settled_drop(active_drop, consumer, consumer_card, other_consumer, other_card,
                 headphones, speaker, marketplace_admin, gateway):
    """Funded drop completed at 30%: headphones 280.00 and speaker 420.00 captured."""
    early = reserve(user=consumer, product=headphones, drop=active_drop)
    late = reserve(user=other_consumer, product=speaker, drop=active_drop)
    drop = transition(active_drop, DropAction.COMPLETE, marketplace_admin)
    early.refresh_from_db()
    late.refresh_from_db()
    return drop, early, late


@pytest.fixture
def order(settled_drop):
    """The single order written for ``settled_drop``."""
    drop, _, _ = settled_drop
    return Order.objects.get(drop=drop)
