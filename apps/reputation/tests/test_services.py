import pytest
from decimal import Decimal
from apps.drops.exceptions import (
    InvalidInputError,
    ReservationStateError,
    AlreadyProcessedError,
    UserSuspendedError,
)
from apps.notifications.models import Notification, NotificationKind
from apps.reputation.models import UserReputation
from apps.reputation.services import (
    get_reputation,
    is_user_suspended,
    record_return,
    record_pickup,
)
from apps.reservations.services import reserve


# =============================================================================
# Return Tests
# =============================================================================

@pytest.mark.django_db
class TestRecordReturn:
    """Tests for record_return()"""

    def test_new_user_starts_at_top_rating(self, consumer):
        reputation = get_reputation(consumer)

        assert reputation.rating == Decimal('5.00')
        assert reputation.lifetime_returns_count == 0
        assert reputation.loyalty_eligible

    def test_return_lowers_rating(self, consumer, captured_reservation):
        update = record_return(user=consumer, reservation=captured_reservation, reason=' Too big ')

        assert update.previous_rating == Decimal('5.00')
        assert update.rating == Decimal('4.50')
        assert update.lifetime_returns_count == 1
        assert update.is_suspended is False

        captured_reservation.refresh_from_db()
        assert captured_reservation.returned_at is not None
        assert captured_reservation.return_reason == 'Too big'
        assert not get_reputation(consumer).loyalty_eligible

    def test_double_return_rejected(self, consumer, captured_reservation):
        record_return(user=consumer, reservation=captured_reservation)

        with pytest.raises(AlreadyProcessedError):
            record_return(user=consumer, reservation=captured_reservation)

        assert get_reputation(consumer).lifetime_returns_count == 1

    def test_return_after_pickup_rejected(self, consumer, captured_reservation):
        record_pickup(reservation=captured_reservation)

        with pytest.raises(AlreadyProcessedError):
            record_return(user=consumer, reservation=captured_reservation)

    def test_uncaptured_reservation_rejected(self, active_drop, consumer, consumer_card, headphones, gateway):
        reservation = reserve(user=consumer, product=headphones, drop=active_drop)

        with pytest.raises(ReservationStateError):
            record_return(user=consumer, reservation=reservation)

    def test_someone_elses_reservation_rejected(self, other_consumer, captured_reservation):
        with pytest.raises(InvalidInputError):
            record_return(user=other_consumer, reservation=captured_reservation)

    def test_rating_floor(self, consumer, captured_reservation):
        UserReputation.objects.create(user=consumer, rating=Decimal('1.20'))

        update = record_return(user=consumer, reservation=captured_reservation)

        assert update.rating == Decimal('1.00')


@pytest.mark.django_db
class TestReturnsCeiling:
    """Reaching the returns ceiling suspends the account."""

    def test_reaching_ceiling_suspends(self, settings, consumer, captured_reservation):
        settings.REPUTATION = {**settings.REPUTATION, 'RETURN_CEILING': 1}

        update = record_return(user=consumer, reservation=captured_reservation)

        assert update.newly_suspended is True
        assert update.is_suspended is True
        assert is_user_suspended(consumer)
        reputation = get_reputation(consumer)
        assert reputation.suspended_at is not None
        assert Notification.objects.filter(
            user=consumer, kind=NotificationKind.ACCOUNT_SUSPENDED
        ).count() == 1

    def test_suspended_user_cannot_reserve(
        self, settings, consumer, captured_reservation, headphones
    ):
        settings.REPUTATION = {**settings.REPUTATION, 'RETURN_CEILING': 1}
        record_return(user=consumer, reservation=captured_reservation)

        with pytest.raises(UserSuspendedError):
            reserve(user=consumer, product=headphones, drop=captured_reservation.drop)

    def test_below_ceiling_not_suspended(self, consumer, captured_reservation):
        update = record_return(user=consumer, reservation=captured_reservation)

        assert update.newly_suspended is False
        assert not is_user_suspended(consumer)


# =============================================================================
# Pickup Tests
# =============================================================================

@pytest.mark.django_db
class TestRecordPickup:
    """Tests for record_pickup()"""

    def test_pickup(self, consumer, captured_reservation):
        reservation = record_pickup(reservation=captured_reservation)

        assert reservation.picked_up_at is not None
        reputation = get_reputation(consumer)
        assert reputation.orders_picked_up == 1
        assert reputation.rating == Decimal('5.00')

    def test_double_pickup_rejected(self, captured_reservation):
        record_pickup(reservation=captured_reservation)

        with pytest.raises(AlreadyProcessedError):
            record_pickup(reservation=captured_reservation)
