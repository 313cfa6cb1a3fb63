"""
Reputation service - pickups, returns and suspension.

Pickup points record what happens to captured reservations. A return
lowers the user's rating by a fixed step and counts towards the returns
ceiling; reaching the ceiling suspends the account from reserving.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from apps.drops.exceptions import (
    InvalidInputError,
    ReservationStateError,
    AlreadyProcessedError,
)
from apps.notifications.dispatcher import notify
from apps.notifications.models import NotificationKind
from apps.orders.models import PickupStatus
from apps.orders.services import update_pickup_status
from apps.reputation.models import UserReputation
from apps.reservations.models import Reservation, PaymentStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReputationUpdate:
    rating: Decimal
    previous_rating: Decimal
    lifetime_returns_count: int
    is_suspended: bool
    newly_suspended: bool


def _setting(name):
    return Decimal(str(settings.REPUTATION[name]))


def get_reputation(user) -> UserReputation:
    reputation, _ = UserReputation.objects.get_or_create(user=user)
    return reputation


def is_user_suspended(user) -> bool:
    """True when the user may not place new reservations."""
    return UserReputation.objects.filter(
        Q(is_suspended=True) | Q(lifetime_returns_count__gte=settings.REPUTATION['RETURN_CEILING']),
        user=user,
    ).exists()


def _lock_reservation(reservation):
    # Double-processing guard: every caller sees the latest pickup/return stamps
    return (
        Reservation.objects
        .select_for_update()
        .select_related('user')
        .get(id=reservation.id)
    )


def _ensure_collectable(reservation):
    if reservation.returned_at is not None:
        raise AlreadyProcessedError(f"Reservation {reservation.id} was already returned")
    if reservation.picked_up_at is not None:
        raise AlreadyProcessedError(f"Reservation {reservation.id} was already picked up")
    if reservation.payment_status != PaymentStatus.CAPTURED:
        raise ReservationStateError(
            f"Reservation {reservation.id} is {reservation.payment_status}, not captured"
        )


def record_return(*, user, reservation, reason: str = '') -> ReputationUpdate:
    """
    Record that ``user`` refused the item of ``reservation`` at pickup.

    Args:
        user: Owner of the reservation
        reservation: Captured, not yet collected reservation
        reason: Free-text return reason from the pickup point

    Returns:
        ReputationUpdate with the new rating and suspension state

    Raises:
        InvalidInputError: If the reservation belongs to someone else
        AlreadyProcessedError: If the item was already picked up or returned
        ReservationStateError: If the reservation was never captured
    """
    update = _apply_return(user, reservation, reason)
    if update.newly_suspended:
        notify(user.id, NotificationKind.ACCOUNT_SUSPENDED, {
            'lifetime_returns_count': update.lifetime_returns_count,
        })
    return update


@transaction.atomic
def _apply_return(user, reservation, reason) -> ReputationUpdate:
    reservation = _lock_reservation(reservation)
    if reservation.user_id != user.id:
        raise InvalidInputError("Reservation does not belong to this user")
    _ensure_collectable(reservation)

    now = timezone.now()
    reservation.returned_at = now
    reservation.return_reason = reason.strip()
    reservation.save(update_fields=['returned_at', 'return_reason', 'updated_at'])
    update_pickup_status(reservation, PickupStatus.RETURNED, now=now)

    get_reputation(user)
    reputation = UserReputation.objects.select_for_update().get(user=user)
    previous_rating = reputation.rating

    reputation.rating = max(_setting('MIN_RATING'), reputation.rating - _setting('RATING_STEP'))
    reputation.lifetime_returns_count += 1

    newly_suspended = (
        not reputation.is_suspended
        and reputation.lifetime_returns_count >= settings.REPUTATION['RETURN_CEILING']
    )
    if newly_suspended:
        reputation.is_suspended = True
        reputation.suspended_at = now
        reputation.suspended_reason = (
            f"Reached {reputation.lifetime_returns_count} returned items"
        )
    reputation.save()

    logger.info(
        "Return recorded for reservation %s: rating %s -> %s, returns %s",
        reservation.id, previous_rating, reputation.rating, reputation.lifetime_returns_count,
    )

    if newly_suspended:
        logger.warning("User %s suspended after %s returns", user.id, reputation.lifetime_returns_count)

    return ReputationUpdate(
        rating=reputation.rating,
        previous_rating=previous_rating,
        lifetime_returns_count=reputation.lifetime_returns_count,
        is_suspended=reputation.is_suspended,
        newly_suspended=newly_suspended,
    )


@transaction.atomic
def record_pickup(*, reservation) -> Reservation:
    """
    Record that the reserver collected the item.

    Raises:
        AlreadyProcessedError: If the item was already picked up or returned
        ReservationStateError: If the reservation was never captured
    """
    reservation = _lock_reservation(reservation)
    _ensure_collectable(reservation)

    reservation.picked_up_at = timezone.now()
    reservation.save(update_fields=['picked_up_at', 'updated_at'])
    update_pickup_status(reservation, PickupStatus.PICKED_UP, now=reservation.picked_up_at)

    get_reputation(reservation.user)
    reputation = UserReputation.objects.select_for_update().get(user=reservation.user)
    reputation.orders_picked_up += 1
    reputation.save(update_fields=['orders_picked_up', 'updated_at'])

    logger.info("Pickup recorded for reservation %s", reservation.id)
    return reservation
