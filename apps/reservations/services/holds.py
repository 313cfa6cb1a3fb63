"""
Authorization hold release.

Shared by user cancellation and by drops that end without settlement
(cancelled or expired). Releasing a hold refunds the reservation and puts
the unit back in stock.
"""

import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.catalog.models import Product
from apps.drops.exceptions import ReleaseFailedError
from apps.payments.gateway import get_gateway
from apps.reservations.models import (
    Reservation,
    PaymentStatus,
    ReconciliationRecord,
    ReconciliationKind,
)

logger = logging.getLogger(__name__)


def release_key(reservation) -> str:
    return f'release-{reservation.id}'


def release_hold(reservation: Reservation, *, gateway=None, now=None) -> Reservation:
    """
    Release one reservation's hold, refund it and restock the product.

    Raises:
        ReleaseFailedError: If the processor refused the release; the
            reservation is left authorized
    """
    gateway = gateway or get_gateway()
    now = now or timezone.now()

    gateway.release(reservation.hold_id, idempotency_key=release_key(reservation))

    reservation.mark_refunded(now=now)
    reservation.save(update_fields=['payment_status', 'status', 'cancelled_at', 'updated_at'])
    Product.objects.filter(id=reservation.product_id).update(stock=F('stock') + 1)

    logger.info("Released hold %s for reservation %s", reservation.hold_id, reservation.id)
    return reservation


@transaction.atomic
def release_drop_holds(drop, *, gateway=None, now=None) -> list:
    """
    Release every authorized hold on ``drop``.

    A failed release does not stop the pass: the reservation is refunded
    on our side and a reconciliation record is left for the hold.

    Returns:
        List of refunded reservations
    """
    gateway = gateway or get_gateway()
    now = now or timezone.now()

    reservations = (
        Reservation.objects
        .select_for_update()
        .filter(drop=drop, payment_status=PaymentStatus.AUTHORIZED)
        .order_by('created_at')
    )

    refunded = []
    for reservation in reservations:
        try:
            release_hold(reservation, gateway=gateway, now=now)
        except ReleaseFailedError as e:
            logger.error(
                "Release failed for reservation %s on drop %s: %s",
                reservation.id, drop.id, e,
            )
            ReconciliationRecord.objects.create(
                reservation=reservation,
                drop=drop,
                kind=ReconciliationKind.RELEASE_FAILED,
                amount=reservation.authorized_amount,
                reason=e.reason,
                message=str(e),
            )
            reservation.mark_refunded(now=now)
            reservation.save(update_fields=['payment_status', 'status', 'cancelled_at', 'updated_at'])
            Product.objects.filter(id=reservation.product_id).update(stock=F('stock') + 1)
        refunded.append(reservation)

    logger.info("Released %s holds on drop %s", len(refunded), drop.id)
    return refunded
