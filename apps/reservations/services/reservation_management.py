"""
Reservation management service.

Handles the authorization side of a drop: ``reserve`` places a hold for
the product's original price and commits the reservation to the drop's
ledger; ``cancel_reservation`` releases the hold again.

The reservation is all-or-nothing. The hold is taken first (outside the
database transaction, since it is an external call); if anything after it
fails, the transaction rolls back and the hold is released.
"""

import logging
import uuid

from django.db import transaction
from django.db.models import F, QuerySet

from apps.accounts.models import User
from apps.catalog.models import Product
from apps.drops.exceptions import (
    InvalidInputError,
    DropNotActiveError,
    OutOfStockError,
    ReservationStateError,
    ActorNotAllowedError,
    PaymentDeclinedError,
    PaymentMethodUnavailableError,
    ReleaseFailedError,
    UserSuspendedError,
    DeclineReason,
)
from apps.drops.models import Drop, DropStatus
from apps.drops.services.ledger import apply_reservation_with_retry, ensure_accepting
from apps.notifications.dispatcher import notify, notify_many
from apps.notifications.models import NotificationKind
from apps.payments.gateway import get_gateway
from apps.payments.models import PaymentMethod
from apps.reputation.services import is_user_suspended
from apps.reservations.models import Reservation, PaymentStatus
from .holds import release_hold

logger = logging.getLogger(__name__)


def reserve_key(reservation_id) -> str:
    return f'reserve-{reservation_id}'


def resolve_payment_method(user: User, payment_method: PaymentMethod = None) -> PaymentMethod:
    """
    Pick the card to hold against: the given one or the user's default.

    Raises:
        PaymentMethodUnavailableError: If there is no active, non-expired card
    """
    if payment_method is None:
        payment_method = (
            PaymentMethod.objects
            .filter(user=user, is_active=True)
            .order_by('-is_default', '-created_at')
            .first()
        )
        if payment_method is None or not payment_method.is_default:
            raise PaymentMethodUnavailableError("No default payment method on file")
    elif payment_method.user_id != user.id:
        raise PaymentMethodUnavailableError("Payment method does not belong to this user")

    if not payment_method.is_usable():
        if payment_method.is_expired():
            raise PaymentMethodUnavailableError(
                f"Card ending {payment_method.last4} has expired",
                reason=DeclineReason.EXPIRED_CARD,
            )
        raise PaymentMethodUnavailableError("Payment method is no longer active")
    return payment_method


def reserve(
    *,
    user: User,
    product: Product,
    drop: Drop,
    payment_method: PaymentMethod = None,
    gateway=None
) -> Reservation:
    """
    Reserve one unit of ``product`` in ``drop`` for ``user``.

    This operation:
    1. Checks suspension, drop state, product and payment method
    2. Authorizes a hold for the full original price
    3. In one transaction: takes a unit of stock, adds the price to the
       drop's ledger and writes the authorized Reservation
    4. Notifies the user, and every reserver if the discount went up

    Args:
        user: Reserving user
        product: Product from the drop's supplier list
        drop: Active drop
        payment_method: Card to use; defaults to the user's default card
        gateway: Payment gateway override

    Returns:
        Reservation with payment_status=authorized

    Raises:
        UserSuspendedError: If the user reached the returns ceiling
        DropNotActiveError: If the drop is not active, is closing or has ended
        InvalidInputError: If the product is not part of the drop
        OutOfStockError: If no stock is left
        PaymentMethodUnavailableError: If no usable card is available
        PaymentDeclinedError: If the processor refused the hold
        ConcurrencyError: If the ledger kept losing races after retries
    """
    gateway = gateway or get_gateway()

    if is_user_suspended(user):
        raise UserSuspendedError("Account is suspended from new reservations")

    drop = Drop.objects.select_related('supplier_list', 'pickup_point').get(id=drop.id)
    ensure_accepting(drop)

    product = Product.objects.get(id=product.id)
    if product.supplier_list_id != drop.supplier_list_id:
        raise InvalidInputError(f"'{product.name}' is not part of drop '{drop.name}'")
    if not product.in_stock:
        raise OutOfStockError(f"'{product.name}' is out of stock")

    payment_method = resolve_payment_method(user, payment_method)

    reservation_id = uuid.uuid4()
    original_price = product.original_price

    try:
        hold_id = gateway.authorize(
            original_price,
            payment_method.processor_ref,
            idempotency_key=reserve_key(reservation_id),
            customer_ref=payment_method.processor_customer_ref or None,
        )
    except PaymentDeclinedError as e:
        logger.info("Hold declined for user %s on drop %s: %s", user.id, drop.id, e.reason)
        raise

    try:
        with transaction.atomic():
            taken = (
                Product.objects
                .filter(id=product.id, stock__gt=0)
                .update(stock=F('stock') - 1)
            )
            if not taken:
                raise OutOfStockError(f"'{product.name}' sold out")

            ledger_update = apply_reservation_with_retry(drop, original_price)

            reservation = Reservation(
                id=reservation_id,
                user=user,
                product=product,
                drop=drop,
                pickup_point=drop.pickup_point,
                payment_method=payment_method,
                original_price=original_price,
                authorized_amount=original_price,
                hold_id=hold_id,
            )
            reservation.move_payment_to(PaymentStatus.AUTHORIZED)
            reservation.save()
    except Exception:
        _release_orphaned_hold(hold_id, reservation_id, gateway)
        raise

    logger.info(
        "Reservation %s authorized: %s for %s on drop %s (discount %s%%)",
        reservation.id, product.name, original_price, drop.id, ledger_update.discount,
    )

    notify(user.id, NotificationKind.RESERVATION_CONFIRMED, {
        'reservation_id': reservation.id,
        'drop_id': drop.id,
        'product_name': product.name,
        'authorized_amount': original_price,
        'current_discount': ledger_update.discount,
    })
    if ledger_update.discount_increased:
        notify_many(
            get_drop_reserver_ids(drop),
            NotificationKind.DISCOUNT_INCREASED,
            {
                'drop_id': drop.id,
                'drop_name': drop.name,
                'previous_discount': ledger_update.previous_discount,
                'current_discount': ledger_update.discount,
            },
        )

    return reservation


def _release_orphaned_hold(hold_id, reservation_id, gateway):
    try:
        gateway.release(hold_id, idempotency_key=f'release-{reservation_id}')
    except ReleaseFailedError as e:
        logger.error("Orphaned hold %s could not be released: %s", hold_id, e)
    else:
        logger.warning("Released hold %s after failed reservation %s", hold_id, reservation_id)


def cancel_reservation(*, reservation: Reservation, user: User, gateway=None) -> Reservation:
    """
    Cancel an authorized reservation and release its hold.

    The unit goes back to stock. The drop's value and discount are left
    as they are: the discount only ever moves up.

    Raises:
        ActorNotAllowedError: If ``user`` does not own the reservation
        ReservationStateError: If it is no longer authorized or the drop is
            completed or being settled
        ReleaseFailedError: If the processor refused the release
    """
    if reservation.user_id != user.id:
        raise ActorNotAllowedError("Only the owner can cancel a reservation")

    with transaction.atomic():
        # Drop before reservation, the same order settlement and the state machine lock in
        drop = Drop.objects.select_for_update().get(id=reservation.drop_id)
        reservation = Reservation.objects.select_for_update().get(id=reservation.id)

        if reservation.payment_status != PaymentStatus.AUTHORIZED:
            raise ReservationStateError(
                f"Reservation is {reservation.payment_status} and can no longer be cancelled"
            )
        if drop.status == DropStatus.COMPLETED or drop.is_closing:
            raise ReservationStateError(f"Drop '{drop.name}' is closed for cancellations")

        release_hold(reservation, gateway=gateway)

    logger.info("Reservation %s cancelled by user %s", reservation.id, user.id)
    notify(user.id, NotificationKind.RESERVATION_REFUNDED, {
        'reservation_id': reservation.id,
        'drop_id': drop.id,
        'released_amount': reservation.authorized_amount,
    })
    return reservation


def get_user_reservations(user: User) -> QuerySet:
    return (
        Reservation.objects
        .filter(user=user)
        .select_related('product', 'drop', 'pickup_point')
        .order_by('-created_at')
    )


def get_drop_reserver_ids(drop: Drop) -> list:
    """Distinct users currently holding an authorization on ``drop``."""
    return list(
        Reservation.objects
        .filter(drop=drop, payment_status=PaymentStatus.AUTHORIZED)
        .order_by()
        .values_list('user_id', flat=True)
        .distinct()
    )
