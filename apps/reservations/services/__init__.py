"""
Reservations app services layer.

Authorization holds for drop reservations: reserve, cancel and the
hold-release helpers used when a drop ends without settlement.
"""

from apps.drops.exceptions import (
    DropsServiceError,
    InvalidInputError,
    DropNotActiveError,
    OutOfStockError,
    ReservationStateError,
    PaymentError,
    PaymentDeclinedError,
    PaymentMethodUnavailableError,
    UserSuspendedError,
)

from .holds import (
    release_hold,
    release_drop_holds,
)

from .reservation_management import (
    resolve_payment_method,
    reserve,
    cancel_reservation,
    get_user_reservations,
    get_drop_reserver_ids,
)


__all__ = [
    # Exceptions
    'DropsServiceError',
    'InvalidInputError',
    'DropNotActiveError',
    'OutOfStockError',
    'ReservationStateError',
    'PaymentError',
    'PaymentDeclinedError',
    'PaymentMethodUnavailableError',
    'UserSuspendedError',

    # Holds
    'release_hold',
    'release_drop_holds',

    # Reservation Management
    'resolve_payment_method',
    'reserve',
    'cancel_reservation',
    'get_user_reservations',
    'get_drop_reserver_ids',
]
