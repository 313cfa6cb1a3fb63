"""
Drop ledger service.

Owns a drop's accumulated reservation value and its discount. Every write
is a single conditional UPDATE guarded by the drop's ``version`` column
(compare-and-set), so concurrent reservations on the same drop are never
lost and the discount is always computed from the post-increment value.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.db.models import F
from django.utils import timezone

from apps.drops.models import Drop, DropStatus
from apps.drops.exceptions import (
    InvalidInputError,
    DropNotActiveError,
    ConcurrencyError,
)
from .pricing import discount_for_drop

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerUpdate:
    """Result of one ledger write."""
    value: Decimal
    discount: Decimal
    previous_discount: Decimal

    @property
    def discount_increased(self) -> bool:
        return self.discount > self.previous_discount


def ensure_accepting(drop: Drop) -> None:
    """Raise ``DropNotActiveError`` unless ``drop`` can take a reservation now."""
    if drop.status == DropStatus.ACTIVE and drop.has_ended():
        raise DropNotActiveError(f"Drop '{drop.name}' ended at {drop.end_time}")
    if not drop.accepts_reservations:
        raise DropNotActiveError(
            f"Drop '{drop.name}' is not accepting reservations (status: {drop.status})"
        )


def apply_reservation(drop: Drop, amount) -> LedgerUpdate:
    """
    Add ``amount`` to the drop's value and ratchet its discount.

    The in-memory ``drop`` is the read side of the compare-and-set: the
    UPDATE only matches if nobody else wrote the row since it was loaded.

    Args:
        drop: Drop as last read from the database
        amount: Reservation value at original price

    Returns:
        LedgerUpdate with the new value and discount

    Raises:
        InvalidInputError: If amount is not positive
        DropNotActiveError: If the drop is not active, is closing or has ended
        ConcurrencyError: If the row changed since ``drop`` was read
    """
    amount = Decimal(amount)
    if amount <= 0:
        raise InvalidInputError("Reservation amount must be positive")
    ensure_accepting(drop)

    new_value = drop.current_value + amount
    previous_discount = drop.current_discount
    # Ratchet: the discount never goes down while the drop is open
    new_discount = max(previous_discount, discount_for_drop(drop, new_value))

    now = timezone.now()
    updated = Drop.objects.filter(
        id=drop.id,
        version=drop.version,
        status=DropStatus.ACTIVE,
        closing_started_at__isnull=True,
        end_time__gt=now,
    ).update(
        current_value=new_value,
        current_discount=new_discount,
        version=F('version') + 1,
        updated_at=now,
    )
    if updated == 0:
        raise ConcurrencyError(f"Drop {drop.id} changed since version {drop.version}")

    drop.current_value = new_value
    drop.current_discount = new_discount
    drop.version += 1

    logger.debug(
        "Drop %s ledger: value=%s discount=%s version=%s",
        drop.id, new_value, new_discount, drop.version,
    )
    return LedgerUpdate(value=new_value, discount=new_discount, previous_discount=previous_discount)


def apply_reservation_with_retry(drop: Drop, amount, max_retries: int = None) -> LedgerUpdate:
    """
    ``apply_reservation`` that re-reads the drop and retries on lost races.

    State errors are never retried: if the fresh read shows the drop closed
    or closing, ``DropNotActiveError`` propagates immediately.
    """
    if max_retries is None:
        max_retries = settings.DROPS['LEDGER_MAX_RETRIES']

    attempt = 0
    while True:
        try:
            return apply_reservation(drop, amount)
        except ConcurrencyError:
            attempt += 1
            if attempt > max_retries:
                logger.warning("Drop %s ledger gave up after %s retries", drop.id, max_retries)
                raise
            drop.refresh_from_db()
            logger.info("Drop %s ledger retry %s/%s", drop.id, attempt, max_retries)


def open_ledger(drop: Drop) -> None:
    """Start the ledger for a drop entering ``active``: discount = min_discount."""
    drop.current_discount = drop.supplier_list.min_discount
    drop.version += 1
