# ==========================================
# apps/reservations/models.py
# ==========================================

from django.db import models
from django.db.models import Q, F
from django.utils import timezone
from decimal import Decimal
import uuid

from apps.drops.exceptions import ReservationStateError


class PaymentStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    AUTHORIZED = 'authorized', 'Authorized'
    CAPTURED = 'captured', 'Captured'
    FAILED = 'failed', 'Failed'
    REFUNDED = 'refunded', 'Refunded'


class ReservationStatus(models.TextChoices):
    ACTIVE = 'active', 'Active'
    CONFIRMED = 'confirmed', 'Confirmed'
    CANCELLED = 'cancelled', 'Cancelled'
    COMPLETED = 'completed', 'Completed'


# Legal payment moves; anything else is a bug or a replay
PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.AUTHORIZED, PaymentStatus.FAILED},
    PaymentStatus.AUTHORIZED: {PaymentStatus.CAPTURED, PaymentStatus.REFUNDED, PaymentStatus.FAILED},
    PaymentStatus.CAPTURED: set(),
    PaymentStatus.FAILED: set(),
    PaymentStatus.REFUNDED: set(),
}

# Reservation status mirrors the payment outcome
STATUS_FOR_PAYMENT = {
    PaymentStatus.AUTHORIZED: ReservationStatus.ACTIVE,
    PaymentStatus.CAPTURED: ReservationStatus.COMPLETED,
    PaymentStatus.FAILED: ReservationStatus.CANCELLED,
    PaymentStatus.REFUNDED: ReservationStatus.CANCELLED,
}


class Reservation(models.Model):
    """
    One user's commitment to buy one product from a drop.

    The hold is taken for ``original_price`` at reservation time; the
    discount and final price are only known once the drop settles.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='reservations'
    )
    product = models.ForeignKey(
        'catalog.Product',
        on_delete=models.PROTECT,
        related_name='reservations'
    )
    drop = models.ForeignKey(
        'drops.Drop',
        on_delete=models.PROTECT,
        related_name='reservations'
    )
    pickup_point = models.ForeignKey(
        'catalog.PickupPoint',
        on_delete=models.PROTECT,
        related_name='reservations'
    )
    payment_method = models.ForeignKey(
        'payments.PaymentMethod',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reservations'
    )

    # Pricing
    original_price = models.DecimalField(max_digits=10, decimal_places=2)
    authorized_amount = models.DecimalField(max_digits=10, decimal_places=2)
    discount_percentage = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    final_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    # Processor reference of the authorization hold
    hold_id = models.CharField(max_length=255, blank=True)

    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING
    )
    status = models.CharField(
        max_length=20,
        choices=ReservationStatus.choices,
        default=ReservationStatus.ACTIVE
    )

    captured_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    picked_up_at = models.DateTimeField(null=True, blank=True)
    returned_at = models.DateTimeField(null=True, blank=True)
    return_reason = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'reservations'
        indexes = [
            models.Index(fields=['drop', 'payment_status'], name='reservations_drop_payment_idx'),
            models.Index(fields=['user', '-created_at'], name='reservations_user_created_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                check=Q(final_price__isnull=True) | Q(final_price__lte=F('authorized_amount')),
                name='reservation_final_price_within_hold'
            ),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user} - {self.product.name} ({self.payment_status})"

    @property
    def savings(self):
        if self.final_price is None:
            return None
        return self.original_price - self.final_price

    def move_payment_to(self, new_status):
        """
        Apply a payment transition and mirror it on ``status``.

        Does not save; callers persist with the fields they touched.

        Raises:
            ReservationStateError: If the move is not legal from the current state
        """
        if new_status not in PAYMENT_TRANSITIONS[self.payment_status]:
            raise ReservationStateError(
                f"Cannot move reservation {self.id} from {self.payment_status} to {new_status}"
            )
        self.payment_status = new_status
        self.status = STATUS_FOR_PAYMENT[new_status]

    def mark_captured(self, discount_percentage, final_price, now=None):
        final_price = Decimal(final_price)
        if final_price > self.authorized_amount:
            raise ReservationStateError(
                f"Final price {final_price} exceeds authorized {self.authorized_amount}"
            )
        self.move_payment_to(PaymentStatus.CAPTURED)
        self.discount_percentage = discount_percentage
        self.final_price = final_price
        self.captured_at = now or timezone.now()

    def mark_refunded(self, now=None):
        self.move_payment_to(PaymentStatus.REFUNDED)
        self.cancelled_at = now or timezone.now()

    def mark_failed(self, now=None):
        self.move_payment_to(PaymentStatus.FAILED)
        self.cancelled_at = now or timezone.now()


class ReconciliationKind(models.TextChoices):
    CAPTURE_FAILED = 'capture_failed', 'Capture Failed'
    RELEASE_FAILED = 'release_failed', 'Release Failed'


class ReconciliationRecord(models.Model):
    """A payment operation that failed and needs follow-up outside the core."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    reservation = models.ForeignKey(
        Reservation,
        on_delete=models.CASCADE,
        related_name='reconciliation_records'
    )
    drop = models.ForeignKey(
        'drops.Drop',
        on_delete=models.CASCADE,
        related_name='reconciliation_records'
    )
    kind = models.CharField(max_length=20, choices=ReconciliationKind.choices)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    reason = models.CharField(max_length=50, blank=True)
    message = models.TextField(blank=True)

    resolved_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'reconciliation_records'
        indexes = [
            models.Index(fields=['drop', 'kind'], name='reconcile_drop_kind_idx'),
            models.Index(fields=['resolved_at'], name='reconcile_resolved_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.get_kind_display()} for reservation {self.reservation_id}"

    @property
    def is_resolved(self):
        return self.resolved_at is not None
