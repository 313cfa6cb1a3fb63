# ==========================================
# apps/drops/models.py
# ==========================================

from django.db import models
from django.core.validators import MinValueValidator
from django.utils import timezone
from decimal import Decimal
import uuid


class DropStatus(models.TextChoices):
    PENDING_APPROVAL = 'pending_approval', 'Pending Approval'
    APPROVED = 'approved', 'Approved'
    ACTIVE = 'active', 'Active'
    INACTIVE = 'inactive', 'Inactive'
    COMPLETED = 'completed', 'Completed'
    EXPIRED = 'expired', 'Expired'
    CANCELLED = 'cancelled', 'Cancelled'


TERMINAL_STATUSES = frozenset({
    DropStatus.COMPLETED,
    DropStatus.EXPIRED,
    DropStatus.CANCELLED,
})


class Drop(models.Model):
    """
    Time-boxed group-buy event with an escalating discount.

    ``current_value``, ``current_discount`` and ``version`` are owned by the
    ledger service; nothing else writes them.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)

    pickup_point = models.ForeignKey(
        'catalog.PickupPoint',
        on_delete=models.PROTECT,
        related_name='drops'
    )
    supplier_list = models.ForeignKey(
        'catalog.SupplierList',
        on_delete=models.PROTECT,
        related_name='drops'
    )
    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_drops'
    )

    status = models.CharField(
        max_length=20,
        choices=DropStatus.choices,
        default=DropStatus.PENDING_APPROVAL
    )

    # Ledger
    current_discount = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('0.00')
    )
    current_value = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00')
    )
    target_value = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    version = models.PositiveIntegerField(default=0)

    # Lifecycle
    start_time = models.DateTimeField(null=True, blank=True)
    end_time = models.DateTimeField(null=True, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    activated_at = models.DateTimeField(null=True, blank=True)
    deactivated_at = models.DateTimeField(null=True, blank=True)
    closing_started_at = models.DateTimeField(null=True, blank=True)
    closed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'drops'
        indexes = [
            models.Index(fields=['status', 'end_time'], name='drops_status_end_idx'),
            models.Index(fields=['pickup_point', 'status'], name='drops_pickup_status_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.name} ({self.status}, {self.current_discount}%)"

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES

    @property
    def is_closing(self):
        return self.status == DropStatus.ACTIVE and self.closing_started_at is not None

    def has_ended(self, now=None):
        return self.end_time is not None and (now or timezone.now()) >= self.end_time

    @property
    def accepts_reservations(self):
        return (
            self.status == DropStatus.ACTIVE
            and self.closing_started_at is None
            and not self.has_ended()
        )


class SettlementStatus(models.TextChoices):
    RUNNING = 'running', 'Running'
    FINISHED = 'finished', 'Finished'


class SettlementReport(models.Model):
    """
    Outcome of capturing a drop's reservations at its frozen discount.

    One report per drop; its existence is the at-most-once guard for
    settlement. ``outcomes`` holds one entry per processed reservation.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    drop = models.OneToOneField(
        Drop,
        on_delete=models.CASCADE,
        related_name='settlement_report'
    )
    status = models.CharField(
        max_length=20,
        choices=SettlementStatus.choices,
        default=SettlementStatus.RUNNING
    )
    discount_percentage = models.DecimalField(max_digits=5, decimal_places=2)

    captured_count = models.PositiveIntegerField(default=0)
    failed_count = models.PositiveIntegerField(default=0)
    total_original = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_captured = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    outcomes = models.JSONField(default=list, blank=True)

    started_at = models.DateTimeField()
    finished_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'settlement_reports'
        ordering = ['-started_at']

    def __str__(self):
        return f"Settlement of {self.drop.name}: {self.captured_count} captured, {self.failed_count} failed"

    @property
    def is_finished(self):
        return self.status == SettlementStatus.FINISHED

    @property
    def total_savings(self):
        return self.total_original - self.total_captured

    def record_outcome(self, outcome):
        """Append one reservation outcome and refresh the totals."""
        self.outcomes = [*self.outcomes, outcome]
        self.recalculate_totals()
        self.save(update_fields=[
            'outcomes', 'captured_count', 'failed_count', 'total_original', 'total_captured',
        ])

    def recalculate_totals(self):
        captured = [o for o in self.outcomes if o['status'] == 'captured']
        self.captured_count = len(captured)
        self.failed_count = len(self.outcomes) - len(captured)
        self.total_original = sum((Decimal(o['original_price']) for o in captured), Decimal('0.00'))
        self.total_captured = sum((Decimal(o['final_price']) for o in captured), Decimal('0.00'))
