from django.db import models
import uuid


class NotificationKind(models.TextChoices):
    RESERVATION_CONFIRMED = 'reservation_confirmed', 'Reservation Confirmed'
    DISCOUNT_INCREASED = 'discount_increased', 'Discount Increased'
    DROP_COMPLETED = 'drop_completed', 'Drop Completed'
    CAPTURE_FAILED = 'capture_failed', 'Capture Failed'
    RESERVATION_REFUNDED = 'reservation_refunded', 'Reservation Refunded'
    DROP_CANCELLED = 'drop_cancelled', 'Drop Cancelled'
    DROP_EXPIRED = 'drop_expired', 'Drop Expired'
    ACCOUNT_SUSPENDED = 'account_suspended', 'Account Suspended'


class Notification(models.Model):
    """Outbox row read by whatever delivers notifications to the user."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='notifications'
    )
    kind = models.CharField(max_length=40, choices=NotificationKind.choices)
    title = models.CharField(max_length=200)
    payload = models.JSONField(default=dict, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'notifications'
        indexes = [
            models.Index(fields=['user', 'is_read'], name='notifications_user_read_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.kind} for {self.user_id}"
