from django.conf import settings
from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
from decimal import Decimal
import uuid


class UserReputation(models.Model):
    """
    A user's standing as seen by pickup points.

    The rating drops with every confirmed return; the returns ceiling
    suspends the account from new reservations.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='reputation'
    )

    rating = models.DecimalField(
        max_digits=3,
        decimal_places=2,
        default=Decimal('5.00'),
        validators=[MinValueValidator(Decimal('1.00')), MaxValueValidator(Decimal('5.00'))]
    )
    lifetime_returns_count = models.PositiveIntegerField(default=0)
    orders_picked_up = models.PositiveIntegerField(default=0)

    is_suspended = models.BooleanField(default=False)
    suspended_at = models.DateTimeField(null=True, blank=True)
    suspended_reason = models.CharField(max_length=255, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'user_reputations'
        indexes = [
            models.Index(fields=['is_suspended'], name='reputation_suspended_idx'),
        ]

    def __str__(self):
        return f"{self.user} ({self.rating}★, {self.lifetime_returns_count} returns)"

    @property
    def loyalty_eligible(self):
        """Loyalty points accrue only at the top rating on an open account."""
        return self.rating >= Decimal(str(settings.REPUTATION['MAX_RATING'])) and not self.is_suspended
