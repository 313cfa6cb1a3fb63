from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
from django.utils import timezone
import uuid


class CardBrand(models.TextChoices):
    VISA = 'visa', 'Visa'
    MASTERCARD = 'mastercard', 'Mastercard'
    AMEX = 'amex', 'American Express'
    OTHER = 'other', 'Other'


class PaymentMethod(models.Model):
    """A user's saved card, referenced at the processor by ``processor_ref``."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='payment_methods'
    )

    # Processor token (e.g. Stripe ``pm_...``)
    processor_ref = models.CharField(max_length=255)
    # Processor customer the card is attached to (e.g. Stripe ``cus_...``)
    processor_customer_ref = models.CharField(max_length=255, blank=True)
    brand = models.CharField(max_length=20, choices=CardBrand.choices, default=CardBrand.OTHER)
    last4 = models.CharField(max_length=4, blank=True)
    exp_month = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(12)]
    )
    exp_year = models.PositiveSmallIntegerField()

    is_default = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'payment_methods'
        indexes = [
            models.Index(fields=['user', 'is_default'], name='paymethod_user_default_idx'),
        ]
        ordering = ['-is_default', '-created_at']

    def __str__(self):
        return f"{self.get_brand_display()} **** {self.last4}"

    def is_expired(self, today=None):
        """Cards are valid through the last day of their expiry month."""
        today = today or timezone.now().date()
        return (self.exp_year, self.exp_month) < (today.year, today.month)

    def is_usable(self, today=None):
        return self.is_active and not self.is_expired(today)

    def make_default(self):
        """Set this method as default, unsetting the user's other defaults."""
        PaymentMethod.objects.filter(user=self.user, is_default=True).exclude(pk=self.pk).update(is_default=False)
        self.is_default = True
        self.save(update_fields=['is_default', 'updated_at'])
