# ==========================================
# apps/orders/models.py
# ==========================================

from django.db import models
from decimal import Decimal
import uuid


class OrderStatus(models.TextChoices):
    CONFIRMED = 'confirmed', 'Confirmed'
    COMPLETED = 'completed', 'Completed'


class PickupStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    PICKED_UP = 'picked_up', 'Picked Up'
    RETURNED = 'returned', 'Returned'


class Order(models.Model):
    """
    What one supplier ships to one pickup point for a settled drop.

    Written once, when the drop's settlement finishes, from the
    reservations that were captured. ``commission_amount`` is the
    marketplace's share of ``total_value``.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(max_length=32, unique=True)

    drop = models.ForeignKey(
        'drops.Drop',
        on_delete=models.PROTECT,
        related_name='orders'
    )
    supplier = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='supplier_orders'
    )
    pickup_point = models.ForeignKey(
        'catalog.PickupPoint',
        on_delete=models.PROTECT,
        related_name='orders'
    )

    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.CONFIRMED
    )
    discount_percentage = models.DecimalField(max_digits=5, decimal_places=2)
    total_value = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    commission_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'orders'
        indexes = [
            models.Index(fields=['pickup_point', 'status'], name='orders_pickup_status_idx'),
            models.Index(fields=['supplier', '-created_at'], name='orders_supplier_created_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.order_number} ({self.status})"

    @property
    def supplier_payout(self):
        return self.total_value - self.commission_amount


class OrderItem(models.Model):
    """One captured reservation inside an order, tracked through pickup."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='items'
    )
    reservation = models.OneToOneField(
        'reservations.Reservation',
        on_delete=models.PROTECT,
        related_name='order_item'
    )
    product = models.ForeignKey(
        'catalog.Product',
        on_delete=models.PROTECT,
        related_name='order_items'
    )
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='order_items'
    )

    # Snapshot at settlement
    product_name = models.CharField(max_length=200)
    original_price = models.DecimalField(max_digits=10, decimal_places=2)
    final_price = models.DecimalField(max_digits=10, decimal_places=2)
    discount_percentage = models.DecimalField(max_digits=5, decimal_places=2)

    pickup_status = models.CharField(
        max_length=20,
        choices=PickupStatus.choices,
        default=PickupStatus.PENDING
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'order_items'
        indexes = [
            models.Index(fields=['order', 'pickup_status'], name='order_items_status_idx'),
        ]
        ordering = ['created_at']

    def __str__(self):
        return f"{self.product_name} for {self.user} ({self.pickup_status})"
