# ==========================================
# apps/catalog/models.py
# ==========================================

from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
from decimal import Decimal
import uuid


class PickupPoint(models.Model):
    """Physical location where drop orders are collected."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    city = models.CharField(max_length=100, db_index=True)
    address = models.CharField(max_length=300, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'pickup_points'
        ordering = ['city', 'name']

    def __str__(self):
        return f"{self.city} - {self.name}"


class SupplierList(models.Model):
    """
    A supplier's product list and the discount range its drops may reach.

    Every drop built on this list starts at ``min_discount`` and can climb
    to ``max_discount`` as reservations accumulate.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    supplier = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='supplier_lists'
    )
    name = models.CharField(max_length=200)

    min_discount = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00')), MaxValueValidator(Decimal('100.00'))]
    )
    max_discount = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00')), MaxValueValidator(Decimal('100.00'))]
    )

    # Reservation value a drop must reach to be fulfilled / its natural cap
    min_reservation_value = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    max_reservation_value = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'supplier_lists'
        ordering = ['name']
        constraints = [
            models.CheckConstraint(
                check=models.Q(min_discount__lte=models.F('max_discount')),
                name='supplier_list_discount_range',
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.min_discount}%-{self.max_discount}%)"


class Product(models.Model):
    """Product offered through a supplier list."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    supplier_list = models.ForeignKey(
        SupplierList,
        on_delete=models.CASCADE,
        related_name='products'
    )
    name = models.CharField(max_length=200, db_index=True)
    description = models.TextField(blank=True)
    brand = models.CharField(max_length=100, blank=True)
    sku = models.CharField(max_length=64, blank=True)

    original_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    stock = models.PositiveIntegerField(default=0)
    is_available = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'products'
        indexes = [
            models.Index(fields=['supplier_list', 'is_available'], name='products_list_available_idx'),
        ]
        ordering = ['name']

    def __str__(self):
        return f"{self.name} - {self.original_price}"

    @property
    def in_stock(self):
        return self.is_available and self.stock > 0
