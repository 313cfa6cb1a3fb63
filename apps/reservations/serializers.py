from rest_framework import serializers

from .models import Reservation, PaymentStatus
from apps.catalog.models import Product
from apps.drops.models import Drop
from apps.payments.models import PaymentMethod


# =============================================================================
# Input Serializers
# =============================================================================

class ReservationFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for reservation filtering.

    Query Parameters:
        drop (UUID): Filter by drop
        payment_status (str): Filter by payment status
    """

    drop = serializers.UUIDField(required=False)
    payment_status = serializers.ChoiceField(choices=PaymentStatus.choices, required=False)


class ReservationCreateSerializer(serializers.Serializer):
    """
    Input for reserving a product in a drop.

    Fields:
        drop (UUID): Active drop
        product (UUID): Product from the drop's supplier list
        payment_method (UUID): Optional card; the default card otherwise
    """

    drop = serializers.PrimaryKeyRelatedField(queryset=Drop.objects.all())
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    payment_method = serializers.PrimaryKeyRelatedField(
        queryset=PaymentMethod.objects.all(),
        required=False,
        allow_null=True
    )


class ReturnInputSerializer(serializers.Serializer):
    """Reason given at the pickup point when the item is refused."""

    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


# =============================================================================
# Output Serializers
# =============================================================================

class ReservationSerializer(serializers.ModelSerializer):
    """Reservation with its payment state."""

    product_name = serializers.CharField(source='product.name', read_only=True)
    drop_name = serializers.CharField(source='drop.name', read_only=True)
    pickup_point_name = serializers.CharField(source='pickup_point.name', read_only=True)
    savings = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True, allow_null=True)

    class Meta:
        model = Reservation
        fields = [
            'id',
            'user',
            'drop',
            'drop_name',
            'product',
            'product_name',
            'pickup_point',
            'pickup_point_name',
            'original_price',
            'authorized_amount',
            'discount_percentage',
            'final_price',
            'savings',
            'payment_status',
            'status',
            'captured_at',
            'cancelled_at',
            'picked_up_at',
            'returned_at',
            'return_reason',
            'created_at',
        ]
        read_only_fields = fields
