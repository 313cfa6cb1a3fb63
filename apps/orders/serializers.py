from rest_framework import serializers

from .models import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    """Single reservation inside an order."""

    user_email = serializers.EmailField(source='user.email', read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            'id', 'reservation', 'product', 'product_name', 'user_email',
            'original_price', 'final_price', 'discount_percentage', 'pickup_status',
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Order with its items and the supplier's payout."""

    drop_name = serializers.CharField(source='drop.name', read_only=True)
    pickup_point_name = serializers.CharField(source='pickup_point.name', read_only=True)
    supplier_payout = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'drop', 'drop_name', 'supplier', 'pickup_point',
            'pickup_point_name', 'status', 'discount_percentage', 'total_value',
            'commission_amount', 'supplier_payout', 'items', 'completed_at', 'created_at',
        ]
        read_only_fields = fields
