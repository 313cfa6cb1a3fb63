from decimal import Decimal

from rest_framework import serializers

from .models import Drop, DropStatus, SettlementReport
from .services import DropAction
from apps.catalog.models import PickupPoint, SupplierList


# =============================================================================
# Input Serializers
# =============================================================================

class DropFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for drop filtering.

    Query Parameters:
        status (str): Filter by drop status
        pickup_point (UUID): Filter by pickup point
    """

    status = serializers.ChoiceField(choices=DropStatus.choices, required=False)
    pickup_point = serializers.UUIDField(required=False)


class DropCreateSerializer(serializers.Serializer):
    """Input for creating a drop; it starts pending approval."""

    name = serializers.CharField(max_length=200)
    pickup_point = serializers.PrimaryKeyRelatedField(queryset=PickupPoint.objects.filter(is_active=True))
    supplier_list = serializers.PrimaryKeyRelatedField(queryset=SupplierList.objects.all())
    target_value = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal('0.01'),
        required=False
    )

    def validate_name(self, value):
        if not value.strip():
            raise serializers.ValidationError('Name cannot be blank')
        return value.strip()


class DropTransitionSerializer(serializers.Serializer):
    """Body of POST /api/drops/{id}/transition/."""

    action = serializers.ChoiceField(choices=DropAction.choices)


# =============================================================================
# Output Serializers
# =============================================================================

class DropListSerializer(serializers.ModelSerializer):
    """Lightweight drop info for lists."""

    pickup_point_name = serializers.CharField(source='pickup_point.name', read_only=True)

    class Meta:
        model = Drop
        fields = [
            'id',
            'name',
            'status',
            'pickup_point',
            'pickup_point_name',
            'current_discount',
            'current_value',
            'target_value',
            'end_time',
        ]
        read_only_fields = fields


class DropSerializer(serializers.ModelSerializer):
    """Full drop details."""

    pickup_point_name = serializers.CharField(source='pickup_point.name', read_only=True)
    supplier_list_name = serializers.CharField(source='supplier_list.name', read_only=True)
    min_discount = serializers.DecimalField(
        source='supplier_list.min_discount', max_digits=5, decimal_places=2, read_only=True
    )
    max_discount = serializers.DecimalField(
        source='supplier_list.max_discount', max_digits=5, decimal_places=2, read_only=True
    )
    is_closing = serializers.BooleanField(read_only=True)
    accepts_reservations = serializers.BooleanField(read_only=True)

    class Meta:
        model = Drop
        fields = [
            'id',
            'name',
            'status',
            'pickup_point',
            'pickup_point_name',
            'supplier_list',
            'supplier_list_name',
            'current_discount',
            'current_value',
            'target_value',
            'min_discount',
            'max_discount',
            'is_closing',
            'accepts_reservations',
            'start_time',
            'end_time',
            'approved_at',
            'activated_at',
            'closed_at',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class DropSummarySerializer(serializers.Serializer):
    """Output of get_drop_summary()."""

    drop_id = serializers.UUIDField()
    status = serializers.CharField()
    is_closing = serializers.BooleanField()
    current_value = serializers.DecimalField(max_digits=12, decimal_places=2)
    target_value = serializers.DecimalField(max_digits=12, decimal_places=2)
    progress_percent = serializers.DecimalField(max_digits=5, decimal_places=2)
    current_discount = serializers.DecimalField(max_digits=5, decimal_places=2)
    min_discount = serializers.DecimalField(max_digits=5, decimal_places=2)
    max_discount = serializers.DecimalField(max_digits=5, decimal_places=2)
    max_discount_at_target = serializers.DecimalField(max_digits=5, decimal_places=2)
    min_reservation_value = serializers.DecimalField(max_digits=12, decimal_places=2)
    is_funded = serializers.BooleanField()
    end_time = serializers.DateTimeField(allow_null=True)
    reservations = serializers.DictField(child=serializers.IntegerField())
    captured_total = serializers.DecimalField(max_digits=12, decimal_places=2)
    reservers = serializers.IntegerField()


class SettlementReportSerializer(serializers.ModelSerializer):
    """Settlement outcome, one entry per processed reservation."""

    total_savings = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = SettlementReport
        fields = [
            'id',
            'drop',
            'status',
            'discount_percentage',
            'captured_count',
            'failed_count',
            'total_original',
            'total_captured',
            'total_savings',
            'outcomes',
            'started_at',
            'finished_at',
        ]
        read_only_fields = fields
