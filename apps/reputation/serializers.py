from rest_framework import serializers

from .models import UserReputation


class UserReputationSerializer(serializers.ModelSerializer):
    """The current user's standing."""

    loyalty_eligible = serializers.BooleanField(read_only=True)

    class Meta:
        model = UserReputation
        fields = [
            'rating',
            'lifetime_returns_count',
            'orders_picked_up',
            'is_suspended',
            'suspended_at',
            'suspended_reason',
            'loyalty_eligible',
        ]
        read_only_fields = fields


class ReputationUpdateSerializer(serializers.Serializer):
    """Output of record_return()."""

    rating = serializers.DecimalField(max_digits=3, decimal_places=2)
    previous_rating = serializers.DecimalField(max_digits=3, decimal_places=2)
    lifetime_returns_count = serializers.IntegerField()
    is_suspended = serializers.BooleanField()
    newly_suspended = serializers.BooleanField()
