from rest_framework import serializers
from .models import User


class UserSerializer(serializers.ModelSerializer):
    """Basic user serializer for profile display."""

    display_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'display_name',
            'role',
            'pickup_point',
            'created_at',
            'last_login',
        ]
        read_only_fields = fields

    def get_display_name(self, obj):
        return obj.get_display_name()
