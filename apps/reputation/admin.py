from django.contrib import admin
from django.utils.html import format_html

from .models import UserReputation


@admin.register(UserReputation)
class UserReputationAdmin(admin.ModelAdmin):
    list_display = ['user', 'rating', 'lifetime_returns_count', 'orders_picked_up', 'suspension_badge']
    list_filter = ['is_suspended']
    search_fields = ['user__email', 'user__display_name']
    readonly_fields = ['id', 'rating', 'lifetime_returns_count', 'orders_picked_up', 'created_at', 'updated_at']
    ordering = ['-lifetime_returns_count']

    fieldsets = (
        ('User', {
            'fields': ('id', 'user')
        }),
        ('Standing', {
            'fields': ('rating', 'lifetime_returns_count', 'orders_picked_up')
        }),
        ('Suspension', {
            'fields': ('is_suspended', 'suspended_at', 'suspended_reason')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def suspension_badge(self, obj):
        color, label = ('#dc3545', 'Suspended') if obj.is_suspended else ('#28a745', 'Active')
        return format_html(
            '<span style="background: {}; color: white; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            color, label
        )
    suspension_badge.short_description = 'Account'
