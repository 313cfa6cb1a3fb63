from django.contrib import admin
from django.utils.html import format_html

from .models import Drop, DropStatus, SettlementReport

STATUS_COLORS = {
    DropStatus.PENDING_APPROVAL: '#ffc107',
    DropStatus.APPROVED: '#17a2b8',
    DropStatus.ACTIVE: '#28a745',
    DropStatus.INACTIVE: '#6c757d',
    DropStatus.COMPLETED: '#007bff',
    DropStatus.EXPIRED: '#343a40',
    DropStatus.CANCELLED: '#dc3545',
}


@admin.register(Drop)
class DropAdmin(admin.ModelAdmin):
    """
    Drops are read-mostly here: lifecycle changes go through the API so the
    state machine runs its side effects. The ledger fields are never edited.
    """

    list_display = [
        'name', 'status_badge', 'pickup_point', 'current_discount',
        'current_value', 'target_value', 'end_time',
    ]
    list_filter = ['status', 'pickup_point', 'created_at']
    search_fields = ['name', 'supplier_list__name']
    readonly_fields = [
        'id', 'status', 'current_discount', 'current_value', 'version',
        'start_time', 'end_time', 'approved_at', 'activated_at', 'deactivated_at',
        'closing_started_at', 'closed_at', 'created_at', 'updated_at',
    ]
    ordering = ['-created_at']

    fieldsets = (
        ('Drop', {
            'fields': ('id', 'name', 'status', 'pickup_point', 'supplier_list', 'created_by')
        }),
        ('Ledger', {
            'fields': ('target_value', 'current_value', 'current_discount', 'version')
        }),
        ('Lifecycle', {
            'fields': (
                'start_time', 'end_time', 'approved_at', 'activated_at',
                'deactivated_at', 'closing_started_at', 'closed_at',
            )
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def status_badge(self, obj):
        return format_html(
            '<span style="background: {}; color: white; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            STATUS_COLORS.get(obj.status, '#999'), obj.get_status_display()
        )
    status_badge.short_description = 'Status'


@admin.register(SettlementReport)
class SettlementReportAdmin(admin.ModelAdmin):
    list_display = [
        'drop', 'status', 'discount_percentage', 'captured_count',
        'failed_count', 'total_captured', 'finished_at',
    ]
    list_filter = ['status']
    search_fields = ['drop__name']
    readonly_fields = [
        'id', 'drop', 'status', 'discount_percentage', 'captured_count', 'failed_count',
        'total_original', 'total_captured', 'outcomes', 'started_at', 'finished_at',
    ]

    def has_add_permission(self, request):
        return False
