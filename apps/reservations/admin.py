from django.contrib import admin
from django.utils import timezone
from django.utils.html import format_html

from .models import Reservation, PaymentStatus, ReconciliationRecord

PAYMENT_COLORS = {
    PaymentStatus.PENDING: '#ffc107',
    PaymentStatus.AUTHORIZED: '#17a2b8',
    PaymentStatus.CAPTURED: '#28a745',
    PaymentStatus.FAILED: '#dc3545',
    PaymentStatus.REFUNDED: '#6c757d',
}


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = [
        'user', 'product', 'drop', 'original_price', 'final_price',
        'payment_badge', 'status', 'created_at',
    ]
    list_filter = ['payment_status', 'status', 'pickup_point', 'created_at']
    search_fields = ['user__email', 'product__name', 'drop__name', 'hold_id']
    readonly_fields = [
        'id', 'user', 'product', 'drop', 'pickup_point', 'payment_method',
        'original_price', 'authorized_amount', 'discount_percentage', 'final_price',
        'hold_id', 'payment_status', 'status', 'captured_at', 'cancelled_at',
        'picked_up_at', 'returned_at', 'return_reason', 'created_at', 'updated_at',
    ]
    ordering = ['-created_at']

    def payment_badge(self, obj):
        return format_html(
            '<span style="background: {}; color: white; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            PAYMENT_COLORS.get(obj.payment_status, '#999'), obj.get_payment_status_display()
        )
    payment_badge.short_description = 'Payment'

    def has_add_permission(self, request):
        return False


@admin.register(ReconciliationRecord)
class ReconciliationRecordAdmin(admin.ModelAdmin):
    list_display = ['reservation', 'drop', 'kind', 'amount', 'reason', 'created_at', 'resolved_at']
    list_filter = ['kind', 'resolved_at']
    search_fields = ['reservation__user__email', 'drop__name', 'message']
    readonly_fields = ['id', 'reservation', 'drop', 'kind', 'amount', 'reason', 'message', 'created_at']
    actions = ['mark_resolved']

    @admin.action(description='Mark selected records as resolved')
    def mark_resolved(self, request, queryset):
        updated = queryset.filter(resolved_at__isnull=True).update(resolved_at=timezone.now())
        self.message_user(request, f'{updated} record(s) marked as resolved.')
