from django.contrib import admin
from django.utils.html import format_html

from .models import Order, OrderItem, OrderStatus


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    fields = ['product_name', 'user', 'original_price', 'final_price', 'pickup_status']
    readonly_fields = fields


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = [
        'order_number', 'drop', 'supplier', 'pickup_point', 'total_value',
        'commission_amount', 'status_badge', 'created_at',
    ]
    list_filter = ['status', 'pickup_point', 'created_at']
    search_fields = ['order_number', 'drop__name', 'supplier__email']
    readonly_fields = [
        'id', 'order_number', 'drop', 'supplier', 'pickup_point', 'status',
        'discount_percentage', 'total_value', 'commission_amount',
        'completed_at', 'created_at', 'updated_at',
    ]
    inlines = [OrderItemInline]
    ordering = ['-created_at']

    def status_badge(self, obj):
        color = '#28a745' if obj.status == OrderStatus.COMPLETED else '#17a2b8'
        return format_html(
            '<span style="background: {}; color: white; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            color, obj.get_status_display()
        )
    status_badge.short_description = 'Status'

    def has_add_permission(self, request):
        return False
