from django.contrib import admin

from .models import PaymentMethod


@admin.register(PaymentMethod)
class PaymentMethodAdmin(admin.ModelAdmin):
    list_display = ['user', 'brand', 'last4', 'expiry', 'is_default', 'is_active']
    list_filter = ['brand', 'is_default', 'is_active']
    search_fields = ['user__email', 'last4', 'processor_ref', 'processor_customer_ref']
    readonly_fields = ['id', 'processor_ref', 'processor_customer_ref', 'created_at', 'updated_at']

    def expiry(self, obj):
        return f"{obj.exp_month:02d}/{obj.exp_year}"
    expiry.short_description = 'Expires'
