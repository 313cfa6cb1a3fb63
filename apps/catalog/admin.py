# ==========================================
# apps/catalog/admin.py
# ==========================================

from django.contrib import admin
from apps.catalog.models import PickupPoint, SupplierList, Product


class ProductInline(admin.TabularInline):
    """Inline admin for products of a supplier list."""
    model = Product
    extra = 1
    fields = [
        'name',
        'original_price',
        'stock',
        'is_available',
    ]


@admin.register(SupplierList)
class SupplierListAdmin(admin.ModelAdmin):
    """Admin interface for Supplier Lists."""

    list_display = [
        'name',
        'supplier',
        'min_discount',
        'max_discount',
        'min_reservation_value',
        'max_reservation_value',
        'created_at',
    ]
    search_fields = ['name', 'supplier__email']
    inlines = [ProductInline]


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    """Admin interface for Products."""

    list_display = [
        'name',
        'supplier_list',
        'original_price',
        'stock',
        'is_available',
        'created_at',
    ]
    list_filter = ['is_available', 'supplier_list']
    search_fields = ['name', 'brand', 'sku']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(PickupPoint)
class PickupPointAdmin(admin.ModelAdmin):
    """Admin interface for Pickup Points."""

    list_display = ['name', 'city', 'address', 'is_active', 'created_at']
    list_filter = ['is_active', 'city']
    search_fields = ['name', 'city', 'address']
