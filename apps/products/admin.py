"""
Admin configuration for the Products app.
"""
from django.contrib import admin

from apps.products.models import BulkTierOperation, DiscountTier, Product


class DiscountTierInline(admin.TabularInline):
    model = DiscountTier
    extra = 0
    ordering = ['tier_number']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'vendor', 'price', 'group_order_enabled', 'max_group_size', 'is_active']
    list_filter = ['group_order_enabled', 'is_active', 'created_at']
    search_fields = ['name', 'description', 'vendor__email']
    readonly_fields = ['group_order_enabled', 'created_at', 'updated_at']
    inlines = [DiscountTierInline]


@admin.register(BulkTierOperation)
class BulkTierOperationAdmin(admin.ModelAdmin):
    list_display = ['id', 'created_by', 'created_at', 'undone_at']
    list_filter = ['created_at', 'undone_at']
    search_fields = ['created_by__email']
    readonly_fields = [
        'created_by', 'tiers', 'product_ids', 'successful', 'failed',
        'undone_at', 'undo_result', 'created_at', 'updated_at',
    ]
