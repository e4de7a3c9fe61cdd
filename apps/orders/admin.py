"""
Admin configuration for the Orders app.
"""
from django.contrib import admin

from apps.orders.models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['user', 'quantity', 'unit_price', 'line_total']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = [
        'order_number', 'product', 'placed_by', 'status',
        'participant_count', 'discount_percentage', 'total_amount', 'created_at',
    ]
    list_filter = ['status', 'created_at']
    search_fields = ['order_number', 'product__name', 'placed_by__email']
    readonly_fields = [
        'order_number', 'product', 'placed_by', 'list_price', 'discount_percentage',
        'tier_number', 'unit_price', 'quantity', 'total_amount', 'participant_count',
        'created_at', 'updated_at',
    ]
    inlines = [OrderItemInline]
