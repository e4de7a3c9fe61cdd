"""
Serializers for the Orders app.
"""
from rest_framework import serializers

from apps.orders.models import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    userId = serializers.CharField(source='user.id', read_only=True)
    unitPrice = serializers.DecimalField(source='unit_price', max_digits=12, decimal_places=2, read_only=True)
    lineTotal = serializers.DecimalField(source='line_total', max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = ['id', 'userId', 'quantity', 'unitPrice', 'lineTotal']
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    orderNumber = serializers.CharField(source='order_number', read_only=True)
    productId = serializers.CharField(source='product.id', read_only=True)
    placedBy = serializers.CharField(source='placed_by.id', read_only=True)
    listPrice = serializers.DecimalField(source='list_price', max_digits=12, decimal_places=2, read_only=True)
    discountPercentage = serializers.DecimalField(
        source='discount_percentage', max_digits=5, decimal_places=2, read_only=True,
    )
    tierNumber = serializers.IntegerField(source='tier_number', read_only=True, allow_null=True)
    unitPrice = serializers.DecimalField(source='unit_price', max_digits=12, decimal_places=2, read_only=True)
    totalAmount = serializers.DecimalField(source='total_amount', max_digits=14, decimal_places=2, read_only=True)
    participantCount = serializers.IntegerField(source='participant_count', read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'orderNumber', 'productId', 'placedBy', 'status', 'listPrice',
            'discountPercentage', 'tierNumber', 'unitPrice', 'quantity',
            'totalAmount', 'participantCount', 'items', 'createdAt',
        ]
        read_only_fields = fields
