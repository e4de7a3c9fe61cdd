"""
Serializers for the Products app.
All output uses camelCase to match the web client.
"""
from rest_framework import serializers

from apps.products.models import BulkTierOperation, DiscountTier, Product


class DiscountTierSerializer(serializers.ModelSerializer):
    tierNumber = serializers.IntegerField(source='tier_number', read_only=True)
    membersRequired = serializers.IntegerField(source='members_required', read_only=True)
    discountPercentage = serializers.DecimalField(
        source='discount_percentage',
        max_digits=5,
        decimal_places=2,
        read_only=True,
    )

    class Meta:
        model = DiscountTier
        fields = ['id', 'tierNumber', 'membersRequired', 'discountPercentage']
        read_only_fields = fields


TIER_INPUT_KEYS = {
    'membersRequired': 'members_required',
    'discountPercentage': 'discount_percentage',
}


class DiscountTierListField(serializers.ListField):
    """
    Submitted tiers, renamed to model keys but otherwise untouched.

    Types, ranges, count and ordering are all checked by the tier catalog so
    that every rejection carries the offending tier number.
    """

    def to_internal_value(self, data):
        tiers = super().to_internal_value(data)
        return [
            {TIER_INPUT_KEYS.get(key, key): value for key, value in tier.items()}
            if isinstance(tier, dict) else tier
            for tier in tiers
        ]


class DiscountTiersUpdateSerializer(serializers.Serializer):
    discountTiers = DiscountTierListField(allow_empty=True)


class BulkDiscountTiersSerializer(serializers.Serializer):
    productIds = serializers.ListField(
        child=serializers.UUIDField(),
        allow_empty=False,
    )
    discountTiers = DiscountTierListField(allow_empty=False)


class BulkDiscountTiersUndoSerializer(serializers.Serializer):
    productIds = serializers.ListField(
        child=serializers.UUIDField(),
        allow_empty=False,
    )


class BulkTierOperationSerializer(serializers.ModelSerializer):
    operationId = serializers.CharField(source='id', read_only=True)
    productIds = serializers.ListField(source='product_ids', read_only=True)
    discountTiers = serializers.ListField(source='tiers', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = BulkTierOperation
        fields = ['operationId', 'productIds', 'discountTiers', 'successful', 'failed', 'createdAt']
        read_only_fields = fields


class ProductSerializer(serializers.ModelSerializer):
    vendorId = serializers.CharField(source='vendor.id', read_only=True)
    groupOrderEnabled = serializers.BooleanField(source='group_order_enabled', read_only=True)
    maxGroupSize = serializers.IntegerField(source='max_group_size', read_only=True)
    discountTiers = DiscountTierSerializer(source='discount_tiers', many=True, read_only=True)

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'description', 'price', 'vendorId',
            'groupOrderEnabled', 'maxGroupSize', 'discountTiers',
        ]
        read_only_fields = fields
