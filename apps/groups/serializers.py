"""
Serializers for the Groups app.
All output uses camelCase to match the web client.
"""
from django.conf import settings
from django.utils import timezone
from rest_framework import serializers

from apps.groups.models import Group, GroupMember, Invite, JoinRequest
from apps.groups.permissions import actor_roles
from apps.groups.services.finalization import time_remaining
from apps.groups.utils import format_duration
from apps.products.serializers import DiscountTierSerializer
from apps.products.services.tier_catalog import get_tiers
from apps.products.services.tier_resolver import next_tier, resolve_tier
from apps.users.serializers import UserSummarySerializer

MAX_MEMBER_QUANTITY = getattr(settings, 'GROUP_BUY_MAX_MEMBER_QUANTITY', 100)


class GroupMemberSerializer(serializers.ModelSerializer):
    userId = serializers.CharField(source='user.id', read_only=True)
    groupId = serializers.CharField(source='group.id', read_only=True)
    user = UserSummarySerializer(read_only=True)
    joinedAt = serializers.DateTimeField(source='joined_at', read_only=True)

    class Meta:
        model = GroupMember
        fields = ['id', 'userId', 'groupId', 'role', 'quantity', 'user', 'joinedAt']
        read_only_fields = fields


class GroupSerializer(serializers.ModelSerializer):
    """
    Group detail including the live discount picture: current tier, next
    tier and countdown. The access code is shown only to people already
    inside the group.
    """
    productId = serializers.CharField(source='product.id', read_only=True)
    createdBy = serializers.CharField(source='created_by.id', read_only=True)
    requiresApproval = serializers.BooleanField(source='requires_approval', read_only=True)
    accessCode = serializers.SerializerMethodField()
    memberLimit = serializers.IntegerField(source='member_limit', read_only=True)
    memberCount = serializers.ReadOnlyField(source='member_count')
    status = serializers.SerializerMethodField()
    finalizationDeadline = serializers.DateTimeField(source='finalization_deadline', read_only=True)
    finalizedAt = serializers.DateTimeField(source='finalized_at', read_only=True)
    orderId = serializers.CharField(source='order_id', read_only=True, allow_null=True)
    timeRemaining = serializers.SerializerMethodField()
    currentTier = serializers.SerializerMethodField()
    nextTier = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Group
        fields = [
            'id', 'name', 'description', 'productId', 'createdBy', 'visibility',
            'requiresApproval', 'accessCode', 'memberLimit', 'memberCount', 'status',
            'finalizationDeadline', 'finalizedAt', 'orderId', 'timeRemaining',
            'currentTier', 'nextTier', 'createdAt',
        ]
        read_only_fields = fields

    def _tiers(self, obj):
        cache = self.context.setdefault('_tiers', {})
        if obj.product_id not in cache:
            cache[obj.product_id] = get_tiers(obj.product_id)
        return cache[obj.product_id]

    def get_accessCode(self, obj):
        if not obj.access_code:
            return None
        if self.context.get('show_access_code'):
            return obj.access_code
        request = self.context.get('request')
        if request is not None and actor_roles(request.user, obj):
            return obj.access_code
        return None

    def get_status(self, obj):
        return obj.effective_status()

    def get_timeRemaining(self, obj):
        remaining = time_remaining(obj)
        if isinstance(remaining, str):
            return {'state': remaining, 'seconds': None, 'display': None}
        return {
            'state': 'open',
            'seconds': int(remaining.total_seconds()),
            'display': format_duration(remaining),
        }

    def get_currentTier(self, obj):
        if obj.order_id is not None:
            # Finalized: report the tier the order was priced at.
            order = obj.order
            if order.tier_number is None:
                return None
            return {
                'tierNumber': order.tier_number,
                'discountPercentage': f'{order.discount_percentage:.2f}',
            }
        tier = resolve_tier(obj.member_count, self._tiers(obj))
        if tier is None:
            return None
        return DiscountTierSerializer(tier).data

    def get_nextTier(self, obj):
        if obj.order_id is not None:
            return None
        upcoming = next_tier(obj.member_count, self._tiers(obj))
        if upcoming is None:
            return None
        tier, needed = upcoming
        data = DiscountTierSerializer(tier).data
        data['membersNeeded'] = needed
        return data


class GroupCreateSerializer(serializers.Serializer):
    productId = serializers.UUIDField()
    name = serializers.CharField(max_length=100)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    visibility = serializers.ChoiceField(choices=Group.Visibility.choices, default=Group.Visibility.PUBLIC)
    requiresApproval = serializers.BooleanField(required=False, default=False)
    memberLimit = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    finalizationDeadline = serializers.DateTimeField(required=False, allow_null=True)
    quantity = serializers.IntegerField(
        required=False, default=1, min_value=1, max_value=MAX_MEMBER_QUANTITY,
    )

    def validate_finalizationDeadline(self, value):
        if value is not None and value <= timezone.now():
            raise serializers.ValidationError('The finalization deadline must be in the future.')
        return value


class GroupUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Group
        fields = ['name', 'description']


class JoinGroupSerializer(serializers.Serializer):
    accessCode = serializers.CharField(max_length=8, required=False, allow_blank=True)
    quantity = serializers.IntegerField(
        required=False, default=1, min_value=1, max_value=MAX_MEMBER_QUANTITY,
    )


class JoinByCodeSerializer(serializers.Serializer):
    accessCode = serializers.CharField(max_length=8, required=True)
    quantity = serializers.IntegerField(
        required=False, default=1, min_value=1, max_value=MAX_MEMBER_QUANTITY,
    )


class JoinRequestCreateSerializer(serializers.Serializer):
    message = serializers.CharField(required=False, allow_blank=True, default='', max_length=1000)
    quantity = serializers.IntegerField(
        required=False, default=1, min_value=1, max_value=MAX_MEMBER_QUANTITY,
    )


class JoinRequestSerializer(serializers.ModelSerializer):
    groupId = serializers.CharField(source='group.id', read_only=True)
    userId = serializers.CharField(source='user.id', read_only=True)
    requestedAt = serializers.DateTimeField(source='requested_at', read_only=True)
    reviewedAt = serializers.DateTimeField(source='reviewed_at', read_only=True)
    reviewedBy = serializers.CharField(source='reviewed_by_id', read_only=True, allow_null=True)

    class Meta:
        model = JoinRequest
        fields = [
            'id', 'groupId', 'userId', 'message', 'quantity', 'status',
            'requestedAt', 'reviewedAt', 'reviewedBy',
        ]
        read_only_fields = fields


class InviteCreateSerializer(serializers.Serializer):
    identifier = serializers.CharField(max_length=254)

    def validate_identifier(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('An email address or username is required.')
        return value


class InviteSerializer(serializers.ModelSerializer):
    groupId = serializers.CharField(source='group.id', read_only=True)
    invitedBy = serializers.CharField(source='invited_by_id', read_only=True)
    invitedIdentifier = serializers.CharField(source='invited_identifier', read_only=True)
    expiresAt = serializers.DateTimeField(source='expires_at', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Invite
        fields = [
            'id', 'groupId', 'invitedBy', 'invitedIdentifier', 'token',
            'status', 'expiresAt', 'createdAt',
        ]
        read_only_fields = fields


class AcceptInviteSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(
        required=False, default=1, min_value=1, max_value=MAX_MEMBER_QUANTITY,
    )
