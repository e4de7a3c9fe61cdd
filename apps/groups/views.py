"""
Views for the Groups app.

Views stay thin: they validate input, call the membership or finalization
services and wrap the result. Typed service errors are rendered by the
project exception handler.
"""
import logging

from django.db.models import Q
from rest_framework import generics, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.groups.models import Group
from apps.groups.permissions import OWNER_ROLES, CanViewGroup, require_role
from apps.groups.serializers import (
    AcceptInviteSerializer,
    GroupCreateSerializer,
    GroupMemberSerializer,
    GroupSerializer,
    GroupUpdateSerializer,
    InviteCreateSerializer,
    InviteSerializer,
    JoinByCodeSerializer,
    JoinGroupSerializer,
    JoinRequestCreateSerializer,
    JoinRequestSerializer,
)
from apps.groups.services import finalization, membership
from apps.orders.serializers import OrderSerializer

logger = logging.getLogger(__name__)


class GroupViewSet(viewsets.ModelViewSet):
    """
    ViewSet for groups and their lifecycle.

    list:      GET   /api/v1/groups/?product=<id>&status=open
    create:    POST  /api/v1/groups/
    read:      GET   /api/v1/groups/{id}/
    update:    PATCH /api/v1/groups/{id}/
    join:      POST  /api/v1/groups/{id}/join/
    leave:     POST  /api/v1/groups/{id}/leave/
    finalize:  POST  /api/v1/groups/{id}/finalize/
    members:   GET   /api/v1/groups/{id}/members/
    requests:  GET|POST /api/v1/groups/{id}/requests/
    invites:   GET|POST /api/v1/groups/{id}/invites/
    """
    permission_classes = [IsAuthenticated]
    filterset_fields = ['product', 'status', 'visibility']
    http_method_names = ['get', 'post', 'patch', 'head', 'options']

    def get_queryset(self):
        user = self.request.user
        queryset = Group.objects.select_related('created_by', 'product', 'order')
        if self.action == 'list':
            queryset = queryset.filter(
                Q(visibility=Group.Visibility.PUBLIC) | Q(members__user=user),
            ).distinct()
        return queryset

    def get_serializer_class(self):
        if self.action == 'create':
            return GroupCreateSerializer
        if self.action in ('update', 'partial_update'):
            return GroupUpdateSerializer
        return GroupSerializer

    def get_permissions(self):
        if self.action in ('retrieve', 'members'):
            return [IsAuthenticated(), CanViewGroup()]
        return [IsAuthenticated()]

    def create(self, request, *args, **kwargs):
        serializer = GroupCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        group = membership.create_group(
            request.user,
            data['productId'],
            name=data['name'],
            description=data['description'],
            visibility=data['visibility'],
            requires_approval=data['requiresApproval'],
            member_limit=data.get('memberLimit'),
            finalization_deadline=data.get('finalizationDeadline'),
            quantity=data['quantity'],
        )
        return Response(
            {
                'success': True,
                'data': GroupSerializer(group, context={'show_access_code': True}).data,
            },
            status=status.HTTP_201_CREATED,
        )

    def retrieve(self, request, *args, **kwargs):
        instance = self.get_object()
        serializer = GroupSerializer(instance, context={'request': request})
        return Response({'success': True, 'data': serializer.data})

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        serializer = GroupSerializer(queryset, many=True, context={'request': request})
        return Response({'success': True, 'data': serializer.data})

    def partial_update(self, request, *args, **kwargs):
        instance = self.get_object()
        require_role(request.user, instance, OWNER_ROLES)
        serializer = GroupUpdateSerializer(instance, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({
            'success': True,
            'data': GroupSerializer(instance, context={'request': request}).data,
        })

    @action(detail=True, methods=['post'])
    def join(self, request, pk=None):
        """Join directly; private groups need ``accessCode``."""
        serializer = JoinGroupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        group, _ = membership.join_group(
            request.user,
            pk,
            access_code=serializer.validated_data.get('accessCode'),
            quantity=serializer.validated_data['quantity'],
        )
        return Response({
            'success': True,
            'data': GroupSerializer(group, context={'request': request}).data,
            'message': f'Successfully joined {group.name}.',
        })

    @action(detail=True, methods=['post'])
    def leave(self, request, pk=None):
        deleted = membership.leave(request.user, pk)
        message = 'Group deleted.' if deleted else 'Successfully left the group.'
        return Response({'success': True, 'message': message})

    @action(detail=True, methods=['post'])
    def finalize(self, request, pk=None):
        """Creator or admin only. Returns the created order."""
        order = finalization.finalize(request.user, pk)
        return Response(
            {
                'success': True,
                'data': OrderSerializer(order).data,
                'message': f'Order {order.order_number} placed with {order.participant_count} participants.',
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=['get'])
    def members(self, request, pk=None):
        group = self.get_object()
        queryset = group.members.select_related('user')
        return Response({
            'success': True,
            'data': GroupMemberSerializer(queryset, many=True).data,
        })

    @action(detail=True, methods=['get', 'post'])
    def requests(self, request, pk=None):
        """
        GET lists pending requests (creator/admin); POST submits a request.
        """
        if request.method == 'GET':
            group = self.get_object()
            require_role(request.user, group, OWNER_ROLES)
            pending = group.join_requests.filter(status='pending').select_related('user')
            return Response({
                'success': True,
                'data': JoinRequestSerializer(pending, many=True).data,
            })

        serializer = JoinRequestCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        join_request = membership.request_join(
            request.user,
            pk,
            message=serializer.validated_data['message'],
            quantity=serializer.validated_data['quantity'],
        )
        return Response(
            {'success': True, 'data': JoinRequestSerializer(join_request).data},
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=['get', 'post'])
    def invites(self, request, pk=None):
        """
        GET lists pending invites (creator/admin); POST sends an invite.
        """
        if request.method == 'GET':
            group = self.get_object()
            require_role(request.user, group, OWNER_ROLES)
            pending = group.invites.filter(status='pending')
            return Response({
                'success': True,
                'data': InviteSerializer(pending, many=True).data,
            })

        serializer = InviteCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        created = membership.invite(request.user, pk, serializer.validated_data['identifier'])
        return Response(
            {'success': True, 'data': InviteSerializer(created).data},
            status=status.HTTP_201_CREATED,
        )


class JoinByCodeView(generics.CreateAPIView):
    """
    Join a private group using only its access code.

    POST /api/v1/groups/join/
    """
    serializer_class = JoinByCodeSerializer
    permission_classes = [IsAuthenticated]

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        group, _ = membership.join_by_code(
            request.user,
            serializer.validated_data['accessCode'],
            quantity=serializer.validated_data['quantity'],
        )
        return Response(
            {
                'success': True,
                'data': GroupSerializer(group, context={'request': request}).data,
                'message': f'Successfully joined {group.name}.',
            },
            status=status.HTTP_201_CREATED,
        )


class JoinRequestDecisionView(APIView):
    """
    Approve or reject a join request.

    POST /api/v1/groups/{group_id}/requests/{request_id}/approve/
    POST /api/v1/groups/{group_id}/requests/{request_id}/reject/
    """
    permission_classes = [IsAuthenticated]
    decision = None

    def post(self, request, group_pk=None, pk=None):
        if self.decision == 'approve':
            join_request, _ = membership.approve_request(request.user, pk, group_id=group_pk)
            message = 'Join request approved.'
        else:
            join_request = membership.reject_request(request.user, pk, group_id=group_pk)
            message = 'Join request rejected.'
        return Response({
            'success': True,
            'data': JoinRequestSerializer(join_request).data,
            'message': message,
        })


class AcceptInviteView(APIView):
    """
    Accept an invite and join its group.

    POST /api/v1/invites/{token}/accept/
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, token=None):
        serializer = AcceptInviteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        group, _ = membership.accept_invite(
            request.user,
            token,
            quantity=serializer.validated_data['quantity'],
        )
        return Response({
            'success': True,
            'data': GroupSerializer(group, context={'request': request}).data,
            'message': f'Successfully joined {group.name}.',
        })


class CancelInviteView(APIView):
    """
    Cancel a pending invite.

    POST /api/v1/invites/{token}/cancel/
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, token=None):
        cancelled = membership.cancel_invite(request.user, token)
        return Response({
            'success': True,
            'data': InviteSerializer(cancelled).data,
            'message': 'Invite cancelled.',
        })
