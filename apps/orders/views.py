"""
Views for the Orders app.
"""
from django.db.models import Q
from rest_framework import generics
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.orders.models import Order
from apps.orders.serializers import OrderSerializer


class OrderListView(generics.ListAPIView):
    """
    Orders the user takes part in.

    GET /api/v1/orders/
    """
    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return Order.objects.filter(
            Q(items__user=self.request.user) | Q(placed_by=self.request.user),
        ).select_related('product', 'placed_by').prefetch_related('items__user').distinct()

    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return Response({'success': True, 'data': serializer.data})


class OrderDetailView(generics.RetrieveAPIView):
    """
    A single order, visible to its participants, the product vendor and admins.

    GET /api/v1/orders/{id}/
    """
    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        queryset = Order.objects.select_related('product', 'placed_by').prefetch_related('items__user')
        user = self.request.user
        if user.is_platform_admin:
            return queryset
        return queryset.filter(
            Q(items__user=user) | Q(placed_by=user) | Q(product__vendor=user),
        ).distinct()

    def retrieve(self, request, *args, **kwargs):
        instance = self.get_object()
        return Response({'success': True, 'data': OrderSerializer(instance).data})
