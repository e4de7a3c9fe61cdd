"""
Views for the Products app.

Product CRUD lives elsewhere; this app exposes read access to the catalog
and the discount tier endpoints of the group buying engine.
"""
import logging

from rest_framework import status, viewsets
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.products.models import Product
from apps.products.serializers import (
    BulkDiscountTiersSerializer,
    BulkDiscountTiersUndoSerializer,
    BulkTierOperationSerializer,
    DiscountTierSerializer,
    DiscountTiersUpdateSerializer,
    ProductSerializer,
)
from apps.products.services.bulk_tiers import apply_bulk_tiers, undo_bulk_tiers
from apps.products.services.tier_catalog import get_tiers, set_tiers
from common.permissions import IsVendorOrAdmin

logger = logging.getLogger(__name__)


class ProductViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Read-only product catalog.

    list: GET /api/v1/products/?groupOrder=true
    read: GET /api/v1/products/{id}/
    """
    serializer_class = ProductSerializer
    permission_classes = [AllowAny]

    def get_queryset(self):
        queryset = Product.objects.filter(is_active=True).select_related(
            'vendor'
        ).prefetch_related('discount_tiers')

        group_order = self.request.query_params.get('groupOrder')
        if group_order is not None:
            queryset = queryset.filter(group_order_enabled=group_order.lower() == 'true')
        return queryset

    def retrieve(self, request, *args, **kwargs):
        instance = self.get_object()
        return Response({'success': True, 'data': ProductSerializer(instance).data})

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        serializer = ProductSerializer(queryset, many=True)
        return Response({'success': True, 'data': serializer.data})


class ProductDiscountTiersView(APIView):
    """
    Read or replace one product's discount tiers.

    GET /api/v1/products/{id}/discount-tiers/
    PUT /api/v1/products/{id}/discount-tiers/
    Body: {"discountTiers": [{"membersRequired": 5, "discountPercentage": "10"}]}

    An empty list clears the tiers and disables group orders.
    """

    def get_permissions(self):
        if self.request.method == 'GET':
            return [AllowAny()]
        return [IsAuthenticated()]

    def get(self, request, pk):
        tiers = get_tiers(pk)
        return Response({
            'success': True,
            'data': DiscountTierSerializer(tiers, many=True).data,
        })

    def put(self, request, pk):
        serializer = DiscountTiersUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        tiers = set_tiers(pk, serializer.validated_data['discountTiers'], actor=request.user)
        return Response({
            'success': True,
            'data': DiscountTierSerializer(tiers, many=True).data,
        })


class BulkDiscountTiersView(APIView):
    """
    Apply one tier configuration to many products.

    POST /api/v1/products/bulk/discount-tiers/
    Body: {"productIds": [...], "discountTiers": [...]}

    Partial success is a normal outcome and is returned with 200.
    """
    permission_classes = [IsAuthenticated, IsVendorOrAdmin]

    def post(self, request):
        serializer = BulkDiscountTiersSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        operation = apply_bulk_tiers(
            request.user,
            serializer.validated_data['productIds'],
            serializer.validated_data['discountTiers'],
        )
        return Response(
            {
                'success': True,
                'data': BulkTierOperationSerializer(operation).data,
                'message': (
                    f'{len(operation.successful)} products updated, '
                    f'{len(operation.failed)} failed.'
                ),
            },
            status=status.HTTP_200_OK,
        )


class BulkDiscountTiersUndoView(APIView):
    """
    Undo the caller's most recent bulk tier apply.

    POST /api/v1/products/bulk/discount-tiers/undo/
    Body: {"productIds": [...]}
    """
    permission_classes = [IsAuthenticated, IsVendorOrAdmin]

    def post(self, request):
        serializer = BulkDiscountTiersUndoSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        operation, result = undo_bulk_tiers(
            request.user,
            serializer.validated_data['productIds'],
        )
        return Response({
            'success': True,
            'data': {'operationId': str(operation.pk), **result},
            'message': (
                f'{len(result["successful"])} products reverted, '
                f'{len(result["failed"])} failed.'
            ),
        })
