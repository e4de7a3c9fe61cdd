"""
URL configuration for the Products app.
"""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from apps.products.views import (
    BulkDiscountTiersUndoView,
    BulkDiscountTiersView,
    ProductDiscountTiersView,
    ProductViewSet,
)

app_name = 'products'

router = DefaultRouter()
router.register(r'products', ProductViewSet, basename='product')

urlpatterns = [
    # Explicit paths BEFORE router to avoid conflicts with router's {pk} patterns
    path(
        'products/bulk/discount-tiers/',
        BulkDiscountTiersView.as_view(),
        name='bulk-discount-tiers',
    ),
    path(
        'products/bulk/discount-tiers/undo/',
        BulkDiscountTiersUndoView.as_view(),
        name='bulk-discount-tiers-undo',
    ),
    path(
        'products/<uuid:pk>/discount-tiers/',
        ProductDiscountTiersView.as_view(),
        name='product-discount-tiers',
    ),
    path('', include(router.urls)),
]
