"""
URL configuration for the Orders app.
"""
from django.urls import path

from apps.orders.views import OrderDetailView, OrderListView

app_name = 'orders'

urlpatterns = [
    path('orders/', OrderListView.as_view(), name='order-list'),
    path('orders/<uuid:pk>/', OrderDetailView.as_view(), name='order-detail'),
]
