"""
Models for the Orders app.

Orders created from a group carry a price snapshot taken at finalization
and are never recalculated afterwards.
"""
from django.conf import settings
from django.db import models

from common.models import TimestampedModel


class Order(TimestampedModel):
    """
    A priced order for one product, placed on behalf of a group.
    """
    class Status(models.TextChoices):
        PLACED = 'placed', 'Placed'
        CONFIRMED = 'confirmed', 'Confirmed'
        CANCELLED = 'cancelled', 'Cancelled'

    order_number = models.CharField(max_length=20, unique=True, db_index=True)
    product = models.ForeignKey(
        'products.Product',
        on_delete=models.PROTECT,
        related_name='orders',
    )
    placed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='placed_orders',
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PLACED,
        db_index=True,
    )
    list_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text='Product price at finalization, before discount.',
    )
    discount_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=0)
    tier_number = models.PositiveSmallIntegerField(null=True, blank=True)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    quantity = models.PositiveIntegerField()
    total_amount = models.DecimalField(max_digits=14, decimal_places=2)
    participant_count = models.PositiveIntegerField()

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at']

    def __str__(self):
        return f'Order {self.order_number} ({self.total_amount})'


class OrderItem(TimestampedModel):
    """
    One participant's share of a group order.
    """
    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='items',
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='order_items',
    )
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    line_total = models.DecimalField(max_digits=14, decimal_places=2)

    class Meta:
        db_table = 'order_items'
        unique_together = ['order', 'user']
        ordering = ['created_at']

    def __str__(self):
        return f'{self.user} x{self.quantity} in {self.order}'
