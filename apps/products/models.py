"""
Models for the Products app.

``Product`` is the catalog record the group buying engine prices against.
``DiscountTier`` rows belong to a product and are always replaced as a set.
"""
from django.conf import settings
from django.db import models

from common.models import TimestampedModel


class Product(TimestampedModel):
    """
    A product sold by a vendor, optionally offered for group buying.
    """
    vendor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='products',
    )
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    price = models.DecimalField(max_digits=12, decimal_places=2)
    group_order_enabled = models.BooleanField(
        default=False,
        help_text='Set automatically when the product has discount tiers.',
    )
    max_group_size = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text='Largest group the vendor can fulfil. Caps tier membersRequired.',
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'products'
        ordering = ['-created_at']

    def __str__(self):
        return self.name


class DiscountTier(TimestampedModel):
    """
    A volume discount rule: groups of at least ``members_required`` members
    get ``discount_percentage`` off the product price.
    """
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name='discount_tiers',
    )
    tier_number = models.PositiveSmallIntegerField()
    members_required = models.PositiveIntegerField()
    discount_percentage = models.DecimalField(max_digits=5, decimal_places=2)

    class Meta:
        db_table = 'product_discount_tiers'
        ordering = ['tier_number']
        constraints = [
            models.UniqueConstraint(
                fields=['product', 'tier_number'],
                name='unique_tier_number_per_product',
            ),
            models.UniqueConstraint(
                fields=['product', 'members_required'],
                name='unique_members_required_per_product',
            ),
        ]

    def __str__(self):
        return (
            f'{self.product} tier {self.tier_number}: '
            f'{self.members_required}+ members, {self.discount_percentage}% off'
        )


class BulkTierOperation(TimestampedModel):
    """
    Ledger entry for one bulk tier apply.

    ``successful`` lists the product ids whose tiers were replaced; undo
    clears exactly those products and nothing else.
    """
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='bulk_tier_operations',
    )
    tiers = models.JSONField(default=list)
    product_ids = models.JSONField(default=list)
    successful = models.JSONField(default=list)
    failed = models.JSONField(default=list)
    undone_at = models.DateTimeField(null=True, blank=True)
    undo_result = models.JSONField(null=True, blank=True)

    class Meta:
        db_table = 'bulk_tier_operations'
        ordering = ['-created_at']

    def __str__(self):
        return (
            f'Bulk tiers by {self.created_by}: '
            f'{len(self.successful)} ok, {len(self.failed)} failed'
        )

    @property
    def is_undone(self):
        return self.undone_at is not None
