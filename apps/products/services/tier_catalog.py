"""
Tier Catalog: validation, replacement and lookup of a product's discount tiers.

A product's tier set is always replaced wholesale inside one transaction;
it is never patched tier by tier.
"""
import logging
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.core.cache import cache
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from apps.products.models import DiscountTier, Product
from common.exceptions import ActionForbidden, ResourceNotFound, TierValidationError

logger = logging.getLogger(__name__)

MAX_TIERS = getattr(settings, 'GROUP_BUY_MAX_TIERS', 3)
MIN_MEMBERS_PER_TIER = getattr(settings, 'GROUP_BUY_MIN_MEMBERS_PER_TIER', 3)
MAX_MEMBERS_PER_TIER = getattr(settings, 'GROUP_BUY_MAX_MEMBERS_PER_TIER', 1000)
TIER_CACHE_TIMEOUT = getattr(settings, 'GROUP_BUY_TIER_CACHE_TIMEOUT', 300)


def _cache_key(product_id):
    return f'products:{product_id}:discount-tiers'


def members_upper_bound(product=None):
    """Largest ``members_required`` allowed for *product*."""
    bound = MAX_MEMBERS_PER_TIER
    if product is not None and product.max_group_size:
        bound = min(bound, product.max_group_size)
    return bound


def validate_tiers(tiers, product=None):
    """
    Validate a tier configuration and return it normalized.

    Parameters
    ----------
    tiers : list[dict]
        Each item has ``members_required`` and ``discount_percentage``,
        listed in ascending order.
    product : Product | None
        When given, its ``max_group_size`` further caps ``members_required``.

    Returns
    -------
    list[dict]
        ``[{'tier_number', 'members_required', 'discount_percentage'}]`` with
        ``int`` and ``Decimal`` values.

    Raises
    ------
    TierValidationError
        On the first violation. The list is never reordered or repaired.
    """
    if tiers is None:
        tiers = []
    if len(tiers) > MAX_TIERS:
        raise TierValidationError(f'At most {MAX_TIERS} discount tiers are allowed.')

    upper = members_upper_bound(product)
    normalized = []
    for index, raw in enumerate(tiers):
        tier_number = index + 1
        try:
            members = raw['members_required']
            if isinstance(members, bool):
                raise ValueError
            if isinstance(members, str):
                members = int(members.strip())
            elif int(members) != members:
                raise ValueError
            members = int(members)
            discount = raw['discount_percentage']
            if isinstance(discount, bool):
                raise ValueError
            discount = Decimal(str(discount).strip())
        except (KeyError, TypeError, ValueError, OverflowError, InvalidOperation):
            raise TierValidationError(
                f'Tier {tier_number}: membersRequired must be a whole number and '
                f'discountPercentage a number.',
                tier_number=tier_number,
            )

        if members < MIN_MEMBERS_PER_TIER or members > upper:
            raise TierValidationError(
                f'Tier {tier_number}: membersRequired must be between '
                f'{MIN_MEMBERS_PER_TIER} and {upper}.',
                tier_number=tier_number,
            )
        if not discount.is_finite() or discount <= 0 or discount > 100:
            raise TierValidationError(
                f'Tier {tier_number}: discountPercentage must be greater than 0 and at most 100.',
                tier_number=tier_number,
            )
        if discount.as_tuple().exponent < -2:
            raise TierValidationError(
                f'Tier {tier_number}: discountPercentage allows at most two decimal places.',
                tier_number=tier_number,
            )

        if normalized:
            previous = normalized[-1]
            if members <= previous['members_required']:
                raise TierValidationError(
                    f'Tier {tier_number}: membersRequired must be greater than '
                    f'tier {tier_number - 1} ({previous["members_required"]}).',
                    tier_number=tier_number,
                )
            if discount <= previous['discount_percentage']:
                raise TierValidationError(
                    f'Tier {tier_number}: discountPercentage must be greater than '
                    f'tier {tier_number - 1} ({previous["discount_percentage"]}).',
                    tier_number=tier_number,
                )

        normalized.append({
            'tier_number': tier_number,
            'members_required': members,
            'discount_percentage': discount,
        })
    return normalized


def check_can_manage(actor, product):
    """Only the product's vendor or a platform admin may change its tiers."""
    if actor is None:
        return
    if actor.is_platform_admin or product.vendor_id == actor.id:
        return
    raise ActionForbidden('Only the product vendor can manage its discount tiers.')


def _lock_product(product_id):
    try:
        return Product.objects.select_for_update().get(pk=product_id)
    except (Product.DoesNotExist, DjangoValidationError, ValueError):
        raise ResourceNotFound('Product not found.')


def set_tiers(product_id, tiers, actor=None):
    """
    Replace the product's tier set and toggle ``group_order_enabled``.

    All-or-nothing for this product: validation runs before anything is
    deleted, and delete + insert + flag update share one transaction.
    """
    with transaction.atomic():
        product = _lock_product(product_id)
        check_can_manage(actor, product)
        normalized = validate_tiers(tiers, product=product)

        DiscountTier.objects.filter(product=product).delete()
        created = DiscountTier.objects.bulk_create([
            DiscountTier(product=product, **tier) for tier in normalized
        ])

        enabled = bool(created)
        if product.group_order_enabled != enabled:
            product.group_order_enabled = enabled
            product.save(update_fields=['group_order_enabled', 'updated_at'])

        key = _cache_key(product.pk)
        cache.delete(key)
        # Readers may re-cache pre-commit rows until this commits.
        transaction.on_commit(lambda: cache.delete(key))

    logger.info(
        'Discount tiers replaced for product %s: %d tier(s), group orders %s',
        product.pk,
        len(created),
        'enabled' if enabled else 'disabled',
    )
    return created


def clear_tiers(product_id, actor=None):
    """Remove every tier from the product and disable group orders."""
    return set_tiers(product_id, [], actor=actor)


def get_tiers(product_id):
    """
    Return the product's tiers ordered by ``tier_number``.

    Served from cache when possible; the database stays the source of truth
    and writers invalidate the entry on commit.
    """
    key = _cache_key(product_id)
    tiers = cache.get(key)
    if tiers is None:
        tiers = list(
            DiscountTier.objects.filter(product_id=product_id).order_by('tier_number')
        )
        cache.set(key, tiers, TIER_CACHE_TIMEOUT)
    return tiers
