"""
Pure functions for picking the discount tier a group qualifies for.

Tiers are any objects exposing ``tier_number``, ``members_required`` and
``discount_percentage`` (``DiscountTier`` instances in practice). Nothing
here touches the database.
"""
from decimal import ROUND_HALF_UP, Decimal

CENTS = Decimal('0.01')


def resolve_tier(member_count, tiers):
    """
    Return the highest tier a group of *member_count* members qualifies for.

    Parameters
    ----------
    member_count : int
        Current number of members in the group.
    tiers : iterable
        The product's discount tiers, in any order.

    Returns
    -------
    DiscountTier | None
        The qualifying tier with the largest ``members_required``, or
        ``None`` when no tier is reached (full price).
    """
    best = None
    for tier in tiers:
        if tier.members_required > member_count:
            continue
        if best is None or tier.members_required > best.members_required:
            best = tier
    return best


def discount_for(member_count, tiers):
    """Discount percentage for *member_count* members, ``Decimal('0')`` if none."""
    tier = resolve_tier(member_count, tiers)
    if tier is None:
        return Decimal('0')
    return Decimal(str(tier.discount_percentage))


def next_tier(member_count, tiers):
    """
    Return ``(tier, members_needed)`` for the lowest tier not yet reached,
    or ``None`` once the group is at the top tier.
    """
    pending = [t for t in tiers if t.members_required > member_count]
    if not pending:
        return None
    tier = min(pending, key=lambda t: t.members_required)
    return tier, tier.members_required - member_count


def apply_discount(price, discount_percentage):
    """
    Unit price after taking *discount_percentage* off *price*, rounded to cents.
    """
    price = Decimal(str(price))
    pct = Decimal(str(discount_percentage or 0))
    discounted = price * (Decimal('100') - pct) / Decimal('100')
    return discounted.quantize(CENTS, rounding=ROUND_HALF_UP)
