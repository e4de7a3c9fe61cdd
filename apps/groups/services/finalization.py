"""
Finalization Engine: the group's lifecycle clock and its one-way
transition from pooling to a priced order.
"""
import logging
from decimal import Decimal

from django.utils import timezone

from apps.groups.models import Group, Invite
from apps.groups.permissions import OWNER_ROLES, require_role
from apps.groups.services.locking import ensure_open, locked_group
from apps.orders.services import create_group_order
from apps.products.models import DiscountTier
from apps.products.services.tier_resolver import apply_discount, resolve_tier
from common.exceptions import Conflict

logger = logging.getLogger(__name__)

# Order.total_amount holds 14 digits with 2 decimal places.
MAX_ORDER_TOTAL = Decimal('1000000000000')
MAX_ORDER_QUANTITY = 2147483647

EXPIRED = 'expired'
FINALIZED = 'finalized'
NO_DEADLINE = 'no_deadline'


def time_remaining(group, now=None):
    """
    Time left until the group's finalization deadline.

    Returns a positive ``timedelta``, ``FINALIZED`` once the group has been
    turned into an order, ``EXPIRED`` once the deadline has been reached, or
    ``NO_DEADLINE`` when the group has none. Read-only.
    """
    if group.status == Group.Status.FINALIZED:
        return FINALIZED
    if group.finalization_deadline is None:
        return NO_DEADLINE
    now = now or timezone.now()
    if group.status == Group.Status.EXPIRED or now >= group.finalization_deadline:
        return EXPIRED
    return group.finalization_deadline - now


def price_group_order(list_price, tier, members):
    """
    Build the pricing snapshot and per-member lines for a group order.

    Parameters
    ----------
    list_price : Decimal
        Current product price.
    tier : DiscountTier | None
        Tier resolved for the live member count; ``None`` means full price.
    members : list[GroupMember]

    Returns
    -------
    tuple[dict, list[dict]]
        ``(pricing, lines)`` as accepted by ``create_group_order``.
    """
    discount = Decimal(str(tier.discount_percentage)) if tier else Decimal('0')
    unit_price = apply_discount(list_price, discount)

    lines = []
    total_quantity = 0
    for member in members:
        total_quantity += member.quantity
        lines.append({
            'user': member.user,
            'quantity': member.quantity,
            'line_total': unit_price * member.quantity,
        })

    pricing = {
        'list_price': Decimal(str(list_price)),
        'discount_percentage': discount,
        'tier_number': tier.tier_number if tier else None,
        'unit_price': unit_price,
        'quantity': total_quantity,
        'total_amount': unit_price * total_quantity,
    }
    return pricing, lines


def finalize(actor, group_id, now=None):
    """
    Convert an open group into an order at its current discount.

    Runs under the group lock, so the member count used for tier resolution
    is the same one that ends up in the order. A second call fails with
    ``Conflict`` and never creates another order.
    """
    now = now or timezone.now()
    with locked_group(group_id) as group:
        require_role(actor, group, OWNER_ROLES)
        if group.order_id is not None:
            raise Conflict('This group has already been finalized.')
        ensure_open(group, now=now, finalized_error=Conflict)

        members = list(group.members.select_related('user').order_by('joined_at'))
        product = group.product
        tiers = list(DiscountTier.objects.filter(product=product).order_by('tier_number'))
        tier = resolve_tier(len(members), tiers)
        pricing, lines = price_group_order(product.price, tier, members)
        if pricing['total_amount'] >= MAX_ORDER_TOTAL or pricing['quantity'] > MAX_ORDER_QUANTITY:
            raise Conflict('The order is too large to place. Members must reduce their quantities.')

        order = create_group_order(
            product=product,
            placed_by=actor,
            pricing=pricing,
            lines=lines,
        )

        group.order = order
        group.finalized_at = now
        group.status = Group.Status.FINALIZED
        group.save(update_fields=['order', 'finalized_at', 'status', 'updated_at'])

    logger.info(
        'Group %s finalized by %s: %d members, tier %s, order %s',
        group.pk,
        actor.pk,
        len(members),
        pricing['tier_number'],
        order.order_number,
    )
    return order


def expire_overdue_groups(now=None):
    """
    Label open groups past their deadline as expired.

    Housekeeping only: writes already reject overdue groups on their own.
    Returns the number of groups updated.
    """
    now = now or timezone.now()
    updated = Group.objects.filter(
        status=Group.Status.OPEN,
        finalization_deadline__isnull=False,
        finalization_deadline__lte=now,
    ).update(status=Group.Status.EXPIRED, updated_at=now)
    if updated:
        logger.info('Marked %d overdue group(s) as expired', updated)
    return updated


def expire_stale_invites(now=None):
    """Label pending invites past ``expires_at`` as expired."""
    now = now or timezone.now()
    updated = Invite.objects.filter(
        status=Invite.Status.PENDING,
        expires_at__lte=now,
    ).update(status=Invite.Status.EXPIRED, updated_at=now)
    if updated:
        logger.info('Marked %d stale invite(s) as expired', updated)
    return updated
