"""
Order creation used by group finalization.
"""
import logging
import secrets
import string

from apps.orders.models import Order, OrderItem

logger = logging.getLogger(__name__)


def generate_order_number(length=8):
    """Return a unique order number such as ``GB-7K2Q9XWA``."""
    alphabet = string.ascii_uppercase + string.digits
    while True:
        number = 'GB-' + ''.join(secrets.choice(alphabet) for _ in range(length))
        if not Order.objects.filter(order_number=number).exists():
            return number


def create_group_order(*, product, placed_by, pricing, lines):
    """
    Create an order and its items from a finalization snapshot.

    Parameters
    ----------
    product : Product
    placed_by : User
        The group creator or admin who finalized the group.
    pricing : dict
        ``list_price``, ``discount_percentage``, ``tier_number``,
        ``unit_price``, ``quantity`` and ``total_amount``.
    lines : list[dict]
        ``{'user', 'quantity', 'line_total'}`` per participant.

    Must be called inside the caller's transaction.
    """
    order = Order.objects.create(
        order_number=generate_order_number(),
        product=product,
        placed_by=placed_by,
        list_price=pricing['list_price'],
        discount_percentage=pricing['discount_percentage'],
        tier_number=pricing['tier_number'],
        unit_price=pricing['unit_price'],
        quantity=pricing['quantity'],
        total_amount=pricing['total_amount'],
        participant_count=len(lines),
    )
    OrderItem.objects.bulk_create([
        OrderItem(
            order=order,
            user=line['user'],
            quantity=line['quantity'],
            unit_price=pricing['unit_price'],
            line_total=line['line_total'],
        )
        for line in lines
    ])
    logger.info(
        'Order %s created for product %s: %d participants, total %s',
        order.order_number,
        product.pk,
        len(lines),
        order.total_amount,
    )
    return order
