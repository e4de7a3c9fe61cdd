"""
Bulk Tier Applier: apply one tier configuration to many products.

Each product is replaced in its own transaction, so a failure on one
product never aborts the others. The outcome is recorded as a
``BulkTierOperation``; undo is a best-effort compensating pass over the
products that operation changed. Undo does not restore the tiers that
existed before the apply.
"""
import logging

from django.db import transaction
from django.utils import timezone

from apps.products.models import BulkTierOperation
from apps.products.services.tier_catalog import clear_tiers, set_tiers, validate_tiers
from common.exceptions import Conflict, ResourceNotFound, TierValidationError, error_payload

logger = logging.getLogger(__name__)


def _unique_ids(product_ids):
    return list(dict.fromkeys(str(pid) for pid in product_ids))


def _serializable_tiers(tiers):
    return [
        {
            'membersRequired': tier.get('members_required'),
            'discountPercentage': str(tier.get('discount_percentage')),
        }
        for tier in tiers
    ]


def apply_bulk_tiers(actor, product_ids, tiers):
    """
    Replace the tiers of every product in *product_ids* with *tiers*.

    Returns the saved ``BulkTierOperation``; its ``successful`` and ``failed``
    lists describe the per-product outcome. Any exception raised while
    handling one product is recorded against that product and not
    propagated. A malformed configuration is rejected as a whole with
    ``TierValidationError`` before any product is touched.
    """
    if not tiers:
        raise TierValidationError('At least one discount tier is required for a bulk apply.')
    # Product-specific bounds are checked again per product by set_tiers.
    tiers = validate_tiers(tiers)

    successful = []
    failed = []
    for product_id in _unique_ids(product_ids):
        try:
            set_tiers(product_id, tiers, actor=actor)
        except Exception as exc:
            logger.warning('Bulk tier apply failed for product %s: %s', product_id, exc)
            failed.append({'productId': product_id, 'error': error_payload(exc)})
        else:
            successful.append(product_id)

    operation = BulkTierOperation.objects.create(
        created_by=actor,
        tiers=_serializable_tiers(tiers),
        product_ids=_unique_ids(product_ids),
        successful=successful,
        failed=failed,
    )
    logger.info(
        'Bulk tier apply %s by %s: %d succeeded, %d failed',
        operation.pk,
        actor.pk,
        len(successful),
        len(failed),
    )
    return operation


def undo_bulk_tiers(actor, product_ids):
    """
    Clear the tiers written by the actor's most recent bulk apply.

    Only products listed as successful in that operation are touched; any
    other id is reported as failed. Each product is cleared independently.

    Returns
    -------
    tuple[BulkTierOperation, dict]
        The operation and ``{'successful': [...], 'failed': [...]}``.

    Raises
    ------
    ResourceNotFound
        The actor has never run a bulk apply.
    Conflict
        The most recent bulk apply was already undone.
    """
    with transaction.atomic():
        operation = (
            BulkTierOperation.objects.select_for_update()
            .filter(created_by=actor)
            .order_by('-created_at')
            .first()
        )
        if operation is None:
            raise ResourceNotFound('There is no bulk tier change to undo.')
        if operation.is_undone:
            raise Conflict('The most recent bulk tier change was already undone.')
        operation.undone_at = timezone.now()
        operation.save(update_fields=['undone_at', 'updated_at'])

    applied = set(operation.successful)
    successful = []
    failed = []
    for product_id in _unique_ids(product_ids):
        if product_id not in applied:
            failed.append({
                'productId': product_id,
                'error': error_payload(
                    Conflict('Product was not changed by the most recent bulk apply.')
                ),
            })
            continue
        try:
            clear_tiers(product_id, actor=actor)
        except Exception as exc:
            logger.warning('Bulk tier undo failed for product %s: %s', product_id, exc)
            failed.append({'productId': product_id, 'error': error_payload(exc)})
        else:
            successful.append(product_id)

    result = {'successful': successful, 'failed': failed}
    operation.undo_result = result
    operation.save(update_fields=['undo_result', 'updated_at'])
    logger.info(
        'Bulk tier undo %s by %s: %d cleared, %d failed',
        operation.pk,
        actor.pk,
        len(successful),
        len(failed),
    )
    return operation, result
