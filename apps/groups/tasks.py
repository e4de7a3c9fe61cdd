"""
Celery tasks for group housekeeping.

Correctness never depends on these running: every write re-checks the
deadline itself. They only keep stored statuses tidy for listings.
"""
import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(
    name='apps.groups.tasks.expire_overdue_groups',
    ignore_result=True,
    soft_time_limit=60,
    time_limit=90,
)
def expire_overdue_groups():
    """Mark open groups whose deadline has passed as expired."""
    from apps.groups.services.finalization import expire_overdue_groups as _expire

    updated = _expire()
    logger.debug('expire_overdue_groups task relabelled %d group(s)', updated)
    return updated


@shared_task(
    name='apps.groups.tasks.expire_stale_invites',
    ignore_result=True,
    soft_time_limit=60,
    time_limit=90,
)
def expire_stale_invites():
    """Mark pending invites past their expiry as expired."""
    from apps.groups.services.finalization import expire_stale_invites as _expire

    updated = _expire()
    logger.debug('expire_stale_invites task relabelled %d invite(s)', updated)
    return updated
