"""
The Group aggregate's transactional boundary.

Every roster or lifecycle mutation runs inside ``locked_group``: one
transaction holding the group's row lock, so joins, leaves, approvals and
finalization on the same group are strictly serialized.
"""
from contextlib import contextmanager

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from apps.groups.models import Group
from common.exceptions import Expired, ResourceNotFound


@contextmanager
def locked_group(group_id):
    """Yield the group re-read under ``SELECT ... FOR UPDATE``."""
    with transaction.atomic():
        try:
            group = Group.objects.select_for_update().get(pk=group_id)
        except (Group.DoesNotExist, DjangoValidationError, ValueError):
            raise ResourceNotFound('Group not found.')
        yield group


def ensure_open(group, now=None, finalized_error=Expired):
    """
    Raise unless the group still accepts writes.

    Expiry is checked lazily here rather than by a scheduler, so an overdue
    group is rejected even if its stored status still says open.
    """
    if group.status == Group.Status.FINALIZED:
        raise finalized_error('This group has already been finalized.')
    if group.status == Group.Status.EXPIRED or group.is_past_deadline(now):
        raise Expired('This group has expired.')
