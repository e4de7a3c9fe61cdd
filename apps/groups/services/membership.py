"""
Membership Coordinator: group creation and every roster change.

All operations lock the group row first (see ``locked_group``), re-check
that the group is still open, and only then read the roster and write.
Capacity check and insert therefore happen in one transaction per group.
Failures are raised as typed API exceptions and never retried here.
"""
import logging
from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from apps.groups.models import Group, GroupMember, Invite, JoinRequest
from apps.groups.permissions import INVITE_ROLES, OWNER_ROLES, require_role
from apps.groups.services.locking import ensure_open, locked_group
from apps.groups.utils import generate_access_code, generate_invite_token
from apps.products.models import Product
from common.exceptions import (
    ActionForbidden,
    Conflict,
    Expired,
    GroupFull,
    ResourceNotFound,
)

logger = logging.getLogger(__name__)

INVITE_TTL_DAYS = getattr(settings, 'GROUP_BUY_INVITE_TTL_DAYS', 7)
ACCESS_CODE_LENGTH = getattr(settings, 'GROUP_BUY_ACCESS_CODE_LENGTH', 8)


def create_group(
    creator,
    product_id,
    name,
    description='',
    visibility=Group.Visibility.PUBLIC,
    requires_approval=False,
    member_limit=None,
    finalization_deadline=None,
    quantity=1,
):
    """
    Create a group with *creator* as its first member.

    The group row and the creator's membership are written in the same
    transaction, so a group without members is never visible.
    """
    try:
        product = Product.objects.get(pk=product_id, is_active=True)
    except (Product.DoesNotExist, DjangoValidationError, ValueError):
        raise ResourceNotFound('Product not found.')
    if not product.group_order_enabled:
        raise Conflict('Group buying is not offered for this product.')

    is_private = visibility == Group.Visibility.PRIVATE
    with transaction.atomic():
        group = Group.objects.create(
            name=name,
            description=description,
            created_by=creator,
            product=product,
            visibility=visibility,
            requires_approval=requires_approval,
            access_code=generate_access_code(ACCESS_CODE_LENGTH) if is_private else None,
            member_limit=member_limit,
            finalization_deadline=finalization_deadline,
        )
        GroupMember.objects.create(
            group=group,
            user=creator,
            role=GroupMember.Role.ADMIN,
            quantity=quantity,
        )

    logger.info(
        'Group %s created by %s for product %s (%s)',
        group.pk,
        creator.pk,
        product.pk,
        visibility,
    )
    return group


def _admit(group, user, quantity=1):
    """
    Add *user* to a locked, open group.

    Caller must hold the group lock. The unique (group, user) constraint
    backs up the membership check.
    """
    if GroupMember.objects.filter(group=group, user=user).exists():
        raise Conflict('You are already a member of this group.')

    if group.member_limit is not None:
        if GroupMember.objects.filter(group=group).count() >= group.member_limit:
            raise GroupFull()

    try:
        with transaction.atomic():
            member = GroupMember.objects.create(
                group=group,
                user=user,
                role=GroupMember.Role.MEMBER,
                quantity=quantity,
            )
    except IntegrityError:
        raise Conflict('You are already a member of this group.')

    logger.info('User %s joined group %s', user.pk, group.pk)
    return member


def join_by_code(user, access_code, quantity=1, now=None):
    """
    Join the private group identified by *access_code*.
    """
    code = (access_code or '').strip().upper()
    group_id = (
        Group.objects.filter(access_code=code).values_list('pk', flat=True).first()
        if code else None
    )
    if group_id is None:
        raise ResourceNotFound('Invalid access code.')

    with locked_group(group_id) as group:
        ensure_open(group, now=now)
        member = _admit(group, user, quantity=quantity)
    return group, member


def join_group(user, group_id, access_code=None, quantity=1, now=None):
    """
    Join a group directly.

    Private groups need their access code; public groups that require
    approval reject direct joins.
    """
    with locked_group(group_id) as group:
        ensure_open(group, now=now)
        if group.is_private:
            code = (access_code or '').strip().upper()
            if not code or code != group.access_code:
                raise ActionForbidden('Invalid access code.')
        elif group.requires_approval:
            raise ActionForbidden('This group requires approval. Send a join request instead.')
        member = _admit(group, user, quantity=quantity)
    return group, member


def request_join(user, group_id, message='', quantity=1, now=None):
    """
    Ask to join a group whose direct join is disabled.
    """
    with locked_group(group_id) as group:
        ensure_open(group, now=now)
        if not group.is_private and not group.requires_approval:
            raise Conflict('This group is open. Join it directly.')
        if GroupMember.objects.filter(group=group, user=user).exists():
            raise Conflict('You are already a member of this group.')
        if JoinRequest.objects.filter(
            group=group,
            user=user,
            status__in=[JoinRequest.Status.PENDING, JoinRequest.Status.APPROVED],
        ).exists():
            raise Conflict('You have already requested to join this group.')

        try:
            with transaction.atomic():
                join_request = JoinRequest.objects.create(
                    group=group,
                    user=user,
                    message=message or '',
                    quantity=quantity,
                )
        except IntegrityError:
            raise Conflict('You have already requested to join this group.')

    logger.info('User %s requested to join group %s', user.pk, group.pk)
    return join_request


def _get_request_group_id(request_id, group_id=None):
    filters = {'pk': request_id}
    if group_id is not None:
        filters['group_id'] = group_id
    try:
        return JoinRequest.objects.values_list('group_id', flat=True).get(**filters)
    except (JoinRequest.DoesNotExist, DjangoValidationError, ValueError):
        raise ResourceNotFound('Join request not found.')


def approve_request(reviewer, request_id, group_id=None, now=None):
    """
    Approve a pending join request and add its user to the group.

    Membership insert and status change commit together. A second approval
    waits on the group lock, then sees a non-pending request and fails.
    """
    now = now or timezone.now()
    with locked_group(_get_request_group_id(request_id, group_id)) as group:
        require_role(reviewer, group, OWNER_ROLES)
        join_request = JoinRequest.objects.select_for_update().select_related('user').get(pk=request_id)
        if join_request.status != JoinRequest.Status.PENDING:
            raise Conflict(f'This request was already {join_request.status}.')
        ensure_open(group, now=now)

        member = _admit(group, join_request.user, quantity=join_request.quantity)
        join_request.status = JoinRequest.Status.APPROVED
        join_request.reviewed_at = now
        join_request.reviewed_by = reviewer
        join_request.save(update_fields=['status', 'reviewed_at', 'reviewed_by', 'updated_at'])

    logger.info('Join request %s approved by %s', join_request.pk, reviewer.pk)
    return join_request, member


def reject_request(reviewer, request_id, group_id=None, now=None):
    """
    Reject a pending join request. Allowed after the deadline so owners can
    clear their queue.
    """
    now = now or timezone.now()
    with locked_group(_get_request_group_id(request_id, group_id)) as group:
        require_role(reviewer, group, OWNER_ROLES)
        join_request = JoinRequest.objects.select_for_update().get(pk=request_id)
        if join_request.status != JoinRequest.Status.PENDING:
            raise Conflict(f'This request was already {join_request.status}.')

        join_request.status = JoinRequest.Status.REJECTED
        join_request.reviewed_at = now
        join_request.reviewed_by = reviewer
        join_request.save(update_fields=['status', 'reviewed_at', 'reviewed_by', 'updated_at'])

    logger.info('Join request %s rejected by %s', join_request.pk, reviewer.pk)
    return join_request


def invite(inviter, group_id, identifier, now=None):
    """
    Invite an email address or username to the group.
    Any member may invite; the invite expires after ``INVITE_TTL_DAYS``.
    """
    now = now or timezone.now()
    identifier = (identifier or '').strip()
    with locked_group(group_id) as group:
        require_role(inviter, group, INVITE_ROLES, message='Only group members can send invites.')
        ensure_open(group, now=now)

        if GroupMember.objects.filter(group=group).filter(
            Q(user__email__iexact=identifier) | Q(user__username__iexact=identifier),
        ).exists():
            raise Conflict('That user is already a member of this group.')

        if Invite.objects.filter(
            group=group,
            invited_identifier__iexact=identifier,
            status=Invite.Status.PENDING,
            expires_at__gt=now,
        ).exists():
            raise Conflict('A pending invite already exists for that user.')

        created = Invite.objects.create(
            group=group,
            invited_by=inviter,
            invited_identifier=identifier,
            token=generate_invite_token(),
            expires_at=now + timedelta(days=INVITE_TTL_DAYS),
        )

    logger.info('Invite %s created for group %s by %s', created.pk, group.pk, inviter.pk)
    return created


def _get_invite(token):
    try:
        return Invite.objects.get(token=token)
    except Invite.DoesNotExist:
        raise ResourceNotFound('Invite not found.')


def _ensure_invite_pending(invite_obj, now):
    if invite_obj.status == Invite.Status.EXPIRED:
        raise Expired('This invite has expired.')
    if invite_obj.status != Invite.Status.PENDING:
        raise Conflict(f'This invite was already {invite_obj.status}.')
    if invite_obj.is_past_expiry(now):
        raise Expired('This invite has expired.')


def accept_invite(user, token, quantity=1, now=None):
    """
    Accept an invite addressed to *user* and join its group.

    Behaves like ``join_by_code`` and additionally marks the invite accepted
    in the same transaction.
    """
    now = now or timezone.now()
    invite_obj = _get_invite(token)
    if invite_obj.status == Invite.Status.PENDING and invite_obj.is_past_expiry(now):
        Invite.objects.filter(pk=invite_obj.pk, status=Invite.Status.PENDING).update(
            status=Invite.Status.EXPIRED,
            updated_at=now,
        )
        raise Expired('This invite has expired.')
    if not user.matches_identifier(invite_obj.invited_identifier):
        raise ActionForbidden('This invite was sent to someone else.')

    with locked_group(invite_obj.group_id) as group:
        invite_obj = Invite.objects.select_for_update().get(pk=invite_obj.pk)
        _ensure_invite_pending(invite_obj, now)
        ensure_open(group, now=now)

        member = _admit(group, user, quantity=quantity)
        invite_obj.status = Invite.Status.ACCEPTED
        invite_obj.accepted_by = user
        invite_obj.responded_at = now
        invite_obj.save(update_fields=['status', 'accepted_by', 'responded_at', 'updated_at'])

    logger.info('Invite %s accepted by %s', invite_obj.pk, user.pk)
    return group, member


def cancel_invite(actor, token, now=None):
    """Cancel a pending invite. Allowed for the inviter, the creator and admins."""
    now = now or timezone.now()
    invite_obj = _get_invite(token)
    with locked_group(invite_obj.group_id) as group:
        invite_obj = Invite.objects.select_for_update().get(pk=invite_obj.pk)
        if invite_obj.invited_by_id != actor.id:
            require_role(actor, group, OWNER_ROLES, message='Only the inviter or group creator can cancel this invite.')
        _ensure_invite_pending(invite_obj, now)

        invite_obj.status = Invite.Status.CANCELLED
        invite_obj.responded_at = now
        invite_obj.save(update_fields=['status', 'responded_at', 'updated_at'])

    logger.info('Invite %s cancelled by %s', invite_obj.pk, actor.pk)
    return invite_obj


def leave(user, group_id, now=None):
    """
    Remove *user* from an open group.

    The creator cannot leave while other members remain. A creator who is
    the last member deletes the group instead, so no ownerless or empty
    group is left behind. Returns ``True`` when the group was deleted.
    """
    with locked_group(group_id) as group:
        ensure_open(group, now=now, finalized_error=Conflict)
        try:
            membership = GroupMember.objects.get(group=group, user=user)
        except GroupMember.DoesNotExist:
            raise ResourceNotFound('You are not a member of this group.')

        if group.created_by_id == user.id:
            if GroupMember.objects.filter(group=group).exclude(pk=membership.pk).exists():
                raise Conflict('The group creator cannot leave while other members remain.')
            group.delete()
            logger.info('Group %s deleted after its creator %s left', group_id, user.pk)
            return True

        membership.delete()

    logger.info('User %s left group %s', user.pk, group_id)
    return False
