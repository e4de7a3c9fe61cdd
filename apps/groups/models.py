"""
Models for the Groups app.
"""
from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from common.models import TimestampedModel


class Group(TimestampedModel):
    """
    A time-boxed pool of users unlocking a volume discount on one product.

    Lifecycle: open -> finalized | expired. Both end states are terminal.
    """
    class Visibility(models.TextChoices):
        PUBLIC = 'public', 'Public'
        PRIVATE = 'private', 'Private'

    class Status(models.TextChoices):
        OPEN = 'open', 'Open'
        FINALIZED = 'finalized', 'Finalized'
        EXPIRED = 'expired', 'Expired'

    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, default='')
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='created_groups',
    )
    product = models.ForeignKey(
        'products.Product',
        on_delete=models.PROTECT,
        related_name='groups',
    )
    visibility = models.CharField(
        max_length=10,
        choices=Visibility.choices,
        default=Visibility.PUBLIC,
    )
    requires_approval = models.BooleanField(
        default=False,
        help_text='Disable open joining; users must send a join request.',
    )
    access_code = models.CharField(
        max_length=8,
        unique=True,
        null=True,
        blank=True,
        db_index=True,
        help_text='8-character code for private groups. Never changes once issued.',
    )
    member_limit = models.PositiveIntegerField(null=True, blank=True)
    finalization_deadline = models.DateTimeField(null=True, blank=True)
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.OPEN,
        db_index=True,
    )
    finalized_at = models.DateTimeField(null=True, blank=True)
    order = models.OneToOneField(
        'orders.Order',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='group',
    )

    class Meta:
        db_table = 'groups'
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    @property
    def member_count(self):
        return self.members.count()

    @property
    def is_private(self):
        return self.visibility == self.Visibility.PRIVATE

    def is_past_deadline(self, now=None):
        if self.finalization_deadline is None:
            return False
        return (now or timezone.now()) >= self.finalization_deadline

    def effective_status(self, now=None):
        """Stored status, with overdue open groups reported as expired."""
        if self.status == self.Status.OPEN and self.is_past_deadline(now):
            return self.Status.EXPIRED
        return self.status


class GroupMember(TimestampedModel):
    """
    Membership record linking a user to a group.
    """
    class Role(models.TextChoices):
        ADMIN = 'admin', 'Admin'
        MEMBER = 'member', 'Member'

    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        related_name='members',
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='group_memberships',
    )
    role = models.CharField(
        max_length=10,
        choices=Role.choices,
        default=Role.MEMBER,
    )
    quantity = models.PositiveIntegerField(default=1)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'group_members'
        unique_together = ['group', 'user']
        ordering = ['joined_at']

    def __str__(self):
        return f'{self.user} in {self.group} ({self.role})'


class JoinRequest(TimestampedModel):
    """
    A request to join a group that does not allow direct joining.
    Moves from pending to approved or rejected exactly once.
    """
    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        APPROVED = 'approved', 'Approved'
        REJECTED = 'rejected', 'Rejected'

    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        related_name='join_requests',
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='group_join_requests',
    )
    message = models.TextField(blank=True, default='')
    quantity = models.PositiveIntegerField(default=1)
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )
    requested_at = models.DateTimeField(auto_now_add=True)
    reviewed_at = models.DateTimeField(null=True, blank=True)
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reviewed_join_requests',
    )

    class Meta:
        db_table = 'group_join_requests'
        ordering = ['-requested_at']
        constraints = [
            models.UniqueConstraint(
                fields=['group', 'user'],
                condition=Q(status='pending'),
                name='unique_pending_join_request',
            ),
        ]

    def __str__(self):
        return f'{self.user} -> {self.group} ({self.status})'


class Invite(TimestampedModel):
    """
    An invitation for an email address or username to join a group.
    Moves from pending to accepted, expired or cancelled exactly once.
    """
    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        ACCEPTED = 'accepted', 'Accepted'
        EXPIRED = 'expired', 'Expired'
        CANCELLED = 'cancelled', 'Cancelled'

    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        related_name='invites',
    )
    invited_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='sent_group_invites',
    )
    invited_identifier = models.CharField(
        max_length=254,
        help_text='Email address or username of the invitee.',
    )
    token = models.CharField(max_length=64, unique=True, db_index=True)
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )
    expires_at = models.DateTimeField()
    accepted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='accepted_group_invites',
    )
    responded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'group_invites'
        ordering = ['-created_at']

    def __str__(self):
        return f'Invite {self.invited_identifier} -> {self.group} ({self.status})'

    def is_past_expiry(self, now=None):
        return (now or timezone.now()) >= self.expires_at
