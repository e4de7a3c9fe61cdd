"""
Tests for group creation and roster changes.
"""
from datetime import timedelta

import pytest
from django.utils import timezone

from apps.groups.models import Group, GroupMember, Invite, JoinRequest
from apps.groups.services import membership
from apps.products.services.tier_catalog import set_tiers
from common.exceptions import (
    ActionForbidden,
    Conflict,
    Expired,
    GroupFull,
    ResourceNotFound,
)


@pytest.mark.django_db
class TestCreateGroup:

    def test_creator_is_first_member(self, creator, open_group):
        members = list(open_group.members.all())
        assert len(members) == 1
        assert members[0].user == creator
        assert members[0].role == GroupMember.Role.ADMIN
        assert open_group.status == Group.Status.OPEN

    def test_public_group_has_no_access_code(self, open_group):
        assert open_group.access_code is None

    def test_private_group_gets_access_code(self, private_group):
        code = private_group.access_code
        assert len(code) == 8
        assert code.isalnum() and code.upper() == code

    def test_product_without_tiers_is_rejected(self, creator, make_product):
        product = make_product()
        with pytest.raises(Conflict):
            membership.create_group(creator, product.pk, 'No tiers')
        assert not Group.objects.exists()

    def test_unknown_product(self, creator):
        with pytest.raises(ResourceNotFound):
            membership.create_group(creator, '00000000-0000-0000-0000-000000000000', 'Ghost')


@pytest.mark.django_db
class TestJoin:

    def test_join_public_group(self, make_user, open_group):
        user = make_user()
        group, member = membership.join_group(user, open_group.pk, quantity=2)
        assert member.quantity == 2
        assert group.member_count == 2

    def test_duplicate_join_conflicts(self, creator, open_group):
        with pytest.raises(Conflict):
            membership.join_group(creator, open_group.pk)

    def test_member_limit(self, make_group, make_user):
        group = make_group(member_limit=3)
        membership.join_group(make_user(), group.pk)
        membership.join_group(make_user(), group.pk)
        with pytest.raises(GroupFull):
            membership.join_group(make_user(), group.pk)
        assert group.members.count() == 3

    def test_limit_plus_k_joins_admit_exactly_limit(self, make_group, make_user):
        group = make_group(member_limit=5)
        outcomes = []
        for _ in range(7):
            try:
                membership.join_group(make_user(), group.pk)
                outcomes.append('ok')
            except GroupFull:
                outcomes.append('full')
        # The creator holds one of the five seats.
        assert outcomes.count('ok') == 4
        assert outcomes.count('full') == 3
        assert group.members.count() == 5

    def test_private_group_needs_code(self, make_user, private_group):
        with pytest.raises(ActionForbidden):
            membership.join_group(make_user(), private_group.pk)
        with pytest.raises(ActionForbidden):
            membership.join_group(make_user(), private_group.pk, access_code='WRONG123')
        membership.join_group(make_user(), private_group.pk, access_code=private_group.access_code.lower())

    def test_approval_group_rejects_direct_join(self, make_group, make_user):
        group = make_group(requires_approval=True)
        with pytest.raises(ActionForbidden):
            membership.join_group(make_user(), group.pk)

    def test_unknown_group(self, make_user):
        with pytest.raises(ResourceNotFound):
            membership.join_group(make_user(), '00000000-0000-0000-0000-000000000000')


@pytest.mark.django_db
class TestJoinByCode:

    def test_join_by_code(self, make_user, private_group):
        user = make_user()
        group, _ = membership.join_by_code(user, private_group.access_code)
        assert group.pk == private_group.pk
        assert GroupMember.objects.filter(group=group, user=user).exists()

    def test_unknown_code(self, make_user, private_group):
        with pytest.raises(ResourceNotFound):
            membership.join_by_code(make_user(), 'ZZZZZZZZ')

    def test_blank_code(self, make_user):
        with pytest.raises(ResourceNotFound):
            membership.join_by_code(make_user(), '')

    def test_already_member(self, creator, private_group):
        with pytest.raises(Conflict):
            membership.join_by_code(creator, private_group.access_code)

    def test_full(self, make_group, make_user):
        group = make_group(visibility='private', member_limit=1)
        with pytest.raises(GroupFull):
            membership.join_by_code(make_user(), group.access_code)

    def test_expired(self, make_group, make_user, future):
        group = make_group(visibility='private', finalization_deadline=future)
        with pytest.raises(Expired):
            membership.join_by_code(make_user(), group.access_code, now=future + timedelta(seconds=1))


@pytest.mark.django_db
class TestJoinRequests:

    @pytest.fixture
    def approval_group(self, make_group):
        return make_group(requires_approval=True, member_limit=3)

    def test_request_and_approve(self, creator, make_user, approval_group):
        user = make_user()
        join_request = membership.request_join(user, approval_group.pk, message='Hi', quantity=3)
        assert join_request.status == JoinRequest.Status.PENDING

        approved, member = membership.approve_request(creator, join_request.pk)

        assert approved.status == JoinRequest.Status.APPROVED
        assert approved.reviewed_by == creator
        assert approved.reviewed_at is not None
        assert member.quantity == 3

    def test_duplicate_pending_request_conflicts(self, make_user, approval_group):
        user = make_user()
        membership.request_join(user, approval_group.pk)
        with pytest.raises(Conflict):
            membership.request_join(user, approval_group.pk)

    def test_member_cannot_request(self, creator, approval_group):
        with pytest.raises(Conflict):
            membership.request_join(creator, approval_group.pk)

    def test_open_group_does_not_take_requests(self, make_user, open_group):
        with pytest.raises(Conflict):
            membership.request_join(make_user(), open_group.pk)

    def test_second_approval_conflicts_without_duplicate_member(self, creator, make_user, approval_group):
        user = make_user()
        join_request = membership.request_join(user, approval_group.pk)
        membership.approve_request(creator, join_request.pk)

        with pytest.raises(Conflict):
            membership.approve_request(creator, join_request.pk)
        assert GroupMember.objects.filter(group=approval_group, user=user).count() == 1

    def test_only_owner_can_review(self, make_user, approval_group):
        join_request = membership.request_join(make_user(), approval_group.pk)
        with pytest.raises(ActionForbidden):
            membership.approve_request(make_user(), join_request.pk)
        with pytest.raises(ActionForbidden):
            membership.reject_request(make_user(), join_request.pk)

    def test_platform_admin_can_approve(self, admin_user, make_user, approval_group):
        join_request = membership.request_join(make_user(), approval_group.pk)
        approved, _ = membership.approve_request(admin_user, join_request.pk)
        assert approved.status == JoinRequest.Status.APPROVED

    def test_approval_respects_capacity(self, creator, make_user, approval_group):
        requests = [membership.request_join(make_user(), approval_group.pk) for _ in range(3)]
        membership.approve_request(creator, requests[0].pk)
        membership.approve_request(creator, requests[1].pk)
        with pytest.raises(GroupFull):
            membership.approve_request(creator, requests[2].pk)
        requests[2].refresh_from_db()
        assert requests[2].status == JoinRequest.Status.PENDING

    def test_reject(self, creator, make_user, approval_group):
        user = make_user()
        join_request = membership.request_join(user, approval_group.pk)
        rejected = membership.reject_request(creator, join_request.pk)
        assert rejected.status == JoinRequest.Status.REJECTED
        with pytest.raises(Conflict):
            membership.approve_request(creator, join_request.pk)
        # A rejected user may ask again.
        membership.request_join(user, approval_group.pk)

    def test_approve_after_deadline_is_expired(self, make_group, creator, make_user, future):
        group = make_group(requires_approval=True, finalization_deadline=future)
        join_request = membership.request_join(make_user(), group.pk)
        with pytest.raises(Expired):
            membership.approve_request(creator, join_request.pk, now=future)

    def test_request_must_belong_to_group(self, make_group, creator, make_user):
        group_a = make_group(requires_approval=True)
        group_b = make_group(requires_approval=True)
        join_request = membership.request_join(make_user(), group_a.pk)
        with pytest.raises(ResourceNotFound):
            membership.approve_request(creator, join_request.pk, group_id=group_b.pk)


@pytest.mark.django_db
class TestInvites:

    def test_invite_and_accept(self, creator, make_user, private_group):
        invitee = make_user()
        created = membership.invite(creator, private_group.pk, invitee.email.upper())
        assert created.status == Invite.Status.PENDING
        assert created.expires_at > timezone.now() + timedelta(days=6)

        group, member = membership.accept_invite(invitee, created.token)

        created.refresh_from_db()
        assert created.status == Invite.Status.ACCEPTED
        assert created.accepted_by == invitee
        assert member.group == group

    def test_members_can_invite_outsiders_cannot(self, fill_group, make_user, open_group):
        member = fill_group(open_group, 1)[0]
        membership.invite(member, open_group.pk, 'friend@example.com')
        with pytest.raises(ActionForbidden):
            membership.invite(make_user(), open_group.pk, 'other@example.com')

    def test_invite_existing_member_conflicts(self, creator, private_group):
        with pytest.raises(Conflict):
            membership.invite(creator, private_group.pk, creator.username)

    def test_duplicate_pending_invite_conflicts(self, creator, private_group):
        membership.invite(creator, private_group.pk, 'friend@example.com')
        with pytest.raises(Conflict):
            membership.invite(creator, private_group.pk, 'Friend@Example.com')

    def test_expired_invite(self, creator, make_user, private_group):
        invitee = make_user()
        created = membership.invite(creator, private_group.pk, invitee.email)
        with pytest.raises(Expired):
            membership.accept_invite(invitee, created.token, now=created.expires_at)
        created.refresh_from_db()
        assert created.status == Invite.Status.EXPIRED
        assert not GroupMember.objects.filter(group=private_group, user=invitee).exists()

    def test_invite_for_someone_else(self, creator, make_user, private_group):
        created = membership.invite(creator, private_group.pk, 'friend@example.com')
        with pytest.raises(ActionForbidden):
            membership.accept_invite(make_user(), created.token)

    def test_accept_twice_conflicts(self, creator, make_user, private_group):
        invitee = make_user()
        created = membership.invite(creator, private_group.pk, invitee.email)
        membership.accept_invite(invitee, created.token)
        with pytest.raises(Conflict):
            membership.accept_invite(invitee, created.token)

    def test_unknown_token(self, make_user):
        with pytest.raises(ResourceNotFound):
            membership.accept_invite(make_user(), 'nope')

    def test_cancel(self, creator, make_user, private_group):
        invitee = make_user()
        created = membership.invite(creator, private_group.pk, invitee.email)
        with pytest.raises(ActionForbidden):
            membership.cancel_invite(make_user(), created.token)

        cancelled = membership.cancel_invite(creator, created.token)
        assert cancelled.status == Invite.Status.CANCELLED
        with pytest.raises(Conflict):
            membership.accept_invite(invitee, created.token)

    def test_accept_into_full_group(self, make_group, creator, make_user):
        group = make_group(visibility='private', member_limit=1)
        invitee = make_user()
        created = membership.invite(creator, group.pk, invitee.email)
        with pytest.raises(GroupFull):
            membership.accept_invite(invitee, created.token)
        created.refresh_from_db()
        assert created.status == Invite.Status.PENDING


@pytest.mark.django_db
class TestLeave:

    def test_member_leaves(self, fill_group, open_group):
        user = fill_group(open_group, 1)[0]
        assert membership.leave(user, open_group.pk) is False
        assert not GroupMember.objects.filter(group=open_group, user=user).exists()

    def test_non_member(self, make_user, open_group):
        with pytest.raises(ResourceNotFound):
            membership.leave(make_user(), open_group.pk)

    def test_creator_cannot_leave_while_others_remain(self, creator, fill_group, open_group):
        fill_group(open_group, 1)
        with pytest.raises(Conflict):
            membership.leave(creator, open_group.pk)

    def test_lone_creator_leaving_deletes_group(self, creator, open_group):
        assert membership.leave(creator, open_group.pk) is True
        assert not Group.objects.filter(pk=open_group.pk).exists()

    def test_leave_after_deadline_is_expired(self, make_group, fill_group, future):
        group = make_group(finalization_deadline=future)
        user = fill_group(group, 1)[0]
        with pytest.raises(Expired):
            membership.leave(user, group.pk, now=future)

    def test_freed_seat_can_be_taken(self, make_group, make_user):
        group = make_group(member_limit=2)
        first = make_user()
        membership.join_group(first, group.pk)
        membership.leave(first, group.pk)
        membership.join_group(make_user(), group.pk)
        assert group.members.count() == 2


@pytest.mark.django_db
def test_group_creation_requires_enabled_product(creator, product):
    set_tiers(product.pk, [])
    with pytest.raises(Conflict):
        membership.create_group(creator, product.pk, 'Too late')
