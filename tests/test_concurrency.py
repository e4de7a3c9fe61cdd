"""
Concurrent join, approval and finalize against a real database.

SQLite ignores ``SELECT ... FOR UPDATE``, so these only run on PostgreSQL:

    DATABASE_URL=postgres://... pytest tests/test_concurrency.py --create-db
"""
from concurrent.futures import ThreadPoolExecutor

import pytest
from django.db import connection, connections

from apps.groups.models import GroupMember
from apps.groups.services import finalization, membership
from apps.orders.models import Order
from common.exceptions import Conflict, GroupFull

pytestmark = [
    pytest.mark.django_db(transaction=True),
    pytest.mark.skipif(
        connection.vendor != 'postgresql',
        reason='row locks need PostgreSQL',
    ),
]


def _run_parallel(fn, args_list):
    def call(args):
        try:
            return fn(*args)
        except Exception as exc:
            return exc
        finally:
            connections.close_all()

    with ThreadPoolExecutor(max_workers=len(args_list)) as pool:
        return list(pool.map(call, args_list))


def test_parallel_joins_never_exceed_limit(make_group, make_user):
    group = make_group(member_limit=5)
    users = [make_user() for _ in range(10)]

    results = _run_parallel(membership.join_group, [(user, group.pk) for user in users])

    full = [r for r in results if isinstance(r, GroupFull)]
    assert len(full) == 6
    assert GroupMember.objects.filter(group=group).count() == 5


def test_parallel_finalize_creates_one_order(creator, open_group):
    results = _run_parallel(finalization.finalize, [(creator, open_group.pk)] * 4)

    orders = [r for r in results if isinstance(r, Order)]
    assert len(orders) == 1
    assert all(isinstance(r, Conflict) for r in results if not isinstance(r, Order))
    assert Order.objects.count() == 1


def test_parallel_approvals_admit_once(creator, make_group, make_user):
    group = make_group(requires_approval=True)
    applicant = make_user()
    join_request = membership.request_join(applicant, group.pk)

    results = _run_parallel(
        membership.approve_request,
        [(creator, join_request.pk, group.pk)] * 2,
    )

    approved = [r for r in results if isinstance(r, tuple)]
    assert len(approved) == 1
    assert all(isinstance(r, Conflict) for r in results if not isinstance(r, tuple))
    assert GroupMember.objects.filter(group=group, user=applicant).count() == 1
