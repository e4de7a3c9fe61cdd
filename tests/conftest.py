"""
Shared fixtures for the group buying test suite.
"""
from datetime import timedelta
from decimal import Decimal
from itertools import count

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

from apps.groups.services import membership
from apps.products.models import Product
from apps.products.services.tier_catalog import set_tiers

User = get_user_model()

_user_seq = count(1)


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_user(db):
    def _make_user(role=User.Role.CUSTOMER, **kwargs):
        n = next(_user_seq)
        defaults = {
            'email': f'user{n}@example.com',
            'username': f'user{n}',
            'first_name': f'User{n}',
            'last_name': 'Test',
            'role': role,
        }
        defaults.update(kwargs)
        return User.objects.create_user(password='Str0ngPassw0rd!', **defaults)
    return _make_user


@pytest.fixture
def vendor(make_user):
    return make_user(role=User.Role.VENDOR)


@pytest.fixture
def admin_user(make_user):
    return make_user(role=User.Role.ADMIN)


@pytest.fixture
def creator(make_user):
    return make_user()


@pytest.fixture
def make_product(vendor):
    def _make_product(price='1000.00', tiers=None, owner=None, **kwargs):
        product = Product.objects.create(
            vendor=owner or vendor,
            name=kwargs.pop('name', 'Espresso Machine'),
            price=Decimal(price),
            **kwargs,
        )
        if tiers:
            set_tiers(product.pk, tiers)
            product.refresh_from_db()
        return product
    return _make_product


@pytest.fixture
def standard_tiers():
    return [
        {'members_required': 5, 'discount_percentage': Decimal('10')},
        {'members_required': 15, 'discount_percentage': Decimal('20')},
    ]


@pytest.fixture
def product(make_product, standard_tiers):
    return make_product(tiers=standard_tiers)


@pytest.fixture
def make_group(creator, product):
    def _make_group(**kwargs):
        kwargs.setdefault('name', 'Coffee lovers')
        owner = kwargs.pop('creator', creator)
        product_id = kwargs.pop('product_id', product.pk)
        return membership.create_group(owner, product_id, **kwargs)
    return _make_group


@pytest.fixture
def open_group(make_group):
    return make_group()


@pytest.fixture
def private_group(make_group):
    return make_group(visibility='private')


@pytest.fixture
def fill_group(make_user):
    """Add *n* fresh members to a public group."""
    def _fill(group, n):
        users = [make_user() for _ in range(n)]
        for user in users:
            membership.join_group(user, group.pk)
        return users
    return _fill


@pytest.fixture
def future():
    return timezone.now() + timedelta(days=2)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def auth_client():
    def _auth(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return _auth
