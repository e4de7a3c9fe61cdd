"""
Tests for bulk tier apply and its compensating undo.
"""
from decimal import Decimal

import pytest

from apps.products.models import BulkTierOperation, DiscountTier
from apps.products.services.bulk_tiers import apply_bulk_tiers, undo_bulk_tiers
from apps.products.services.tier_catalog import get_tiers
from common.exceptions import Conflict, ResourceNotFound, TierValidationError

TIERS = [
    {'members_required': 5, 'discount_percentage': Decimal('10')},
    {'members_required': 15, 'discount_percentage': Decimal('20')},
]


@pytest.fixture
def products(make_product):
    a = make_product(name='A')
    b = make_product(name='B', max_group_size=10)
    c = make_product(name='C')
    return a, b, c


@pytest.mark.django_db
class TestApplyBulkTiers:

    def test_partial_failure_keeps_successful_products(self, vendor, products):
        a, b, c = products
        operation = apply_bulk_tiers(vendor, [a.pk, b.pk, c.pk], TIERS)

        assert operation.successful == [str(a.pk), str(c.pk)]
        assert len(operation.failed) == 1
        assert operation.failed[0]['productId'] == str(b.pk)
        assert operation.failed[0]['error']['code'] == 'validation_error'

        for product in (a, c):
            product.refresh_from_db()
            assert product.group_order_enabled is True
            assert [t.members_required for t in get_tiers(product.pk)] == [5, 15]

        b.refresh_from_db()
        assert b.group_order_enabled is False
        assert not DiscountTier.objects.filter(product=b).exists()

    def test_foreign_and_missing_products_are_reported(self, vendor, make_user, make_product):
        other_vendor = make_user(role='vendor')
        mine = make_product()
        theirs = make_product(owner=other_vendor)
        missing = '00000000-0000-0000-0000-000000000000'

        operation = apply_bulk_tiers(vendor, [mine.pk, theirs.pk, missing], TIERS)

        assert operation.successful == [str(mine.pk)]
        codes = {f['productId']: f['error']['code'] for f in operation.failed}
        assert codes == {str(theirs.pk): 'forbidden', missing: 'not_found'}

    def test_duplicate_ids_are_applied_once(self, vendor, products):
        a = products[0]
        operation = apply_bulk_tiers(vendor, [a.pk, a.pk], TIERS)
        assert operation.successful == [str(a.pk)]

    def test_requires_at_least_one_tier(self, vendor, products):
        with pytest.raises(TierValidationError):
            apply_bulk_tiers(vendor, [products[0].pk], [])

    def test_replaces_existing_tiers(self, vendor, product):
        apply_bulk_tiers(vendor, [product.pk], [{'members_required': 3, 'discount_percentage': 5}])
        assert [t.members_required for t in get_tiers(product.pk)] == [3]


@pytest.mark.django_db
class TestUndoBulkTiers:

    def test_undo_clears_successful_products_only(self, vendor, products):
        a, b, c = products
        apply_bulk_tiers(vendor, [a.pk, b.pk, c.pk], TIERS)

        operation, result = undo_bulk_tiers(vendor, [a.pk, c.pk])

        assert result == {'successful': [str(a.pk), str(c.pk)], 'failed': []}
        assert operation.is_undone
        for product in (a, b, c):
            product.refresh_from_db()
            assert product.group_order_enabled is False
            assert get_tiers(product.pk) == []

    def test_undo_rejects_products_outside_last_apply(self, vendor, products):
        a, b, _ = products
        apply_bulk_tiers(vendor, [a.pk, b.pk], TIERS)

        _, result = undo_bulk_tiers(vendor, [a.pk, b.pk])

        assert result['successful'] == [str(a.pk)]
        assert result['failed'][0]['productId'] == str(b.pk)
        assert result['failed'][0]['error']['code'] == 'conflict'

    def test_does_not_restore_previous_configuration(self, vendor, make_product):
        product = make_product(tiers=[{'members_required': 4, 'discount_percentage': 5}])
        apply_bulk_tiers(vendor, [product.pk], TIERS)
        undo_bulk_tiers(vendor, [product.pk])
        assert get_tiers(product.pk) == []

    def test_only_most_recent_apply_can_be_undone(self, vendor, products):
        a, _, c = products
        apply_bulk_tiers(vendor, [a.pk], TIERS)
        apply_bulk_tiers(vendor, [c.pk], TIERS)

        _, result = undo_bulk_tiers(vendor, [a.pk, c.pk])

        assert result['successful'] == [str(c.pk)]
        assert [f['productId'] for f in result['failed']] == [str(a.pk)]

    def test_second_undo_conflicts(self, vendor, products):
        apply_bulk_tiers(vendor, [products[0].pk], TIERS)
        undo_bulk_tiers(vendor, [products[0].pk])
        with pytest.raises(Conflict):
            undo_bulk_tiers(vendor, [products[0].pk])

    def test_nothing_to_undo(self, vendor):
        with pytest.raises(ResourceNotFound):
            undo_bulk_tiers(vendor, [])
        assert not BulkTierOperation.objects.exists()
