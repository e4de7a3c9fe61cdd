"""
API tests for product discount tier endpoints.
"""
import pytest

from apps.products.models import BulkTierOperation
from apps.products.services.tier_catalog import get_tiers


def tiers_payload(*pairs):
    return [{'membersRequired': m, 'discountPercentage': str(p)} for m, p in pairs]


@pytest.mark.django_db
class TestProductReadAPI:

    def test_list_and_filter(self, api_client, product, make_product):
        make_product(name='Plain kettle')

        everything = api_client.get('/api/v1/products/').json()['data']
        assert len(everything) == 2

        group_only = api_client.get('/api/v1/products/?groupOrder=true').json()['data']
        assert [item['id'] for item in group_only] == [str(product.pk)]
        assert group_only[0]['groupOrderEnabled'] is True
        assert [t['tierNumber'] for t in group_only[0]['discountTiers']] == [1, 2]

    def test_get_tiers_anonymous(self, api_client, product):
        response = api_client.get(f'/api/v1/products/{product.pk}/discount-tiers/')
        assert response.status_code == 200
        data = response.json()['data']
        assert [(t['membersRequired'], t['discountPercentage']) for t in data] == [
            (5, '10.00'),
            (15, '20.00'),
        ]


@pytest.mark.django_db
class TestProductTiersAPI:

    def url(self, product):
        return f'/api/v1/products/{product.pk}/discount-tiers/'

    def test_vendor_replaces_tiers(self, auth_client, vendor, product):
        response = auth_client(vendor).put(
            self.url(product),
            {'discountTiers': tiers_payload((3, 5), (10, 12.5))},
            format='json',
        )
        assert response.status_code == 200
        assert [t['membersRequired'] for t in response.json()['data']] == [3, 10]
        assert [t.members_required for t in get_tiers(product.pk)] == [3, 10]

    def test_invalid_tiers_return_422_with_tier_number(self, auth_client, vendor, product):
        response = auth_client(vendor).put(
            self.url(product),
            {'discountTiers': tiers_payload((10, 10), (5, 20))},
            format='json',
        )
        assert response.status_code == 422
        error = response.json()['error']
        assert error['code'] == 'validation_error'
        assert error['details'] == {'tierNumber': 2}
        assert [t.members_required for t in get_tiers(product.pk)] == [5, 15]

    def test_too_many_tiers(self, auth_client, vendor, product):
        response = auth_client(vendor).put(
            self.url(product),
            {'discountTiers': tiers_payload((3, 5), (6, 10), (9, 15), (12, 20))},
            format='json',
        )
        assert response.status_code == 422

    def test_non_integer_members_return_422_with_tier_number(self, auth_client, vendor, product):
        response = auth_client(vendor).put(
            self.url(product),
            {'discountTiers': [
                {'membersRequired': 3, 'discountPercentage': '5'},
                {'membersRequired': 5.5, 'discountPercentage': '10'},
            ]},
            format='json',
        )
        assert response.status_code == 422
        error = response.json()['error']
        assert error['code'] == 'validation_error'
        assert error['details'] == {'tierNumber': 2}
        assert [t.members_required for t in get_tiers(product.pk)] == [5, 15]

    @pytest.mark.parametrize('tier', [
        {'membersRequired': 5, 'discountPercentage': '10.005'},
        {'membersRequired': 5},
        'five',
    ])
    def test_malformed_tier_returns_422(self, auth_client, vendor, product, tier):
        response = auth_client(vendor).put(
            self.url(product), {'discountTiers': [tier]}, format='json',
        )
        assert response.status_code == 422
        assert response.json()['error']['details'] == {'tierNumber': 1}

    def test_empty_list_disables_group_orders(self, auth_client, vendor, product):
        response = auth_client(vendor).put(self.url(product), {'discountTiers': []}, format='json')
        assert response.status_code == 200
        product.refresh_from_db()
        assert product.group_order_enabled is False

    def test_other_user_forbidden(self, auth_client, make_user, product):
        response = auth_client(make_user()).put(
            self.url(product), {'discountTiers': tiers_payload((3, 5))}, format='json',
        )
        assert response.status_code == 403

    def test_unknown_product(self, auth_client, vendor):
        response = auth_client(vendor).put(
            '/api/v1/products/00000000-0000-0000-0000-000000000000/discount-tiers/',
            {'discountTiers': tiers_payload((3, 5))},
            format='json',
        )
        assert response.status_code == 404


@pytest.mark.django_db
class TestBulkTiersAPI:

    url = '/api/v1/products/bulk/discount-tiers/'

    def test_partial_success(self, auth_client, vendor, make_product):
        small = make_product(name='Small batch', max_group_size=10)
        large = make_product(name='Large batch')

        response = auth_client(vendor).post(self.url, {
            'productIds': [str(large.pk), str(small.pk)],
            'discountTiers': tiers_payload((5, 10), (20, 20)),
        }, format='json')

        assert response.status_code == 200
        data = response.json()['data']
        assert data['successful'] == [str(large.pk)]
        assert data['failed'][0]['productId'] == str(small.pk)
        assert data['failed'][0]['error']['details'] == {'tierNumber': 2}
        assert BulkTierOperation.objects.filter(pk=data['operationId']).exists()

    def test_customers_cannot_bulk_apply(self, auth_client, make_user, product):
        response = auth_client(make_user()).post(self.url, {
            'productIds': [str(product.pk)],
            'discountTiers': tiers_payload((3, 5)),
        }, format='json')
        assert response.status_code == 403

    def test_empty_product_list(self, auth_client, vendor):
        response = auth_client(vendor).post(self.url, {
            'productIds': [],
            'discountTiers': tiers_payload((3, 5)),
        }, format='json')
        assert response.status_code == 400

    def test_malformed_tiers_rejected_before_any_product(self, auth_client, vendor, product):
        response = auth_client(vendor).post(self.url, {
            'productIds': [str(product.pk)],
            'discountTiers': [{'membersRequired': 'lots', 'discountPercentage': '5'}],
        }, format='json')
        assert response.status_code == 422
        assert response.json()['error']['details'] == {'tierNumber': 1}
        assert not BulkTierOperation.objects.exists()
        assert [t.members_required for t in get_tiers(product.pk)] == [5, 15]

    def test_undo(self, auth_client, vendor, product):
        client = auth_client(vendor)
        client.post(self.url, {
            'productIds': [str(product.pk)],
            'discountTiers': tiers_payload((3, 5)),
        }, format='json')

        response = client.post(f'{self.url}undo/', {'productIds': [str(product.pk)]}, format='json')
        assert response.status_code == 200
        assert response.json()['data']['successful'] == [str(product.pk)]
        assert get_tiers(product.pk) == []

        again = client.post(f'{self.url}undo/', {'productIds': [str(product.pk)]}, format='json')
        assert again.status_code == 409

    def test_undo_without_history(self, auth_client, vendor, product):
        response = auth_client(vendor).post(
            f'{self.url}undo/', {'productIds': [str(product.pk)]}, format='json',
        )
        assert response.status_code == 404
