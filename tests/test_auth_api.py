"""
API tests for registration, login and profile.
"""
import pytest


@pytest.mark.django_db
class TestAuthAPI:

    def test_register_vendor(self, api_client):
        response = api_client.post('/api/v1/auth/register/', {
            'firstName': 'Vera',
            'lastName': 'Vendor',
            'email': 'Vera@Example.com',
            'password': 'Str0ngPassw0rd!',
            'role': 'vendor',
        }, format='json')

        assert response.status_code == 201
        data = response.json()['data']
        assert data['user']['email'] == 'vera@example.com'
        assert data['user']['role'] == 'vendor'
        assert data['accessToken']

    def test_cannot_self_register_as_admin(self, api_client):
        response = api_client.post('/api/v1/auth/register/', {
            'firstName': 'Eve',
            'lastName': 'Admin',
            'email': 'eve@example.com',
            'password': 'Str0ngPassw0rd!',
            'role': 'admin',
        }, format='json')
        assert response.status_code == 400

    def test_login(self, api_client, make_user):
        user = make_user()
        response = api_client.post('/api/v1/auth/login/', {
            'email': user.email.upper(),
            'password': 'Str0ngPassw0rd!',
        }, format='json')
        assert response.status_code == 200
        assert response.json()['data']['user']['id'] == str(user.pk)

    def test_login_wrong_password(self, api_client, make_user):
        user = make_user()
        response = api_client.post('/api/v1/auth/login/', {
            'email': user.email,
            'password': 'nope',
        }, format='json')
        assert response.status_code == 401
        assert response.json()['success'] is False

    def test_me(self, auth_client, vendor):
        response = auth_client(vendor).get('/api/v1/users/me/')
        assert response.status_code == 200
        assert response.json()['data']['role'] == 'vendor'
        assert set(response.json()['data']) == {
            'id', 'email', 'username', 'firstName', 'lastName', 'avatarUrl', 'role',
        }
