"""
Unit Tests for Authentication API Endpoints
"""
import pytest
from httpx import AsyncClient
from faker import Faker

from conftest import headers_for
from app.core.security import create_refresh_token

fake = Faker()


class TestUserRegistration:
    """Test user registration endpoint"""

    @pytest.mark.asyncio
    async def test_register_success(self, client: AsyncClient):
        user_data = {
            'name': fake.name(),
            'email': fake.email(),
            'password': 'rahasia123',
            'password_confirmation': 'rahasia123',
        }

        response = await client.post('/api/v1/register', json=user_data)

        assert response.status_code == 201
        body = response.json()
        assert body['status'] == 'success'
        assert body['message'] == 'Registration successful'
        assert body['data']['user']['email'] == user_data['email']
        assert body['data']['user']['role'] == 'user'
        assert body['data']['access_token']
        assert 'hashed_password' not in body['data']['user']

    @pytest.mark.asyncio
    async def test_register_cannot_claim_admin(self, client: AsyncClient):
        response = await client.post('/api/v1/register', json={
            'name': fake.name(),
            'email': fake.email(),
            'password': 'rahasia123',
            'role': 'admin',
        })

        assert response.status_code == 201
        assert response.json()['data']['user']['role'] == 'user'

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, client: AsyncClient, test_user):
        response = await client.post('/api/v1/register', json={
            'name': fake.name(),
            'email': test_user.email,
            'password': 'rahasia123',
        })

        assert response.status_code == 422
        assert response.json()['errors'] == {'email': ['The email has already been taken.']}

    @pytest.mark.asyncio
    async def test_register_reports_every_invalid_field(self, client: AsyncClient):
        response = await client.post('/api/v1/register', json={'email': 'not-an-email', 'password': '123'})

        assert response.status_code == 422
        body = response.json()
        assert body['status'] == 'error'
        assert body['message'] == 'Validation failed'
        assert {'name', 'email', 'password'} <= set(body['errors'])


class TestUserLogin:
    """Test user login endpoint"""

    @pytest.mark.asyncio
    async def test_login_success(self, client: AsyncClient, test_user):
        response = await client.post('/api/v1/login', json={
            'email': test_user.email,
            'password': 'testpassword123',
        })

        assert response.status_code == 200
        data = response.json()['data']
        assert data['token_type'] == 'bearer'
        assert data['user']['id'] == test_user.id

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client: AsyncClient, test_user):
        response = await client.post('/api/v1/login', json={
            'email': test_user.email,
            'password': 'wrongpassword',
        })

        assert response.status_code == 401
        assert response.json() == {'status': 'error', 'message': 'Invalid credentials'}

    @pytest.mark.asyncio
    async def test_login_unknown_email(self, client: AsyncClient):
        response = await client.post('/api/v1/login', json={
            'email': fake.email(),
            'password': 'whatever123',
        })

        assert response.status_code == 401


class TestCurrentUser:
    """Test token-protected account endpoints"""

    @pytest.mark.asyncio
    async def test_get_user(self, client: AsyncClient, test_user, auth_headers):
        response = await client.get('/api/v1/user', headers=auth_headers)

        assert response.status_code == 200
        assert response.json()['data']['email'] == test_user.email

    @pytest.mark.asyncio
    async def test_get_user_without_token(self, client: AsyncClient):
        response = await client.get('/api/v1/user')

        assert response.status_code == 401
        assert response.json() == {'status': 'error', 'message': 'Unauthenticated'}
        assert response.headers['www-authenticate'] == 'Bearer'

    @pytest.mark.asyncio
    async def test_get_user_with_bad_token(self, client: AsyncClient):
        response = await client.get('/api/v1/user', headers={'Authorization': 'Bearer garbage'})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_refresh_token_rejected_as_access_token(self, client: AsyncClient, test_user):
        token = create_refresh_token({'sub': test_user.id})
        response = await client.get('/api/v1/user', headers={'Authorization': f'Bearer {token}'})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_refresh(self, client: AsyncClient, test_user):
        token = create_refresh_token({'sub': test_user.id, 'email': test_user.email, 'role': 'user'})

        response = await client.post('/api/v1/refresh', json={'refresh_token': token})

        assert response.status_code == 200
        assert response.json()['data']['access_token']

    @pytest.mark.asyncio
    async def test_logout(self, client: AsyncClient, auth_headers):
        response = await client.post('/api/v1/logout', headers=auth_headers)

        assert response.status_code == 200
        assert response.json()['message'] == 'Logged out successfully'

    @pytest.mark.asyncio
    async def test_update_profile(self, client: AsyncClient, auth_headers):
        response = await client.put('/api/v1/user/profile', json={'name': ' Made Wirawan ', 'phone': '0812'},
                                    headers=auth_headers)

        assert response.status_code == 200
        data = response.json()['data']
        assert data['name'] == 'Made Wirawan'
        assert data['phone'] == '0812'

    @pytest.mark.asyncio
    async def test_change_password(self, client: AsyncClient, test_user, auth_headers):
        wrong = await client.put('/api/v1/user/password', json={
            'current_password': 'notmypassword',
            'new_password': 'barubaru123',
        }, headers=auth_headers)
        assert wrong.status_code == 422
        assert 'current_password' in wrong.json()['errors']

        response = await client.put('/api/v1/user/password', json={
            'current_password': 'testpassword123',
            'new_password': 'barubaru123',
            'new_password_confirmation': 'barubaru123',
        }, headers=auth_headers)
        assert response.status_code == 200

        login = await client.post('/api/v1/login', json={'email': test_user.email, 'password': 'barubaru123'})
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_inactive_user_rejected(self, client: AsyncClient, db_session, test_user):
        test_user.is_active = False
        await db_session.commit()

        response = await client.get('/api/v1/user', headers=headers_for(test_user))

        assert response.status_code == 401
