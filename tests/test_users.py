from io import StringIO

import pytest
from django.contrib.auth import get_user_model
from django.core.management import call_command
from rest_framework.authtoken.models import Token

AUTH_URL = '/api/auth/'
User = get_user_model()


@pytest.mark.django_db
class TestAuth:

    def test_login_with_email(self, anon_client, user):
        response = anon_client.post(AUTH_URL, {'email': 'Assistant@Cabinet.dz', 'password': 's3cret-pass'}, format='json')

        assert response.status_code == 200
        assert response.data['user'] == {
            'id': user.pk,
            'email': 'assistant@cabinet.dz',
            'full_name': 'Amina Benali',
            'role': 'assistant',
        }
        assert response.data['token'] == Token.objects.get(user=user).key

    def test_token_authenticates(self, anon_client, user):
        token = anon_client.post(AUTH_URL, {'email': user.email, 'password': 's3cret-pass'}, format='json').data['token']

        client = type(anon_client)()
        client.credentials(HTTP_AUTHORIZATION=f"Token {token}")
        assert client.get('/api/inventory/products/').status_code == 200

    def test_bad_password(self, anon_client, user):
        response = anon_client.post(AUTH_URL, {'email': user.email, 'password': 'wrong'}, format='json')

        assert response.status_code == 401
        assert response.data == {'error': 'Invalid credentials'}

    def test_unknown_email(self, anon_client):
        response = anon_client.post(AUTH_URL, {'email': 'nobody@cabinet.dz', 'password': 'whatever1'}, format='json')
        assert response.status_code == 401

    def test_session_check(self, anon_client, api_client, user):
        assert anon_client.get(AUTH_URL).data == {'user': None}
        assert api_client.get(AUTH_URL).data['user']['email'] == user.email

    def test_logout_drops_token(self, api_client, user):
        Token.objects.create(user=user)

        response = api_client.delete(AUTH_URL)

        assert response.data == {'success': True}
        assert not Token.objects.filter(user=user).exists()


@pytest.mark.django_db
class TestStaffUsers:
    url = f"{AUTH_URL}users/"

    def test_admin_only(self, api_client):
        assert api_client.get(self.url).status_code == 403

    def test_create_admin(self, admin_client):
        response = admin_client.post(self.url, {
            'email': 'Dr.Saidi@cabinet.dz',
            'password': 'long-enough-1',
            'full_name': 'Dr. Saidi',
            'role': 'admin',
        }, format='json')

        assert response.status_code == 201
        assert response.data['role'] == 'admin'
        assert response.data['is_active'] is True

        created = User.objects.get(email='dr.saidi@cabinet.dz')
        assert created.username == 'dr.saidi@cabinet.dz'
        assert created.is_staff
        assert created.check_password('long-enough-1')

    def test_password_required_on_create(self, admin_client):
        response = admin_client.post(self.url, {'email': 'x@cabinet.dz'}, format='json')
        assert response.status_code == 400

    def test_duplicate_email(self, admin_client, user):
        response = admin_client.post(self.url, {'email': user.email.upper(), 'password': 'long-enough-1'}, format='json')
        assert response.status_code == 400


@pytest.mark.django_db
class TestProfile:

    def test_created_with_user(self, user):
        assert user.profile.role == 'assistant'

    def test_superuser_is_admin(self):
        boss = User.objects.create_superuser('boss', 'boss@cabinet.dz', 'root-pass-1')
        assert boss.profile.role == 'admin'

    def test_create_staff_user_command(self):
        out = StringIO()
        call_command('create_staff_user', 'Dentist@Cabinet.dz', 'pass-word-9', '--full-name', 'Dr. Lamine',
                     '--role', 'dentist', stdout=out)

        created = User.objects.get(username='dentist@cabinet.dz')
        assert created.profile.role == 'dentist'
        assert created.profile.full_name == 'Dr. Lamine'
        assert not created.is_staff
        assert 'Created dentist' in out.getvalue()
