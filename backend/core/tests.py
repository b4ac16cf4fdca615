"""
Test suite for authentication, sessions and user management
Tests: registration, login, refresh rotation, logout, admin user endpoints, error shape
"""
from datetime import timedelta
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.core.models import User, UserSession


class RegistrationTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_register_creates_user_and_session(self):
        data = {
            'email': 'New.Person@Example.com',
            'password': 'longenough1',
            'first_name': 'New',
            'last_name': 'Person'
        }
        response = self.client.post('/api/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['email'], 'new.person@example.com')
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(UserSession.objects.filter(user__email='new.person@example.com').count(), 1)

    def test_register_duplicate_email_conflicts(self):
        TestDataFactory.create_user(email='taken@example.com')
        data = {'email': 'taken@example.com', 'password': 'longenough1', 'first_name': 'A', 'last_name': 'B'}
        response = self.client.post('/api/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'Email already registered')

    def test_register_short_password_rejected(self):
        data = {'email': 'short@example.com', 'password': 'short', 'first_name': 'A', 'last_name': 'B'}
        response = self.client.post('/api/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data)


class LoginTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(email='login@example.com', password='secret-pass')

    def test_login_success(self):
        response = self.client.post('/api/auth/login/', {'email': 'login@example.com', 'password': 'secret-pass'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['user']['id'], self.user.id)
        self.user.refresh_from_db()
        self.assertIsNotNone(self.user.last_login)

    def test_login_wrong_password(self):
        response = self.client.post('/api/auth/login/', {'email': 'login@example.com', 'password': 'nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data, {'error': 'Invalid credentials'})

    def test_login_deactivated_account(self):
        self.user.is_active = False
        self.user.save()
        response = self.client.post('/api/auth/login/', {'email': 'login@example.com', 'password': 'secret-pass'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Account is deactivated')


class SessionTests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_me_requires_token(self):
        anonymous = AuthenticatedAPIClient()
        response = anonymous.get('/api/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn('error', response.data)

    def test_me_returns_current_user(self):
        response = self.client.get('/api/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['email'], self.user.email)

    def test_logout_revokes_access_token(self):
        response = self.client.post('/api/auth/logout/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.get('/api/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_rotates_session(self):
        old_refresh = self.client.tokens['refresh']
        response = self.client.post('/api/auth/refresh/', {'refresh': old_refresh}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertNotEqual(response.data['refresh'], old_refresh)
        self.assertEqual(UserSession.objects.filter(user=self.user).count(), 1)

        # The old refresh token's session is gone
        response = self.client.post('/api/auth/refresh/', {'refresh': old_refresh}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_with_garbage_token(self):
        response = self.client.post('/api/auth/refresh/', {'refresh': 'not-a-token'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'Invalid refresh token')

    def test_logout_all_ends_every_session(self):
        other = AuthenticatedAPIClient().authenticate_user(self.user)
        response = self.client.post('/api/auth/logout-all/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(UserSession.objects.filter(user=self.user).exists())
        self.assertEqual(other.get('/api/auth/me/').status_code, status.HTTP_401_UNAUTHORIZED)

    def test_session_list(self):
        AuthenticatedAPIClient().authenticate_user(self.user)
        response = self.client.get('/api/auth/sessions/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_change_password_keeps_current_session_only(self):
        other = AuthenticatedAPIClient().authenticate_user(self.user)
        response = self.client.put('/api/users/change-password/', {
            'current_password': 'testpass123',
            'new_password': 'brand-new-pass'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get('/api/auth/me/').status_code, status.HTTP_200_OK)
        self.assertEqual(other.get('/api/auth/me/').status_code, status.HTTP_401_UNAUTHORIZED)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('brand-new-pass'))

    def test_change_password_wrong_current(self):
        response = self.client.put('/api/users/change-password/', {
            'current_password': 'wrong',
            'new_password': 'brand-new-pass'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class UserEndpointTests(TestCase):
    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.user = TestDataFactory.create_user(email='alice@example.com', first_name='Alice', last_name='Smith')
        self.client = AuthenticatedAPIClient()

    def test_search_requires_two_characters(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/users/search/', {'q': 'a'})
        self.assertEqual(response.data, [])

    def test_search_matches_name_and_skips_inactive(self):
        TestDataFactory.create_user(email='alina@example.com', first_name='Alina', is_active=False)
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/users/search/', {'q': 'ali'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        emails = [u['email'] for u in response.data]
        self.assertEqual(emails, ['alice@example.com'])

    def test_user_list_admin_only(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_user_list_filters(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/users/', {'role': 'ADMIN'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([u['id'] for u in response.data], [self.admin.id])

        response = self.client.get('/api/users/', {'search': 'smith'})
        self.assertEqual([u['id'] for u in response.data], [self.user.id])

    def test_update_profile(self):
        self.client.authenticate_user(self.user)
        response = self.client.put('/api/users/profile/', {'first_name': 'Alicia'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['first_name'], 'Alicia')
        self.assertEqual(response.data['last_name'], 'Smith')

    def test_admin_changes_role(self):
        self.client.authenticate_user(self.admin)
        response = self.client.put(f'/api/users/{self.user.id}/role/', {'role': 'VIEWER'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.role, User.Role.VIEWER)

    def test_deactivate_ends_sessions(self):
        user_client = AuthenticatedAPIClient().authenticate_user(self.user)
        self.client.authenticate_user(self.admin)
        response = self.client.put(f'/api/users/{self.user.id}/deactivate/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(user_client.get('/api/auth/me/').status_code, status.HTTP_401_UNAUTHORIZED)

        response = self.client.put(f'/api/users/{self.user.id}/activate/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.is_active)

    def test_admin_cannot_deactivate_self(self):
        self.client.authenticate_user(self.admin)
        response = self.client.put(f'/api/users/{self.admin.id}/deactivate/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_missing_user_is_404_with_error_body(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/users/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertIn('error', response.data)


class ServiceEndpointTests(TestCase):
    def test_health(self):
        response = self.client.get('/health/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()['status'], 'ok')

    def test_unknown_route_returns_json_404(self):
        response = self.client.get('/api/does-not-exist/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()['error'], 'Route GET /api/does-not-exist/ not found')


class ClearExpiredSessionsCommandTests(TestCase):
    def test_deletes_only_expired_sessions(self):
        user = TestDataFactory.create_user()
        UserSession.objects.create(user=user, jti='expired', expires_at=timezone.now() - timedelta(days=1))
        UserSession.objects.create(user=user, jti='live', expires_at=timezone.now() + timedelta(days=1))

        out = StringIO()
        call_command('clear_expired_sessions', stdout=out)
        self.assertIn('Deleted 1 expired sessions', out.getvalue())
        self.assertEqual(list(UserSession.objects.values_list('jti', flat=True)), ['live'])
