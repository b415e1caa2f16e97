# users/tests.py

from unittest import mock

from django.db import IntegrityError
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from . import utils as user_utils
from .models import Attorney, Client, InternalStaff, User
from .principal import Principal
from .utils import create_client_profile, format_customer_number, generate_customer_number

STRONG_PASSWORD = 'Tr4demark!Pass'


def make_user(email, role=User.Role.CLIENT, password=STRONG_PASSWORD, name=''):
    return User.objects.create_user(username=email, email=email, password=password, name=name, role=role)


class CustomerNumberTest(TestCase):

    def test_first_customer_number(self):
        self.assertEqual(generate_customer_number(), 'MJ0001')

    def test_customer_numbers_are_sequential(self):
        first = create_client_profile(make_user('a@example.com'))
        second = create_client_profile(make_user('b@example.com'))

        self.assertEqual(first.customer_number, 'MJ0001')
        self.assertEqual(second.customer_number, 'MJ0002')

    def test_numbers_grow_past_four_digits(self):
        """MJ10000 sorts before MJ9999 as a string, so the length has to win."""
        Client.objects.create(user=make_user('a@example.com'), customer_number='MJ9999')
        Client.objects.create(user=make_user('b@example.com'), customer_number='MJ10000')

        self.assertEqual(format_customer_number(10001), 'MJ10001')
        self.assertEqual(generate_customer_number(), 'MJ10001')

    def test_taken_number_is_retried(self):
        """A number another sign-up grabbed first is rejected and the next one is used."""
        create_client_profile(make_user('a@example.com'))
        late_user = make_user('b@example.com')

        stale_numbers = iter(['MJ0001'])

        def stale_then_fresh():
            return next(stale_numbers, None) or generate_customer_number()

        with mock.patch.object(user_utils, 'generate_customer_number', side_effect=stale_then_fresh):
            with self.assertLogs('users.utils', level='WARNING'):
                client = create_client_profile(late_user)

        self.assertEqual(client.customer_number, 'MJ0002')

    def test_gives_up_after_repeated_collisions(self):
        create_client_profile(make_user('a@example.com'))
        late_user = make_user('b@example.com')

        with mock.patch.object(user_utils, 'generate_customer_number', return_value='MJ0001') as generate:
            with self.assertLogs('users.utils', level='WARNING'):
                with self.assertRaises(IntegrityError):
                    create_client_profile(late_user)

        self.assertEqual(generate.call_count, user_utils.MAX_NUMBERING_ATTEMPTS)
        self.assertFalse(Client.objects.filter(user=late_user).exists())


class ChangeRoleTest(TestCase):

    def setUp(self):
        self.user = make_user('staff@example.com')
        create_client_profile(self.user)

    def test_promote_to_attorney_creates_profile(self):
        old_role = self.user.change_role(User.Role.ATTORNEY)

        self.assertEqual(old_role, User.Role.CLIENT)
        self.assertEqual(self.user.role, User.Role.ATTORNEY)
        self.assertTrue(Attorney.objects.filter(user=self.user).exists())

    def test_same_role_twice_is_idempotent(self):
        self.user.change_role(User.Role.ATTORNEY)
        self.user.change_role(User.Role.ATTORNEY)

        self.assertEqual(Attorney.objects.filter(user=self.user).count(), 1)
        self.assertFalse(InternalStaff.objects.filter(user=self.user).exists())

    def test_switching_staff_roles_swaps_profiles(self):
        self.user.change_role(User.Role.ATTORNEY)
        self.user.change_role(User.Role.INTERNAL_STAFF)

        self.assertFalse(Attorney.objects.filter(user=self.user).exists())
        self.assertTrue(InternalStaff.objects.filter(user=self.user).exists())

    def test_client_profile_survives_role_changes(self):
        customer_number = self.user.client_profile.customer_number

        self.user.change_role(User.Role.ADMIN)
        self.user.change_role(User.Role.CLIENT)

        self.assertEqual(Client.objects.get(user=self.user).customer_number, customer_number)
        self.assertEqual(Client.objects.filter(user=self.user).count(), 1)

    def test_demoted_staff_member_gets_client_profile(self):
        attorney = make_user('lawyer@example.com', role=User.Role.ATTORNEY)
        Attorney.objects.create(user=attorney)

        attorney.change_role(User.Role.CLIENT)

        self.assertFalse(Attorney.objects.filter(user=attorney).exists())
        self.assertTrue(Client.objects.filter(user=attorney).exists())


class PrincipalTest(TestCase):

    def test_attorney_principal_carries_profile_id(self):
        user = make_user('lawyer@example.com', role=User.Role.ATTORNEY)
        attorney = Attorney.objects.create(user=user)

        principal = Principal.from_user(user)

        self.assertEqual(principal.attorney_id, attorney.pk)
        self.assertIsNone(principal.internal_staff_id)

    def test_profile_of_another_role_is_ignored(self):
        # A leftover profile row does not grant anything once the role changed
        user = make_user('former@example.com', role=User.Role.CLIENT)
        Attorney.objects.create(user=user)

        principal = Principal.from_user(user)

        self.assertIsNone(principal.attorney_id)
        self.assertEqual(principal.role, User.Role.CLIENT)


class AuthViewTest(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.sign_up_url = reverse('users:sign-up')
        self.sign_in_url = reverse('users:sign-in')
        self.session_url = reverse('users:session')

    def sign_up(self, **overrides):
        payload = {'name': 'Hanako Client', 'email': 'Hanako@Example.com', 'password': STRONG_PASSWORD}
        payload.update(overrides)
        return self.client.post(self.sign_up_url, payload, format='json')

    def test_sign_up_creates_client_and_session(self):
        response = self.sign_up()

        # Check 1: Was the account created?
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertTrue(body['success'])
        self.assertEqual(body['data']['user']['email'], 'hanako@example.com')
        self.assertEqual(body['data']['user']['role'], 'client')

        # Check 2: Does it come with a client profile and a live session?
        user = User.objects.get(email='hanako@example.com')
        self.assertEqual(user.client_profile.customer_number, 'MJ0001')
        self.assertEqual(self.client.get(self.session_url).status_code, 200)

    def test_sign_up_with_taken_email_conflicts(self):
        self.sign_up()
        self.client.logout()

        response = self.sign_up(email='hanako@example.com')

        self.assertEqual(response.status_code, 409)
        self.assertFalse(response.json()['success'])
        self.assertEqual(User.objects.filter(email='hanako@example.com').count(), 1)

    def test_sign_up_rejects_weak_password(self):
        response = self.sign_up(password='short')

        self.assertEqual(response.status_code, 400)
        self.assertTrue(response.json()['error']['message'].startswith('password:'))
        self.assertFalse(User.objects.exists())

    def test_sign_up_rejects_malformed_email(self):
        response = self.sign_up(email='not-an-email')

        self.assertEqual(response.status_code, 400)

    def test_sign_up_rejects_email_longer_than_username(self):
        long_email = 'a' * 140 + '@example.com'

        response = self.sign_up(email=long_email)

        self.assertEqual(response.status_code, 400)
        self.assertTrue(response.json()['error']['message'].startswith('email:'))
        self.assertFalse(User.objects.exists())

    def test_sign_up_losing_a_race_conflicts(self):
        # Only the username collides, as when a parallel sign-up was written first
        User.objects.create_user(username='hanako@example.com', email='old@example.com', password=STRONG_PASSWORD)

        response = self.sign_up()

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['error']['message'], 'This email address is already registered.')
        self.assertEqual(User.objects.count(), 1)
        self.assertFalse(Client.objects.exists())

    def test_sign_in_with_wrong_password(self):
        make_user('client@example.com')

        response = self.client.post(
            self.sign_in_url, {'email': 'client@example.com', 'password': 'Wrong!Password1'}, format='json'
        )

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['error']['message'], 'Incorrect email address or password.')

    def test_sign_in_then_session(self):
        make_user('lawyer@example.com', role=User.Role.ATTORNEY, name='Taro Attorney')

        response = self.client.post(
            self.sign_in_url,
            {'email': 'LAWYER@example.com', 'password': STRONG_PASSWORD, 'rememberMe': True},
            format='json',
        )
        self.assertEqual(response.status_code, 200)

        session = self.client.get(self.session_url).json()['data']['user']
        self.assertEqual(session['role'], 'attorney')
        self.assertEqual(session['name'], 'Taro Attorney')

    def test_session_requires_sign_in(self):
        response = self.client.get(self.session_url)

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['error']['message'], 'You need to sign in.')

    def test_logout_ends_session(self):
        user = make_user('client@example.com')
        self.client.force_login(user)

        self.client.post(reverse('users:logout'))

        self.assertEqual(self.client.get(self.session_url).status_code, 401)


class StaffManagementTest(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.staff_url = reverse('users:staff')
        self.admin = make_user('admin@example.com', role=User.Role.ADMIN)
        self.client.force_authenticate(user=self.admin)

    def test_non_admin_is_refused(self):
        attorney = make_user('lawyer@example.com', role=User.Role.ATTORNEY)
        self.client.force_authenticate(user=attorney)

        response = self.client.get(self.staff_url)

        self.assertEqual(response.status_code, 403)

    def test_create_attorney(self):
        response = self.client.post(self.staff_url, {
            'name': 'New Attorney',
            'email': 'new.attorney@example.com',
            'password': STRONG_PASSWORD,
            'role': 'ATTORNEY',
        }, format='json')

        self.assertEqual(response.status_code, 201)
        user = User.objects.get(email='new.attorney@example.com')
        self.assertEqual(user.role, User.Role.ATTORNEY)
        self.assertTrue(Attorney.objects.filter(user=user).exists())

    def test_create_with_unknown_role(self):
        response = self.client.post(self.staff_url, {
            'name': 'Nobody',
            'email': 'nobody@example.com',
            'password': STRONG_PASSWORD,
            'role': 'SUPERVISOR',
        }, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error']['message'], 'role: Invalid role.')

    def test_create_with_overlong_email(self):
        response = self.client.post(self.staff_url, {
            'name': 'Long Address',
            'email': 'b' * 150 + '@example.com',
            'password': STRONG_PASSWORD,
            'role': 'ATTORNEY',
        }, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(User.objects.count(), 1)

    def test_list_filters_by_role_and_query(self):
        make_user('lawyer@example.com', role=User.Role.ATTORNEY, name='Taro')
        make_user('client@example.com', name='Taro Client')

        response = self.client.get(self.staff_url, {'role': 'ATTORNEY', 'q': 'taro'})

        emails = [user['email'] for user in response.json()['data']['users']]
        self.assertEqual(emails, ['lawyer@example.com'])

    def test_promote_client_to_attorney(self):
        user = make_user('client@example.com')
        create_client_profile(user)

        response = self.client.patch(self.staff_url, {'userId': user.pk, 'role': 'ATTORNEY'}, format='json')

        # Check 1: Does the response report both roles?
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data'], {'userId': user.pk, 'oldRole': 'CLIENT', 'newRole': 'ATTORNEY'})

        # Check 2: Does the staff list and the profile table agree?
        listed = {row['id']: row['role'] for row in self.client.get(self.staff_url).json()['data']['users']}
        self.assertEqual(listed[user.pk], 'ATTORNEY')
        self.assertTrue(Attorney.objects.filter(user_id=user.pk).exists())

    def test_admin_cannot_change_own_role(self):
        response = self.client.patch(self.staff_url, {'userId': self.admin.pk, 'role': 'CLIENT'}, format='json')

        self.assertEqual(response.status_code, 400)
        self.admin.refresh_from_db()
        self.assertEqual(self.admin.role, User.Role.ADMIN)

    def test_change_role_of_unknown_user(self):
        response = self.client.patch(self.staff_url, {'userId': 9999, 'role': 'ATTORNEY'}, format='json')

        self.assertEqual(response.status_code, 404)
