# cases/tests.py

from unittest import mock

from django.db import IntegrityError
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from users.models import Attorney, InternalStaff, User
from users.principal import Principal
from users.utils import create_client_profile

from . import utils as case_utils
from .lifecycle import STATUS_TABLE, is_terminal, is_valid_status, progress_steps, status_label
from .models import Case
from .permissions import accessible_cases, can_access_case
from .trademarks import normalize_class_selections, normalize_consultation_route, upsert_class_selection
from .utils import create_case, format_case_number, next_sequence_number


def make_user(email, role=User.Role.CLIENT):
    return User.objects.create_user(username=email, email=email, password='Tr4demark!Pass', role=role)


def make_client(email):
    user = make_user(email)
    return user, create_client_profile(user)


def new_case(client_profile, title='OWLERY'):
    return create_case(
        client_profile,
        title=title,
        trademark_type='TEXT',
        applicant='Owlery Inc.',
        classes=['9', '42'],
    )


class LifecycleTest(TestCase):

    def step_statuses(self, status):
        return [step['status'] for step in progress_steps(status)]

    def test_draft_is_first_step(self):
        self.assertEqual(self.step_statuses('DRAFT'), ['current'] + ['pending'] * 5)

    def test_under_examination(self):
        self.assertEqual(
            self.step_statuses('UNDER_EXAMINATION'),
            ['completed', 'completed', 'completed', 'current', 'pending', 'pending'],
        )

    def test_registration_completes_every_step(self):
        self.assertEqual(self.step_statuses('REGISTRATION_COMPLETED'), ['completed'] * 6)
        self.assertEqual(self.step_statuses('AWAITING_RENEWAL'), ['completed'] * 6)

    def test_final_result_is_current_last_step(self):
        self.assertEqual(self.step_statuses('FINAL_RESULT_RECEIVED'), ['completed'] * 5 + ['current'])

    def test_absorbing_states_leave_indicator_pending(self):
        for status in ('REJECTED', 'ABANDONED', 'IN_DISPUTE'):
            self.assertEqual(self.step_statuses(status), ['pending'] * 6)
            self.assertTrue(is_terminal(status))

    def test_status_validation(self):
        self.assertEqual(len(STATUS_TABLE), 17)
        self.assertTrue(is_valid_status('OA_RECEIVED'))
        self.assertFalse(is_valid_status('oa_received'))
        self.assertFalse(is_valid_status('NOT_A_STATUS'))
        self.assertFalse(is_valid_status(None))
        self.assertEqual(status_label('RESPONDING_TO_OA'), 'Responding to office action')


class TrademarkHelpersTest(TestCase):

    def test_consultation_route_spellings(self):
        self.assertEqual(normalize_consultation_route('attorney_consultation'), 'ATTORNEY_CONSULTATION')
        self.assertEqual(normalize_consultation_route('AI_SELF_SERVICE'), 'AI_SELF_SERVICE')
        self.assertIsNone(normalize_consultation_route('phone'))

    def test_upsert_class_selection_replaces_existing_class(self):
        selections = [{'classCode': '9', 'details': ['Software']}]

        updated = upsert_class_selection(selections, '9', ['Apps'])

        self.assertEqual(updated, [{'classCode': '9', 'details': ['Apps']}])
        # The original list is untouched
        self.assertEqual(selections, [{'classCode': '9', 'details': ['Software']}])

    def test_normalize_keeps_last_entry_per_class(self):
        selections = [
            {'classCode': '9', 'details': ['Software']},
            {'classCode': 42, 'details': ['Hosting', '  ']},
            {'classCode': '9', 'details': ['Apps']},
        ]

        self.assertEqual(normalize_class_selections(selections), [
            {'classCode': '9', 'details': ['Apps']},
            {'classCode': '42', 'details': ['Hosting']},
        ])


class CaseNumberingTest(TestCase):

    def setUp(self):
        self.user, self.client_profile = make_client('client@example.com')

    def test_format(self):
        self.assertEqual(format_case_number('MJ0001', 3), 'MJ00010003')

    def test_sequential_numbers_share_customer_prefix(self):
        numbers = [new_case(self.client_profile, title=f"Mark {i}").case_number for i in range(3)]

        self.assertEqual(numbers, ['MJ00010001', 'MJ00010002', 'MJ00010003'])

    def test_new_case_is_draft(self):
        case = new_case(self.client_profile)

        self.assertEqual(case.status, 'DRAFT')
        self.assertEqual(case.user, self.user)

    def test_deleted_cases_keep_their_numbers(self):
        new_case(self.client_profile).soft_delete()

        self.assertEqual(new_case(self.client_profile).case_number, 'MJ00010002')

    def test_clients_number_independently(self):
        _, other_profile = make_client('other@example.com')

        new_case(self.client_profile)
        case = new_case(other_profile)

        self.assertEqual(case.case_number, 'MJ00020001')

    def test_taken_sequence_is_retried(self):
        """A sequence a parallel request already used is rejected and the next one is allocated."""
        new_case(self.client_profile)
        stale_sequences = iter([1])

        def stale_then_fresh(user):
            return next(stale_sequences, None) or next_sequence_number(user)

        with mock.patch.object(case_utils, 'next_sequence_number', side_effect=stale_then_fresh):
            with self.assertLogs('cases.utils', level='WARNING'):
                case = new_case(self.client_profile, title='Second')

        self.assertEqual(case.sequence_number, 2)
        self.assertEqual(case.case_number, 'MJ00010002')

    def test_gives_up_after_repeated_collisions(self):
        new_case(self.client_profile)

        with mock.patch.object(case_utils, 'next_sequence_number', return_value=1) as next_sequence:
            with self.assertLogs('cases.utils', level='WARNING'):
                with self.assertRaises(IntegrityError):
                    new_case(self.client_profile, title='Second')

        self.assertEqual(next_sequence.call_count, case_utils.MAX_NUMBERING_ATTEMPTS)
        self.assertEqual(Case.objects.count(), 1)


class CaseAccessTest(TestCase):
    """The access rule for each role, for both the point check and the query."""

    def setUp(self):
        self.owner, owner_profile = make_client('owner@example.com')
        self.stranger, _ = make_client('stranger@example.com')
        self.admin = make_user('admin@example.com', role=User.Role.ADMIN)

        self.attorney_user = make_user('lawyer@example.com', role=User.Role.ATTORNEY)
        self.attorney = Attorney.objects.create(user=self.attorney_user)
        self.other_attorney_user = make_user('lawyer2@example.com', role=User.Role.ATTORNEY)
        Attorney.objects.create(user=self.other_attorney_user)

        self.staff_user = make_user('staff@example.com', role=User.Role.INTERNAL_STAFF)
        self.staff = InternalStaff.objects.create(user=self.staff_user)

        self.case = new_case(owner_profile)
        self.case.assigned_attorney = self.attorney
        self.case.assigned_internal_staff = self.staff
        self.case.save()

    def allowed(self, user):
        return can_access_case(Principal.from_user(user), self.case)

    def test_matrix(self):
        self.assertTrue(self.allowed(self.admin))
        self.assertTrue(self.allowed(self.owner))
        self.assertFalse(self.allowed(self.stranger))
        self.assertTrue(self.allowed(self.attorney_user))
        self.assertFalse(self.allowed(self.other_attorney_user))
        self.assertTrue(self.allowed(self.staff_user))

    def test_staff_without_assignment(self):
        self.case.assigned_internal_staff = None
        self.case.save()

        self.assertFalse(self.allowed(self.staff_user))

    def test_attorney_without_profile_row(self):
        orphan = make_user('orphan@example.com', role=User.Role.ATTORNEY)

        self.assertFalse(self.allowed(orphan))
        self.assertFalse(accessible_cases(Principal.from_user(orphan)).exists())

    def test_query_agrees_with_point_check(self):
        for user in (self.admin, self.owner, self.stranger, self.attorney_user,
                     self.other_attorney_user, self.staff_user):
            principal = Principal.from_user(user)
            listed = accessible_cases(principal).filter(pk=self.case.pk).exists()
            self.assertEqual(listed, can_access_case(principal, self.case), user.email)

    def test_deleted_cases_are_not_listed(self):
        self.case.soft_delete()

        self.assertFalse(accessible_cases(Principal.from_user(self.admin)).exists())


class ClientCaseApiTest(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.user, self.client_profile = make_client('client@example.com')
        self.client.force_authenticate(user=self.user)
        self.list_url = reverse('cases:case-list')

    def detail_url(self, case):
        return reverse('cases:case-detail', kwargs={'case_id': case.pk})

    def test_create_case(self):
        response = self.client.post(self.list_url, {
            'title': 'OWLERY',
            'trademarkType': 'TEXT',
            'applicant': 'Owlery Inc.',
            'classes': ['9', '42'],
            'classSelections': [{'classCode': '9', 'details': ['Software', '']}],
            'consultationRoute': 'attorney_consultation',
        }, format='json')

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['data']['caseNumber'], 'MJ00010001')
        self.assertEqual(response.json()['message'], 'Case created.')

        case = Case.objects.get(pk=response.json()['data']['id'])
        self.assertEqual(case.status, 'DRAFT')
        self.assertEqual(case.consultation_route, 'ATTORNEY_CONSULTATION')
        self.assertEqual(case.class_selections, [{'classCode': '9', 'details': ['Software']}])

    def test_create_with_blank_route_stores_none(self):
        response = self.client.post(self.list_url, {
            'title': 'OWLERY',
            'trademarkType': 'LOGO',
            'applicant': 'Owlery Inc.',
            'classes': ['25'],
            'consultationRoute': '',
        }, format='json')

        self.assertEqual(response.status_code, 201)
        case = Case.objects.get(pk=response.json()['data']['id'])
        self.assertIsNone(case.consultation_route)

    def test_blank_route_clears_choice(self):
        case = new_case(self.client_profile)
        case.consultation_route = 'AI_SELF_SERVICE'
        case.save()

        response = self.client.patch(self.detail_url(case), {'consultationRoute': ''}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.json()['data']['consultationRoute'])

    def test_create_rejects_unknown_class(self):
        response = self.client.post(self.list_url, {
            'title': 'OWLERY',
            'trademarkType': 'TEXT',
            'applicant': 'Owlery Inc.',
            'classes': ['99'],
        }, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertFalse(Case.objects.exists())

    def test_create_without_client_profile(self):
        attorney = make_user('lawyer@example.com', role=User.Role.ATTORNEY)
        self.client.force_authenticate(user=attorney)

        response = self.client.post(self.list_url, {
            'title': 'OWLERY', 'trademarkType': 'TEXT', 'applicant': 'Owlery Inc.', 'classes': ['9'],
        }, format='json')

        self.assertEqual(response.status_code, 404)

    def test_list_shows_only_own_active_cases(self):
        mine = new_case(self.client_profile, title='Mine')
        new_case(self.client_profile, title='Gone').soft_delete()
        _, other_profile = make_client('other@example.com')
        new_case(other_profile, title='Theirs')

        response = self.client.get(self.list_url)

        ids = [case['id'] for case in response.json()['data']['cases']]
        self.assertEqual(ids, [mine.pk])

    def test_list_filters_and_sorting(self):
        alpha = new_case(self.client_profile, title='Alpha')
        beta = create_case(
            self.client_profile, title='Beta', trademark_type='LOGO', applicant='Owlery Inc.', classes=['25'],
        )

        by_class = self.client.get(self.list_url, {'classes': '25,30'}).json()['data']['cases']
        self.assertEqual([case['id'] for case in by_class], [beta.pk])

        by_type = self.client.get(self.list_url, {'trademarkType': 'TEXT'}).json()['data']['cases']
        self.assertEqual([case['id'] for case in by_type], [alpha.pk])

        by_title = self.client.get(self.list_url, {'sortBy': 'title', 'sortOrder': 'asc'}).json()['data']
        self.assertEqual([case['title'] for case in by_title['cases']], ['Alpha', 'Beta'])
        self.assertEqual(by_title['total'], 2)

    def test_detail_includes_progress(self):
        case = new_case(self.client_profile)

        data = self.client.get(self.detail_url(case)).json()['data']

        self.assertEqual(data['statusLabel'], 'Draft')
        self.assertEqual(len(data['progress']), 6)
        self.assertEqual(data['progress'][0]['status'], 'current')

    def test_other_clients_case_is_forbidden(self):
        _, other_profile = make_client('other@example.com')
        case = new_case(other_profile)

        self.assertEqual(self.client.get(self.detail_url(case)).status_code, 403)
        self.assertEqual(self.client.patch(self.detail_url(case), {'applicant': 'Me'}, format='json').status_code, 403)

    def test_deleted_case_is_not_found(self):
        case = new_case(self.client_profile)
        case.soft_delete()

        self.assertEqual(self.client.get(self.detail_url(case)).status_code, 404)

    def test_update_status_and_route(self):
        case = new_case(self.client_profile)

        response = self.client.patch(self.detail_url(case), {
            'status': 'PRELIMINARY_RESEARCH_IN_PROGRESS',
            'consultationRoute': 'ai_self_service',
        }, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['statusLabel'], 'Preliminary research in progress')

        data = self.client.get(self.detail_url(case)).json()['data']
        self.assertEqual(data['status'], 'PRELIMINARY_RESEARCH_IN_PROGRESS')
        self.assertEqual(data['consultationRoute'], 'AI_SELF_SERVICE')

    def test_invalid_status_rejects_whole_update(self):
        case = new_case(self.client_profile)

        response = self.client.patch(self.detail_url(case), {
            'applicant': 'Someone Else',
            'status': 'NOT_A_STATUS',
        }, format='json')

        # Check 1: Was it rejected with the status message?
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error']['message'], 'status: Invalid status.')

        # Check 2: Was nothing written?
        case.refresh_from_db()
        self.assertEqual(case.status, 'DRAFT')
        self.assertEqual(case.applicant, 'Owlery Inc.')

    def test_absorbing_status_reachable_from_draft(self):
        case = new_case(self.client_profile)

        response = self.client.patch(self.detail_url(case), {'status': 'ABANDONED'}, format='json')

        self.assertEqual(response.status_code, 200)
        case.refresh_from_db()
        self.assertEqual(case.status, 'ABANDONED')

    def test_update_client_intake_document(self):
        case = new_case(self.client_profile)
        intake = {'companyName': 'Owlery Inc.', 'usage': ['online shop']}

        self.client.patch(self.detail_url(case), {'clientIntake': intake}, format='json')

        case.refresh_from_db()
        self.assertEqual(case.client_intake, intake)


class AdminCaseApiTest(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.owner, owner_profile = make_client('client@example.com')
        self.case = new_case(owner_profile)
        self.admin = make_user('admin@example.com', role=User.Role.ADMIN)
        self.list_url = reverse('cases:admin-case-list')
        self.detail_url = reverse('cases:admin-case-detail', kwargs={'case_id': self.case.pk})

    def test_clients_are_kept_out(self):
        self.client.force_authenticate(user=self.owner)

        self.assertEqual(self.client.get(self.list_url).status_code, 403)

    def test_attorney_browses_every_case(self):
        attorney = make_user('lawyer@example.com', role=User.Role.ATTORNEY)
        Attorney.objects.create(user=attorney)
        self.client.force_authenticate(user=attorney)

        response = self.client.get(self.list_url, {'q': 'owlery inc'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual([case['id'] for case in response.json()['data']['cases']], [self.case.pk])

    def test_assign_attorney_and_update_status(self):
        attorney = Attorney.objects.create(user=make_user('lawyer@example.com', role=User.Role.ATTORNEY))
        self.client.force_authenticate(user=self.admin)

        response = self.client.patch(self.detail_url, {
            'status': 'UNDER_EXAMINATION',
            'notes': 'Filed with the office.',
            'assignedAttorneyId': attorney.pk,
        }, format='json')

        self.assertEqual(response.status_code, 200)
        data = response.json()['data']
        self.assertEqual(data['assignedAttorneyId'], attorney.pk)
        self.assertEqual(data['notes'], 'Filed with the office.')
        self.assertEqual(data['progress'][3]['status'], 'current')

    def test_assign_unknown_attorney(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.patch(self.detail_url, {'assignedAttorneyId': 9999}, format='json')

        self.assertEqual(response.status_code, 400)

    def test_only_admin_deletes(self):
        staff_user = make_user('staff@example.com', role=User.Role.INTERNAL_STAFF)
        InternalStaff.objects.create(user=staff_user)
        self.client.force_authenticate(user=staff_user)

        self.assertEqual(self.client.delete(self.detail_url).status_code, 403)
        self.assertIsNone(Case.objects.get(pk=self.case.pk).deleted_at)

    def test_soft_delete_hides_case(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.delete(self.detail_url)

        self.assertEqual(response.status_code, 200)
        self.assertTrue(Case.objects.get(pk=self.case.pk).is_deleted)
        self.assertEqual(self.client.get(self.detail_url).status_code, 404)
        self.assertEqual(self.client.get(self.list_url).json()['data']['total'], 0)


class ReferenceDataApiTest(TestCase):

    def setUp(self):
        self.client = APIClient()

    def test_trademark_classes_are_public(self):
        response = self.client.get(reverse('cases:trademark-classes'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()['data']['classes']), 45)

    def test_case_statuses(self):
        self.client.force_authenticate(user=make_user('client@example.com'))

        data = self.client.get(reverse('cases:case-statuses')).json()['data']

        self.assertEqual([row['value'] for row in data['statuses']][:2], ['DRAFT', 'TRADEMARK_REGISTERED'])
        self.assertEqual(len(data['stages']), 6)
