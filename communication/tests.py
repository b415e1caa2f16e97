# communication/tests.py

from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from cases.utils import create_case
from users.models import Attorney, User
from users.utils import create_client_profile

from .models import Message, MessageRead
from .views import mark_messages_read


def make_user(email, role=User.Role.CLIENT):
    return User.objects.create_user(username=email, email=email, password='Tr4demark!Pass', role=role)


def new_case(client_profile, title='OWLERY'):
    return create_case(client_profile, title=title, trademark_type='TEXT', applicant='Owlery Inc.', classes=['9'])


class MessagingSetupMixin:

    def setUp(self):
        self.client = APIClient()
        self.owner = make_user('client@example.com')
        self.owner_profile = create_client_profile(self.owner)
        self.case = new_case(self.owner_profile)

        self.attorney_user = make_user('lawyer@example.com', role=User.Role.ATTORNEY)
        self.attorney = Attorney.objects.create(user=self.attorney_user)

        self.thread_url = reverse('communication:case-messages', kwargs={'case_id': self.case.pk})
        self.inbox_url = reverse('communication:inbox')

    def send(self, user, content, case=None, **extra):
        return Message.objects.create(case=case or self.case, sender=user, content=content, **extra)


class CaseMessagesTest(MessagingSetupMixin, TestCase):

    def test_assignment_grants_thread_access(self):
        """An attorney sees the thread only once assigned, and viewing marks it read."""
        self.client.force_authenticate(user=self.owner)
        self.client.post(self.thread_url, {'content': 'Can we file this month?'}, format='json')

        # Check 1: Unassigned attorney is refused
        self.client.force_authenticate(user=self.attorney_user)
        self.assertEqual(self.client.get(self.thread_url).status_code, 403)

        # Check 2: After assignment the message is listed
        self.case.assigned_attorney = self.attorney
        self.case.save()
        response = self.client.get(self.thread_url)
        self.assertEqual(response.status_code, 200)
        messages = response.json()['data']['messages']
        self.assertEqual([message['content'] for message in messages], ['Can we file this month?'])
        self.assertEqual(response.json()['data']['case']['caseNumber'], self.case.case_number)

        # Check 3: ...and is now read for the attorney
        message = Message.objects.get()
        self.assertTrue(MessageRead.objects.filter(message=message, user=self.attorney_user).exists())

    def test_viewing_twice_records_one_receipt(self):
        self.send(self.attorney_user, 'Draft attached.')
        self.client.force_authenticate(user=self.owner)

        first = self.client.get(self.thread_url).json()['data']['messages'][0]
        second = self.client.get(self.thread_url).json()['data']['messages'][0]

        self.assertFalse(first['isRead'])
        self.assertTrue(second['isRead'])
        self.assertIsNotNone(second['readAt'])
        self.assertEqual(MessageRead.objects.count(), 1)

    def test_own_messages_get_no_receipt(self):
        self.send(self.owner, 'Hello')
        self.client.force_authenticate(user=self.owner)

        message = self.client.get(self.thread_url).json()['data']['messages'][0]

        self.assertTrue(message['isRead'])
        self.assertFalse(MessageRead.objects.exists())

    def test_mark_messages_read_skips_existing_receipts(self):
        message = self.send(self.attorney_user, 'Draft attached.')
        MessageRead.objects.create(message=message, user=self.owner)

        marked = mark_messages_read([message], self.owner.pk, {message.pk: None})

        self.assertEqual(marked, 0)
        self.assertEqual(MessageRead.objects.count(), 1)

    def test_send_message(self):
        self.client.force_authenticate(user=self.owner)

        response = self.client.post(self.thread_url, {
            'content': '  Please review the logo.  ',
            'subject': '',
            'isFlagged': True,
        }, format='json')

        self.assertEqual(response.status_code, 201)
        data = response.json()['data']['message']
        self.assertEqual(data['content'], 'Please review the logo.')
        self.assertIsNone(data['subject'])
        self.assertTrue(data['isFlagged'])
        self.assertEqual(data['sender']['email'], 'client@example.com')

    def test_blank_message_is_rejected(self):
        self.client.force_authenticate(user=self.owner)

        response = self.client.post(self.thread_url, {'content': '   '}, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertFalse(Message.objects.exists())

    def test_toggle_flag(self):
        message = self.send(self.owner, 'Urgent')
        self.client.force_authenticate(user=self.owner)

        response = self.client.patch(self.thread_url, {'messageId': message.pk, 'isFlagged': True}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['message'], {'id': message.pk, 'isFlagged': True})
        message.refresh_from_db()
        self.assertTrue(message.is_flagged)

    def test_flag_message_of_another_case(self):
        other_case = new_case(self.owner_profile, title='Other')
        message = self.send(self.owner, 'Elsewhere', case=other_case)
        self.client.force_authenticate(user=self.owner)

        response = self.client.patch(self.thread_url, {'messageId': message.pk, 'isFlagged': True}, format='json')

        self.assertEqual(response.status_code, 404)

    def test_other_client_is_refused(self):
        stranger = make_user('stranger@example.com')
        create_client_profile(stranger)
        self.client.force_authenticate(user=stranger)

        self.assertEqual(self.client.get(self.thread_url).status_code, 403)
        self.assertEqual(self.client.post(self.thread_url, {'content': 'Hi'}, format='json').status_code, 403)

    def test_deleted_case_is_not_found(self):
        self.case.soft_delete()
        admin = make_user('admin@example.com', role=User.Role.ADMIN)
        self.client.force_authenticate(user=admin)

        self.assertEqual(self.client.get(self.thread_url).status_code, 404)


class InboxTest(MessagingSetupMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.quiet_case = new_case(self.owner_profile, title='Quiet')
        self.flagged_case = new_case(self.owner_profile, title='Flagged')
        self.busy_case = new_case(self.owner_profile, title='Busy')

    def test_counts_and_ordering(self):
        self.send(self.owner, 'My own note', case=self.quiet_case)
        self.send(self.owner, 'Important', case=self.flagged_case, is_flagged=True)
        self.send(self.attorney_user, 'Reply one', case=self.busy_case)
        self.send(self.attorney_user, 'Reply two', case=self.busy_case)
        self.client.force_authenticate(user=self.owner)

        data = self.client.get(self.inbox_url).json()['data']
        by_case = {item['caseId']: item for item in data['communications']}

        # Unread first, then flagged, then the rest
        self.assertEqual(
            [item['caseId'] for item in data['communications']][:3],
            [self.busy_case.pk, self.flagged_case.pk, self.quiet_case.pk],
        )
        self.assertEqual(by_case[self.busy_case.pk]['unreadCount'], 2)
        self.assertEqual(by_case[self.busy_case.pk]['totalMessages'], 2)
        self.assertEqual(by_case[self.busy_case.pk]['latestMessage']['content'], 'Reply two')
        self.assertEqual(by_case[self.quiet_case.pk]['unreadCount'], 0)
        self.assertTrue(by_case[self.flagged_case.pk]['hasFlaggedMessages'])
        self.assertIsNone(by_case[self.case.pk]['latestMessage'])
        self.assertEqual(data['totalUnread'], 2)

    def test_reading_thread_clears_unread(self):
        self.send(self.attorney_user, 'Reply', case=self.busy_case)
        self.client.force_authenticate(user=self.owner)

        self.client.get(reverse('communication:case-messages', kwargs={'case_id': self.busy_case.pk}))

        self.assertEqual(self.client.get(self.inbox_url).json()['data']['totalUnread'], 0)

    def test_attorney_inbox_lists_assigned_cases_only(self):
        self.busy_case.assigned_attorney = self.attorney
        self.busy_case.save()
        self.client.force_authenticate(user=self.attorney_user)

        data = self.client.get(self.inbox_url).json()['data']

        self.assertEqual([item['caseId'] for item in data['communications']], [self.busy_case.pk])

    def test_admin_inbox_covers_every_active_case(self):
        self.send(self.attorney_user, 'Reply', case=self.busy_case)
        self.send(self.attorney_user, 'Withdrawn', case=self.quiet_case)
        self.quiet_case.soft_delete()
        admin = make_user('admin@example.com', role=User.Role.ADMIN)
        self.client.force_authenticate(user=admin)

        data = self.client.get(self.inbox_url).json()['data']

        # The deleted case and its messages are left out
        self.assertEqual(
            {item['caseId'] for item in data['communications']},
            {self.case.pk, self.flagged_case.pk, self.busy_case.pk},
        )
        self.assertEqual(data['totalUnread'], 1)
