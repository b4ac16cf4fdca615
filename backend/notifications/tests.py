"""
Test suite for Notifications module
Tests: in-app notifications, Mattermost settings/test endpoints, payload builders, due-task reminders
"""
from datetime import timedelta
from io import StringIO
from unittest.mock import patch

import requests
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, SimpleTestCase
from django.utils import timezone
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.notifications import mattermost
from backend.notifications.mattermost import MattermostService, CONNECTED_MESSAGE, TEST_MESSAGE
from backend.notifications.models import Notification, NotificationSettings
from backend.notifications.utils import PAYLOAD_BUILDERS, notify_project, display_name
from backend.projects.models import ProjectMember
from backend.tasks.models import Task


class NotificationListTests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_list_with_unread_count(self):
        TestDataFactory.create_notification(self.user)
        TestDataFactory.create_notification(self.user, is_read=True)
        TestDataFactory.create_notification(TestDataFactory.create_user())
        response = self.client.get('/api/users/notifications/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['notifications']), 2)
        self.assertEqual(response.data['unread_count'], 1)

    def test_unread_only_and_limit(self):
        for _ in range(3):
            TestDataFactory.create_notification(self.user)
        TestDataFactory.create_notification(self.user, is_read=True)
        response = self.client.get('/api/users/notifications/', {'unread_only': 'true', 'limit': 2})
        self.assertEqual(len(response.data['notifications']), 2)
        self.assertTrue(all(not n['is_read'] for n in response.data['notifications']))

    def test_bad_limit(self):
        response = self.client.get('/api/users/notifications/', {'limit': 'many'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_mark_read(self):
        notification = TestDataFactory.create_notification(self.user)
        response = self.client.put(f'/api/users/notifications/{notification.id}/read/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_read'])

    def test_cannot_mark_someone_elses(self):
        notification = TestDataFactory.create_notification(TestDataFactory.create_user())
        response = self.client.put(f'/api/users/notifications/{notification.id}/read/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_mark_all_read(self):
        TestDataFactory.create_notification(self.user)
        TestDataFactory.create_notification(self.user)
        response = self.client.put('/api/users/notifications/read-all/')
        self.assertEqual(response.data['updated'], 2)
        self.assertFalse(Notification.objects.filter(user=self.user, is_read=False).exists())


class NotificationSettingsAPITests(TestCase):
    def setUp(self):
        self.owner = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.owner)
        self.member = TestDataFactory.create_user()
        TestDataFactory.add_project_member(self.project, self.member)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.owner)
        self.url = f'/api/notifications/project/{self.project.id}/settings/'

    def test_defaults_without_settings_row(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['enabled'])
        self.assertTrue(response.data['events']['task_assigned'])
        self.assertFalse(response.data['events']['project_updated'])
        self.assertTrue(response.data['is_manager'])

    def test_webhook_hidden_from_members(self):
        TestDataFactory.create_notification_settings(self.project)
        client = AuthenticatedAPIClient().authenticate_user(self.member)
        response = client.get(self.url)
        self.assertEqual(response.data['webhook_url'], '')
        self.assertFalse(response.data['is_manager'])

    def test_member_cannot_update(self):
        client = AuthenticatedAPIClient().authenticate_user(self.member)
        response = client.put(self.url, {'enabled': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_non_member_gets_404(self):
        client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())
        self.assertEqual(client.get(self.url).status_code, status.HTTP_404_NOT_FOUND)

    def test_update_sends_connected_message(self):
        data = {
            'webhook_url': 'https://chat.example.com/hooks/xyz',
            'channel': 'dev',
            'enabled': True,
            'events': {'project_updated': True, 'task_comment': False}
        }
        with patch('requests.post') as mock_post:
            mock_post.return_value.raise_for_status.return_value = None
            response = self.client.put(self.url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Settings updated successfully')

        body = mock_post.call_args.kwargs['json']
        self.assertEqual(mock_post.call_args.args[0], 'https://chat.example.com/hooks/xyz')
        self.assertEqual(body['text'], CONNECTED_MESSAGE)
        self.assertEqual(body['channel'], 'dev')

        saved = NotificationSettings.objects.get(project=self.project)
        self.assertTrue(saved.project_updated)
        self.assertFalse(saved.task_comment)
        self.assertTrue(saved.task_assigned)

    def test_update_reports_failed_webhook(self):
        data = {'webhook_url': 'https://chat.example.com/hooks/xyz', 'enabled': True}
        with patch('requests.post', side_effect=requests.exceptions.ConnectionError('down')):
            response = self.client.put(self.url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Settings saved but webhook test failed. Please check your webhook URL.')
        self.assertTrue(NotificationSettings.objects.get(project=self.project).mattermost_enabled)

    def test_invalid_webhook_url(self):
        response = self.client.put(self.url, {'webhook_url': 'chat.example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('webhook_url', response.data)

    def test_disabled_update_does_not_post(self):
        with patch('requests.post') as mock_post:
            response = self.client.put(self.url, {'channel': 'ops'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        mock_post.assert_not_called()

    def test_event_toggle_on_enabled_settings_does_not_post(self):
        TestDataFactory.create_notification_settings(self.project)
        with patch('requests.post') as mock_post:
            response = self.client.put(self.url, {'events': {'task_comment': False}}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        mock_post.assert_not_called()
        self.assertFalse(NotificationSettings.objects.get(project=self.project).task_comment)

    def test_enabling_without_url_in_request_does_not_post(self):
        TestDataFactory.create_notification_settings(self.project, enabled=False)
        with patch('requests.post') as mock_post:
            response = self.client.put(self.url, {'enabled': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        mock_post.assert_not_called()
        self.assertTrue(NotificationSettings.objects.get(project=self.project).mattermost_enabled)

    def test_test_endpoint(self):
        test_url = f'/api/notifications/project/{self.project.id}/test/'
        response = self.client.post(test_url)
        self.assertEqual(response.data['error'], 'Mattermost integration not enabled')

        TestDataFactory.create_notification_settings(self.project)
        with patch('requests.post') as mock_post:
            mock_post.return_value.raise_for_status.return_value = None
            response = self.client.post(test_url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(mock_post.call_args.kwargs['json']['text'], TEST_MESSAGE)

        with patch('requests.post', side_effect=requests.exceptions.Timeout()):
            response = self.client.post(test_url)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Failed to send test notification')


class NotifyProjectTests(TestCase):
    def setUp(self):
        self.owner = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.owner)

    def send_member_joined(self):
        return notify_project(
            self.project, NotificationSettings.Event.MEMBER_JOINED,
            project_name=self.project.name, member_name='Ana', role=ProjectMember.Role.MEMBER, invited_by='Bo',
        )

    def test_skipped_without_settings(self):
        with patch('requests.post') as mock_post:
            self.assertFalse(self.send_member_joined())
        mock_post.assert_not_called()

    def test_skipped_when_disabled(self):
        TestDataFactory.create_notification_settings(self.project, enabled=False)
        with patch('requests.post') as mock_post:
            self.assertFalse(self.send_member_joined())
        mock_post.assert_not_called()

    def test_skipped_when_event_toggle_off(self):
        TestDataFactory.create_notification_settings(self.project, member_joined=False)
        with patch('requests.post') as mock_post:
            self.assertFalse(self.send_member_joined())
        mock_post.assert_not_called()

    def test_sent(self):
        TestDataFactory.create_notification_settings(self.project)
        with patch('requests.post') as mock_post:
            mock_post.return_value.raise_for_status.return_value = None
            self.assertTrue(self.send_member_joined())
        body = mock_post.call_args.kwargs['json']
        self.assertEqual(body['username'], 'ProjectForge')
        self.assertEqual(body['attachments'][0]['fields'][0], {'short': True, 'title': 'Member', 'value': 'Ana'})

    def test_delivery_failure_is_not_raised(self):
        TestDataFactory.create_notification_settings(self.project)
        with patch('requests.post', side_effect=requests.exceptions.ConnectionError('refused')):
            self.assertFalse(self.send_member_joined())

    def test_every_event_has_a_payload_builder(self):
        self.assertEqual(set(PAYLOAD_BUILDERS), set(NotificationSettings.Event))

    def test_milestone_event_goes_through_send_message(self):
        TestDataFactory.create_notification_settings(self.project)
        with patch.object(MattermostService, 'send_message', return_value=True) as mock_send:
            sent = notify_project(
                self.project, NotificationSettings.Event.MILESTONE_REACHED,
                milestone_name='Beta', project_name=self.project.name, completed_by='Ana',
            )
        self.assertTrue(sent)
        payload = mock_send.call_args.args[0]
        self.assertIn('Beta', payload['text'])

    def test_display_name(self):
        self.assertEqual(display_name(None), 'Unassigned')
        self.assertEqual(display_name(TestDataFactory.create_user(first_name='Ana', last_name='Lima')), 'Ana Lima')


class PayloadBuilderTests(SimpleTestCase):
    def test_task_assigned(self):
        payload = mattermost.build_task_assigned('Fix login', 7, 'Ana', 'Bo', 'Web', url='https://app/t/7')
        self.assertEqual(payload['text'], '📋 **New task assigned to Ana**')
        card = payload['attachments'][0]
        self.assertEqual(card['title'], 'Fix login')
        self.assertEqual(card['title_link'], 'https://app/t/7')
        self.assertEqual(card['text'], 'Project: *Web*')
        self.assertEqual([f['title'] for f in card['fields']], ['Assignee', 'Assigned by', 'Task ID'])
        self.assertEqual(card['fields'][2]['value'], '7')

    def test_no_url_means_no_title_link(self):
        card = mattermost.build_task_completed('Fix login', 7, 'Ana', 'Web')['attachments'][0]
        self.assertNotIn('title_link', card)

    def test_due_soon_footer(self):
        card = mattermost.build_task_due_soon('Fix login', 7, 'Ana', '2026-10-20', 'Web')['attachments'][0]
        self.assertEqual(card['footer'], 'ProjectForge - Due Soon Reminder')

    def test_comment_preview_truncated(self):
        card = mattermost.build_task_comment('Fix login', 7, 'Ana', 'y' * 250, 'Web')['attachments'][0]
        self.assertEqual(card['text'], '>' + 'y' * 200 + '...\n\n**Project:** Web')

    def test_short_comment_kept(self):
        self.assertEqual(mattermost.truncate_preview('short'), 'short')
        self.assertEqual(mattermost.truncate_preview('z' * 200), 'z' * 200)

    def test_request_body_channel_override(self):
        service = MattermostService('https://chat.example.com/hooks/abc', channel='general', username='Bot')
        body = service.build_request_body({'text': 'hi', 'channel': 'alerts'})
        self.assertEqual(body['channel'], 'alerts')
        self.assertEqual(body['username'], 'Bot')
        self.assertEqual(service.build_request_body({'text': 'hi'})['channel'], 'general')

    def test_without_webhook_nothing_is_sent(self):
        with patch('requests.post') as mock_post:
            self.assertFalse(MattermostService('').send_text('hi'))
        mock_post.assert_not_called()


class NotifyDueTasksCommandTests(TestCase):
    def setUp(self):
        self.owner = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.owner)
        TestDataFactory.create_notification_settings(self.project)
        today = timezone.localdate()
        self.due_today = TestDataFactory.create_task(self.project, self.owner, assignee=self.owner, due_date=today)
        TestDataFactory.create_task(self.project, self.owner, due_date=today + timedelta(days=5))
        TestDataFactory.create_task(self.project, self.owner, status=Task.Status.DONE, due_date=today)
        TestDataFactory.create_task(self.project, self.owner, due_date=today - timedelta(days=1))

    def test_sends_reminders(self):
        out = StringIO()
        with patch('requests.post') as mock_post:
            mock_post.return_value.raise_for_status.return_value = None
            call_command('notify_due_tasks', stdout=out)
        self.assertEqual(mock_post.call_count, 1)
        self.assertIn('Sent 1 Mattermost reminders.', out.getvalue())
        self.assertTrue(Notification.objects.filter(user=self.owner, title='Task due soon').exists())

    def test_wider_window(self):
        out = StringIO()
        with patch('requests.post') as mock_post:
            mock_post.return_value.raise_for_status.return_value = None
            call_command('notify_due_tasks', '--days', '7', stdout=out)
        self.assertEqual(mock_post.call_count, 2)

    def test_dry_run(self):
        out = StringIO()
        with patch('requests.post') as mock_post:
            call_command('notify_due_tasks', '--dry-run', stdout=out)
        mock_post.assert_not_called()
        self.assertIn('DRY RUN', out.getvalue())
        self.assertFalse(Notification.objects.exists())

    def test_negative_days(self):
        with self.assertRaises(CommandError):
            call_command('notify_due_tasks', '--days', '-1', stdout=StringIO())
