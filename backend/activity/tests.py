"""
Test suite for Activity module
Tests: activity logging helper and the project activity feed
"""
from django.contrib.auth.models import AnonymousUser
from django.test import TestCase
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.activity.models import Activity
from backend.activity.utils import log_activity


class LogActivityTests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.user)

    def test_records_entry(self):
        task = TestDataFactory.create_task(self.project, self.user)
        entry = log_activity(
            Activity.Action.TASK_CREATED, 'task', task.id,
            user=self.user, project=self.project, task=task, metadata={'title': task.title},
        )
        self.assertEqual(entry.entity_id, str(task.id))
        self.assertEqual(entry.metadata, {'title': task.title})

    def test_anonymous_user_stored_as_null(self):
        entry = log_activity(Activity.Action.PROJECT_UPDATED, 'project', self.project.id, user=AnonymousUser(), project=self.project)
        self.assertIsNone(entry.user)
        self.assertEqual(entry.metadata, {})

    def test_project_delete_keeps_history(self):
        client = AuthenticatedAPIClient().authenticate_user(self.user)
        project_id = self.project.id
        client.delete(f'/api/projects/{project_id}/')
        entry = Activity.objects.get(action=Activity.Action.PROJECT_DELETED)
        self.assertIsNone(entry.project)
        self.assertEqual(entry.entity_id, str(project_id))


class ProjectActivityFeedTests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.user)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.url = f'/api/projects/{self.project.id}/activity/'

    def test_feed_newest_first(self):
        first = log_activity(Activity.Action.TASK_CREATED, 'task', 1, user=self.user, project=self.project)
        second = log_activity(Activity.Action.TASK_UPDATED, 'task', 1, user=self.user, project=self.project)
        log_activity(Activity.Action.TASK_CREATED, 'task', 2, user=self.user, project=TestDataFactory.create_project(self.user))

        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([a['id'] for a in response.data], [second.id, first.id])
        self.assertEqual(response.data[0]['user']['id'], self.user.id)

    def test_action_filter_and_limit(self):
        for i in range(3):
            log_activity(Activity.Action.TASK_CREATED, 'task', i, user=self.user, project=self.project)
        log_activity(Activity.Action.MEMBER_ADDED, 'project_member', 9, user=self.user, project=self.project)

        response = self.client.get(self.url, {'action': 'TASK_CREATED', 'limit': 2})
        self.assertEqual(len(response.data), 2)
        self.assertTrue(all(a['action'] == 'TASK_CREATED' for a in response.data))

    def test_unknown_action(self):
        response = self.client.get(self.url, {'action': 'NOPE'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_non_member_gets_404(self):
        outsider = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())
        response = outsider.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Project not found')
