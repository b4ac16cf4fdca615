"""
Test suite for Planning module
Tests: work packages (sort order, nesting, progress) and milestones (completion, task links)
"""
from unittest.mock import patch

from django.db import connection
from django.test import TestCase
from django.test.utils import CaptureQueriesContext
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.activity.models import Activity
from backend.planning.models import WorkPackage, Milestone
from backend.tasks.models import Task


class WorkPackageAPITests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.user)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_assigns_next_sort_order(self):
        TestDataFactory.create_work_package(self.project, sort_order=4)
        response = self.client.post('/api/work-packages/', {'name': 'Backend', 'project': self.project.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['sort_order'], 5)

    def test_first_work_package_gets_sort_order_one(self):
        response = self.client.post('/api/work-packages/', {'name': 'First', 'project': self.project.id}, format='json')
        self.assertEqual(response.data['sort_order'], 1)

    def test_non_member_cannot_create(self):
        outsider = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())
        response = outsider.post('/api/work-packages/', {'name': 'X', 'project': self.project.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'You are not a member of this project')

    def test_parent_must_share_project(self):
        other = TestDataFactory.create_project(self.user)
        foreign_parent = TestDataFactory.create_work_package(other)
        data = {'name': 'Child', 'project': self.project.id, 'parent': foreign_parent.id}
        response = self.client.post('/api/work-packages/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('parent', response.data)

    def test_nesting_loop_is_rejected(self):
        top = TestDataFactory.create_work_package(self.project)
        child = TestDataFactory.create_work_package(self.project, parent=top)
        response = self.client.patch(f'/api/work-packages/{top.id}/', {'parent': child.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        top.refresh_from_db()
        self.assertIsNone(top.parent)

    def test_progress_counts_done_tasks(self):
        wp = TestDataFactory.create_work_package(self.project)
        for task_status in (Task.Status.DONE, Task.Status.DONE, Task.Status.TODO, Task.Status.CANCELLED):
            TestDataFactory.create_task(self.project, self.user, status=task_status, work_package=wp)

        response = self.client.get(f'/api/work-packages/project/{self.project.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]['progress'], 50)
        self.assertEqual(response.data[0]['task_count'], 4)

    def test_empty_work_package_progress_is_zero(self):
        TestDataFactory.create_work_package(self.project)
        response = self.client.get(f'/api/work-packages/project/{self.project.id}/')
        self.assertEqual(response.data[0]['progress'], 0)

    def test_detail_lists_children_and_tasks(self):
        wp = TestDataFactory.create_work_package(self.project)
        TestDataFactory.create_work_package(self.project, parent=wp)
        TestDataFactory.create_task(self.project, self.user, work_package=wp)
        response = self.client.get(f'/api/work-packages/{wp.id}/')
        self.assertEqual(len(response.data['children']), 1)
        self.assertEqual(len(response.data['tasks']), 1)

    def test_update_and_delete(self):
        wp = TestDataFactory.create_work_package(self.project)
        response = self.client.put(f'/api/work-packages/{wp.id}/', {'status': 'IN_PROGRESS'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'IN_PROGRESS')

        response = self.client.delete(f'/api/work-packages/{wp.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(WorkPackage.objects.filter(pk=wp.pk).exists())

    def test_update_sort_order(self):
        wp = TestDataFactory.create_work_package(self.project, sort_order=1)
        response = self.client.patch(f'/api/work-packages/{wp.id}/', {'sort_order': 42}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['sort_order'], 42)
        wp.refresh_from_db()
        self.assertEqual(wp.sort_order, 42)

    def test_create_ignores_client_sort_order(self):
        data = {'name': 'Backend', 'project': self.project.id, 'sort_order': 42}
        response = self.client.post('/api/work-packages/', data, format='json')
        self.assertEqual(response.data['sort_order'], 1)

    def test_list_query_count_does_not_grow_with_work_packages(self):
        def list_queries():
            with CaptureQueriesContext(connection) as queries:
                response = self.client.get(f'/api/work-packages/project/{self.project.id}/')
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            return len(queries)

        wp = TestDataFactory.create_work_package(self.project)
        TestDataFactory.create_task(self.project, self.user, status=Task.Status.DONE, work_package=wp)
        baseline = list_queries()

        for _ in range(3):
            wp = TestDataFactory.create_work_package(self.project)
            TestDataFactory.create_task(self.project, self.user, work_package=wp)
        self.assertEqual(list_queries(), baseline)


class MilestoneAPITests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.user)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_requires_due_date(self):
        response = self.client.post('/api/milestones/', {'name': 'Beta', 'project': self.project.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('due_date', response.data)

    def test_create(self):
        data = {'name': 'Beta', 'project': self.project.id, 'due_date': '2026-12-01'}
        response = self.client.post('/api/milestones/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], Milestone.Status.PENDING)
        self.assertIsNone(response.data['completed_at'])

    def test_complete_and_reopen(self):
        milestone = TestDataFactory.create_milestone(self.project)
        response = self.client.patch(f'/api/milestones/{milestone.id}/', {'completed': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], Milestone.Status.COMPLETED)
        self.assertIsNotNone(response.data['completed_at'])
        self.assertEqual(
            Activity.objects.filter(project=self.project, action=Activity.Action.MILESTONE_COMPLETED).count(), 1
        )

        response = self.client.patch(f'/api/milestones/{milestone.id}/', {'completed': False}, format='json')
        self.assertEqual(response.data['status'], Milestone.Status.PENDING)
        self.assertIsNone(response.data['completed_at'])

    def test_completion_announces_to_mattermost(self):
        TestDataFactory.create_notification_settings(self.project)
        milestone = TestDataFactory.create_milestone(self.project, name='Launch')
        with patch('requests.post') as mock_post:
            mock_post.return_value.raise_for_status.return_value = None
            self.client.patch(f'/api/milestones/{milestone.id}/', {'completed': True}, format='json')
        mock_post.assert_called_once()
        self.assertIn('Milestone reached: Launch', mock_post.call_args.kwargs['json']['text'])

    def test_status_cannot_be_written_directly(self):
        milestone = TestDataFactory.create_milestone(self.project)
        self.client.patch(f'/api/milestones/{milestone.id}/', {'status': 'COMPLETED'}, format='json')
        milestone.refresh_from_db()
        self.assertEqual(milestone.status, Milestone.Status.PENDING)

    def test_progress_and_completed_tasks(self):
        milestone = TestDataFactory.create_milestone(self.project)
        TestDataFactory.create_task(self.project, self.user, status=Task.Status.DONE, milestone=milestone)
        TestDataFactory.create_task(self.project, self.user, milestone=milestone)
        TestDataFactory.create_task(self.project, self.user, milestone=milestone)
        response = self.client.get(f'/api/milestones/project/{self.project.id}/')
        self.assertEqual(response.data[0]['task_count'], 3)
        self.assertEqual(response.data[0]['completed_tasks'], 1)
        self.assertEqual(response.data[0]['progress'], 33)

    def test_add_and_remove_task(self):
        milestone = TestDataFactory.create_milestone(self.project)
        task = TestDataFactory.create_task(self.project, self.user)
        response = self.client.post(f'/api/milestones/{milestone.id}/tasks/', {'task': task.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        task.refresh_from_db()
        self.assertEqual(task.milestone, milestone)

        response = self.client.delete(f'/api/milestones/{milestone.id}/tasks/{task.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        task.refresh_from_db()
        self.assertIsNone(task.milestone)

    def test_add_task_from_other_project(self):
        milestone = TestDataFactory.create_milestone(self.project)
        foreign = TestDataFactory.create_task(TestDataFactory.create_project(self.user), self.user)
        response = self.client.post(f'/api/milestones/{milestone.id}/tasks/', {'task': foreign.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Task belongs to a different project')
