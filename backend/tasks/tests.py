"""
Test suite for Tasks module
Tests: progress and ordering helpers, dependency guard, task API, comments and notifications
"""
from unittest.mock import patch

from django.core.exceptions import ImproperlyConfigured
from django.test import TestCase, SimpleTestCase, override_settings
from rest_framework import status
from rest_framework.exceptions import ValidationError
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.activity.models import Activity
from backend.notifications.models import Notification
from backend.planning.models import Priority
from backend.tasks.models import Task, TaskDependency
from backend.tasks.utils import (
    calculate_progress, count_completed, get_next_sort_order, add_task_dependency,
    get_cycle_check_mode, is_reachable, CircularDependencyError, DuplicateDependencyError,
    CYCLE_CHECK_DIRECT
)


class ProgressTests(SimpleTestCase):
    def test_empty_is_zero(self):
        self.assertEqual(calculate_progress([]), 0)

    def test_cancelled_counts_toward_total(self):
        statuses = [Task.Status.DONE, Task.Status.DONE, Task.Status.TODO, Task.Status.CANCELLED]
        self.assertEqual(calculate_progress(statuses), 50)
        self.assertEqual(count_completed(statuses), 2)

    def test_all_done(self):
        self.assertEqual(calculate_progress([Task.Status.DONE] * 3), 100)

    def test_rounding(self):
        # 1/3 -> 33, 2/3 -> 67, 1/8 -> 12.5 -> 13
        self.assertEqual(calculate_progress([Task.Status.DONE, Task.Status.TODO, Task.Status.TODO]), 33)
        self.assertEqual(calculate_progress([Task.Status.DONE, Task.Status.DONE, Task.Status.TODO]), 67)
        self.assertEqual(calculate_progress([Task.Status.DONE] + [Task.Status.TODO] * 7), 13)

    def test_reachability(self):
        edges = {1: [2], 2: [3]}
        self.assertTrue(is_reachable(1, 3, edges))
        self.assertFalse(is_reachable(3, 1, edges))

    @override_settings(TASK_DEPENDENCY_CYCLE_CHECK='sometimes')
    def test_unknown_cycle_check_mode(self):
        with self.assertRaises(ImproperlyConfigured):
            get_cycle_check_mode()


class SortOrderTests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.user)

    def test_empty_scope_starts_at_one(self):
        self.assertEqual(get_next_sort_order(Task.objects.filter(project=self.project)), 1)

    def test_next_after_max(self):
        for order in (1, 2, 5):
            TestDataFactory.create_task(self.project, self.user, sort_order=order)
        self.assertEqual(get_next_sort_order(Task.objects.filter(project=self.project)), 6)


class DependencyGuardTests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.user)
        self.a = TestDataFactory.create_task(self.project, self.user, title='A')
        self.b = TestDataFactory.create_task(self.project, self.user, title='B')
        self.c = TestDataFactory.create_task(self.project, self.user, title='C')

    def test_add_dependency(self):
        dependency = add_task_dependency(self.a, self.b)
        self.assertEqual((dependency.task, dependency.depends_on), (self.a, self.b))

    def test_duplicate(self):
        add_task_dependency(self.a, self.b)
        with self.assertRaises(DuplicateDependencyError):
            add_task_dependency(self.a, self.b)

    def test_reverse_edge_is_circular(self):
        add_task_dependency(self.a, self.b)
        with self.assertRaises(CircularDependencyError):
            add_task_dependency(self.b, self.a)

    def test_longer_cycle_is_circular(self):
        add_task_dependency(self.a, self.b)
        add_task_dependency(self.b, self.c)
        with self.assertRaises(CircularDependencyError):
            add_task_dependency(self.c, self.a)
        self.assertEqual(TaskDependency.objects.count(), 2)

    @override_settings(TASK_DEPENDENCY_CYCLE_CHECK=CYCLE_CHECK_DIRECT)
    def test_direct_mode_only_checks_one_hop(self):
        add_task_dependency(self.a, self.b)
        add_task_dependency(self.b, self.c)
        add_task_dependency(self.c, self.a)
        with self.assertRaises(CircularDependencyError):
            add_task_dependency(self.b, self.a)

    def test_self_dependency(self):
        with self.assertRaises(ValidationError):
            add_task_dependency(self.a, self.a)

    def test_cross_project_dependency(self):
        other = TestDataFactory.create_task(TestDataFactory.create_project(self.user), self.user)
        with self.assertRaises(ValidationError):
            add_task_dependency(self.a, other)


class TaskAPITests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.user)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_task(self):
        TestDataFactory.create_task(self.project, self.user, sort_order=3)
        data = {'title': 'Write docs', 'project': self.project.id, 'priority': 'HIGH', 'estimated_hours': '2.50'}
        response = self.client.post('/api/tasks/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['sort_order'], 4)
        self.assertEqual(response.data['status'], Task.Status.TODO)
        self.assertEqual(response.data['creator']['id'], self.user.id)
        self.assertTrue(Activity.objects.filter(project=self.project, action=Activity.Action.TASK_CREATED).exists())

    def test_create_requires_membership(self):
        outsider = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())
        response = outsider.post('/api/tasks/', {'title': 'X', 'project': self.project.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_rejects_foreign_work_package(self):
        foreign_wp = TestDataFactory.create_work_package(TestDataFactory.create_project(self.user))
        data = {'title': 'X', 'project': self.project.id, 'work_package': foreign_wp.id}
        response = self.client.post('/api/tasks/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('work_package', response.data)

    def test_assignee_must_be_member(self):
        stranger = TestDataFactory.create_user()
        data = {'title': 'X', 'project': self.project.id, 'assignee': stranger.id}
        response = self.client.post('/api/tasks/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('assignee', response.data)

    def test_create_with_assignee_notifies(self):
        teammate = TestDataFactory.create_user()
        TestDataFactory.add_project_member(self.project, teammate)
        response = self.client.post('/api/tasks/', {'title': 'X', 'project': self.project.id, 'assignee': teammate.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(Notification.objects.filter(user=teammate, title='New task assigned').exists())

    def test_project_tasks_in_sort_order(self):
        second = TestDataFactory.create_task(self.project, self.user, sort_order=2)
        first = TestDataFactory.create_task(self.project, self.user, sort_order=1)
        response = self.client.get(f'/api/tasks/project/{self.project.id}/')
        self.assertEqual([t['id'] for t in response.data], [first.id, second.id])

    def test_detail_includes_comments_and_dependencies(self):
        task = TestDataFactory.create_task(self.project, self.user)
        other = TestDataFactory.create_task(self.project, self.user)
        TestDataFactory.create_comment(task, self.user)
        TestDataFactory.create_dependency(task, other)
        response = self.client.get(f'/api/tasks/{task.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['comments']), 1)
        self.assertEqual(response.data['dependencies'][0]['depends_on']['id'], other.id)
        self.assertEqual(response.data['attachments'], [])

    def test_first_move_to_done_stamps_completed_at(self):
        task = TestDataFactory.create_task(self.project, self.user)
        response = self.client.patch(f'/api/tasks/{task.id}/', {'status': 'DONE'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        task.refresh_from_db()
        completed_at = task.completed_at
        self.assertIsNotNone(completed_at)
        self.assertTrue(Activity.objects.filter(task=task, action=Activity.Action.TASK_COMPLETED).exists())

        self.client.patch(f'/api/tasks/{task.id}/', {'status': 'IN_PROGRESS'}, format='json')
        self.client.patch(f'/api/tasks/{task.id}/', {'status': 'DONE'}, format='json')
        task.refresh_from_db()
        self.assertEqual(task.completed_at, completed_at)

    def test_completion_announces_to_mattermost(self):
        TestDataFactory.create_notification_settings(self.project)
        task = TestDataFactory.create_task(self.project, self.user)
        with patch('requests.post') as mock_post:
            mock_post.return_value.raise_for_status.return_value = None
            self.client.patch(f'/api/tasks/{task.id}/', {'status': 'DONE'}, format='json')
        mock_post.assert_called_once()
        self.assertIn('Task completed by', mock_post.call_args.kwargs['json']['text'])

    def test_delete_task(self):
        task = TestDataFactory.create_task(self.project, self.user)
        response = self.client.delete(f'/api/tasks/{task.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Task.objects.filter(pk=task.pk).exists())

    def test_my_tasks_ordered_by_priority_then_due_date(self):
        low = TestDataFactory.create_task(self.project, self.user, priority=Priority.LOW, assignee=self.user)
        urgent_late = TestDataFactory.create_task(
            self.project, self.user, priority=Priority.URGENT, due_date='2026-12-20', assignee=self.user
        )
        urgent_soon = TestDataFactory.create_task(
            self.project, self.user, priority=Priority.URGENT, due_date='2026-12-01', assignee=self.user
        )
        TestDataFactory.create_task(self.project, self.user, priority=Priority.URGENT)

        response = self.client.get('/api/tasks/my/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([t['id'] for t in response.data], [urgent_soon.id, urgent_late.id, low.id])

    def test_my_tasks_status_filter(self):
        TestDataFactory.create_task(self.project, self.user, assignee=self.user)
        done = TestDataFactory.create_task(self.project, self.user, status=Task.Status.DONE, assignee=self.user)
        response = self.client.get('/api/tasks/my/', {'status': 'DONE'})
        self.assertEqual([t['id'] for t in response.data], [done.id])

    def test_reorder(self):
        a = TestDataFactory.create_task(self.project, self.user, sort_order=1)
        b = TestDataFactory.create_task(self.project, self.user, sort_order=2)
        data = {
            'project': self.project.id,
            'tasks': [
                {'id': a.id, 'sort_order': 2, 'status': 'DONE'},
                {'id': b.id, 'sort_order': 1},
            ]
        }
        response = self.client.put('/api/tasks/reorder/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        a.refresh_from_db()
        b.refresh_from_db()
        self.assertEqual((a.sort_order, b.sort_order), (2, 1))
        self.assertEqual(a.status, Task.Status.DONE)
        self.assertIsNotNone(a.completed_at)

    def test_reorder_rejects_foreign_tasks(self):
        foreign = TestDataFactory.create_task(TestDataFactory.create_project(self.user), self.user)
        data = {'project': self.project.id, 'tasks': [{'id': foreign.id, 'sort_order': 1}]}
        response = self.client.put('/api/tasks/reorder/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        foreign.refresh_from_db()
        self.assertEqual(foreign.sort_order, 0)

    def test_assign_and_unassign(self):
        teammate = TestDataFactory.create_user()
        TestDataFactory.add_project_member(self.project, teammate)
        task = TestDataFactory.create_task(self.project, self.user)

        response = self.client.put(f'/api/tasks/{task.id}/assign/', {'assignee': teammate.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['assignee'], teammate.id)
        self.assertTrue(Activity.objects.filter(task=task, action=Activity.Action.TASK_ASSIGNED).exists())

        response = self.client.put(f'/api/tasks/{task.id}/assign/', {'assignee': None}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['assignee'])


class DependencyAPITests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.user)
        self.a = TestDataFactory.create_task(self.project, self.user)
        self.b = TestDataFactory.create_task(self.project, self.user)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_add_and_list(self):
        response = self.client.post(f'/api/tasks/{self.a.id}/dependencies/', {'depends_on': self.b.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.get(f'/api/tasks/{self.b.id}/dependencies/')
        self.assertEqual(response.data['dependencies'], [])
        self.assertEqual(response.data['dependents'][0]['task']['id'], self.a.id)

    def test_circular_is_conflict(self):
        TestDataFactory.create_dependency(self.a, self.b)
        response = self.client.post(f'/api/tasks/{self.b.id}/dependencies/', {'depends_on': self.a.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'Circular dependency detected')

    def test_duplicate_is_conflict(self):
        TestDataFactory.create_dependency(self.a, self.b)
        response = self.client.post(f'/api/tasks/{self.a.id}/dependencies/', {'depends_on': self.b.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'Dependency already exists')

    def test_self_dependency_is_bad_request(self):
        response = self.client.post(f'/api/tasks/{self.a.id}/dependencies/', {'depends_on': self.a.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('depends_on', response.data)

    def test_remove(self):
        TestDataFactory.create_dependency(self.a, self.b)
        response = self.client.delete(f'/api/tasks/{self.a.id}/dependencies/{self.b.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(TaskDependency.objects.exists())


class CommentAPITests(TestCase):
    def setUp(self):
        self.creator = TestDataFactory.create_user()
        self.assignee = TestDataFactory.create_user()
        self.commenter = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.creator)
        TestDataFactory.add_project_member(self.project, self.assignee)
        TestDataFactory.add_project_member(self.project, self.commenter)
        self.task = TestDataFactory.create_task(self.project, self.creator, assignee=self.assignee)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.commenter)

    def test_comment_notifies_creator_and_assignee(self):
        response = self.client.post(f'/api/tasks/{self.task.id}/comments/', {'content': 'Ready for review'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['id'], self.commenter.id)
        notified = set(Notification.objects.filter(title='New comment').values_list('user_id', flat=True))
        self.assertEqual(notified, {self.creator.id, self.assignee.id})
        self.assertTrue(Activity.objects.filter(task=self.task, action=Activity.Action.TASK_COMMENTED).exists())

    def test_commenter_is_not_notified(self):
        client = AuthenticatedAPIClient().authenticate_user(self.creator)
        client.post(f'/api/tasks/{self.task.id}/comments/', {'content': 'Self note'}, format='json')
        notified = set(Notification.objects.filter(title='New comment').values_list('user_id', flat=True))
        self.assertEqual(notified, {self.assignee.id})

    def test_blank_comment_rejected(self):
        response = self.client.post(f'/api/tasks/{self.task.id}/comments/', {'content': '   '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_long_comment_preview_is_truncated(self):
        TestDataFactory.create_notification_settings(self.project)
        with patch('requests.post') as mock_post:
            mock_post.return_value.raise_for_status.return_value = None
            self.client.post(f'/api/tasks/{self.task.id}/comments/', {'content': 'x' * 300}, format='json')
        text = mock_post.call_args.kwargs['json']['attachments'][0]['text']
        self.assertTrue(text.startswith('>' + 'x' * 200 + '...'))

    def test_list_comments(self):
        TestDataFactory.create_comment(self.task, self.creator)
        response = self.client.get(f'/api/tasks/{self.task.id}/comments/')
        self.assertEqual(len(response.data), 1)
