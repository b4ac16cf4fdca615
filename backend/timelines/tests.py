"""
Test suite for Timelines module
Tests: default timeline switching, events and gantt window selection
"""
from datetime import date
from unittest.mock import patch

from django.test import TestCase
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.timelines.models import Timeline, TimelineEvent
from backend.timelines.utils import set_default_timeline


class DefaultTimelineTests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.user)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_default_unsets_previous(self):
        first = TestDataFactory.create_timeline(self.project, is_default=True)
        data = {
            'name': 'Q4',
            'project': self.project.id,
            'start_date': '2026-10-01',
            'end_date': '2026-12-31',
            'is_default': True
        }
        response = self.client.post('/api/timelines/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['is_default'])
        first.refresh_from_db()
        self.assertFalse(first.is_default)
        self.assertEqual(Timeline.objects.filter(project=self.project, is_default=True).count(), 1)

    def test_update_to_default(self):
        first = TestDataFactory.create_timeline(self.project, is_default=True)
        second = TestDataFactory.create_timeline(self.project)
        response = self.client.patch(f'/api/timelines/{second.id}/', {'is_default': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        first.refresh_from_db()
        second.refresh_from_db()
        self.assertFalse(first.is_default)
        self.assertTrue(second.is_default)

    def test_other_projects_keep_their_default(self):
        other_default = TestDataFactory.create_timeline(TestDataFactory.create_project(self.user), is_default=True)
        set_default_timeline(TestDataFactory.create_timeline(self.project))
        other_default.refresh_from_db()
        self.assertTrue(other_default.is_default)

    def test_failed_switch_keeps_old_default(self):
        first = TestDataFactory.create_timeline(self.project, is_default=True)
        second = TestDataFactory.create_timeline(self.project)
        with patch.object(Timeline, 'save', side_effect=RuntimeError('disk full')):
            with self.assertRaises(RuntimeError):
                set_default_timeline(second)
        first.refresh_from_db()
        self.assertTrue(first.is_default)
        self.assertFalse(Timeline.objects.get(pk=second.pk).is_default)

    def test_end_before_start_rejected(self):
        data = {'name': 'Bad', 'project': self.project.id, 'start_date': '2026-10-10', 'end_date': '2026-10-01'}
        response = self.client.post('/api/timelines/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_default_first(self):
        TestDataFactory.create_timeline(self.project, start_date=date(2026, 1, 1))
        default = TestDataFactory.create_timeline(self.project, start_date=date(2026, 6, 1), is_default=True)
        response = self.client.get(f'/api/timelines/project/{self.project.id}/')
        self.assertEqual(response.data[0]['id'], default.id)

    def test_non_member_forbidden(self):
        timeline = TestDataFactory.create_timeline(self.project)
        outsider = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())
        response = outsider.get(f'/api/timelines/{timeline.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class TimelineEventTests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.user)
        self.timeline = TestDataFactory.create_timeline(self.project)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_event(self):
        data = {'title': 'Release 1.0', 'event_type': 'RELEASE', 'start_date': '2026-11-15'}
        response = self.client.post(f'/api/timelines/{self.timeline.id}/events/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['timeline'], self.timeline.id)

    def test_unknown_event_type(self):
        data = {'title': 'Party', 'event_type': 'PARTY', 'start_date': '2026-11-15'}
        response = self.client.post(f'/api/timelines/{self.timeline.id}/events/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('event_type', response.data)

    def test_update_and_delete_event(self):
        event = TestDataFactory.create_timeline_event(self.timeline)
        response = self.client.patch(f'/api/timelines/{self.timeline.id}/events/{event.id}/', {'title': 'Kickoff v2'}, format='json')
        self.assertEqual(response.data['title'], 'Kickoff v2')

        response = self.client.delete(f'/api/timelines/{self.timeline.id}/events/{event.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(TimelineEvent.objects.exists())

    def test_event_of_other_timeline_is_404(self):
        other = TestDataFactory.create_timeline(self.project)
        event = TestDataFactory.create_timeline_event(other)
        response = self.client.delete(f'/api/timelines/{self.timeline.id}/events/{event.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class GanttTests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.user)
        self.timeline = TestDataFactory.create_timeline(
            self.project, start_date=date(2026, 3, 1), end_date=date(2026, 3, 31)
        )
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_gantt_window(self):
        wp = TestDataFactory.create_work_package(self.project, start_date=date(2026, 2, 1), due_date=date(2026, 4, 30))
        TestDataFactory.create_work_package(self.project, start_date=date(2026, 5, 1), due_date=date(2026, 5, 31))
        spanning = TestDataFactory.create_task(
            self.project, self.user, work_package=wp, start_date=date(2026, 2, 20), due_date=date(2026, 3, 5)
        )
        TestDataFactory.create_task(self.project, self.user, work_package=wp, due_date=date(2026, 4, 10))
        loose = TestDataFactory.create_task(self.project, self.user, start_date=date(2026, 3, 15))
        TestDataFactory.create_task(self.project, self.user)
        inside = TestDataFactory.create_milestone(self.project, due_date=date(2026, 3, 20))
        TestDataFactory.create_milestone(self.project, due_date=date(2026, 4, 20))

        response = self.client.get(f'/api/timelines/{self.timeline.id}/gantt/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['timeline']['id'], self.timeline.id)
        self.assertEqual([m['id'] for m in response.data['milestones']], [inside.id])
        self.assertEqual([w['id'] for w in response.data['work_packages']], [wp.id])
        self.assertEqual([t['id'] for t in response.data['work_packages'][0]['tasks']], [spanning.id])
        self.assertEqual([t['id'] for t in response.data['tasks']], [loose.id])

    def test_other_project_rows_are_excluded(self):
        other = TestDataFactory.create_project(self.user)
        TestDataFactory.create_task(other, self.user, start_date=date(2026, 3, 10))
        TestDataFactory.create_milestone(other, due_date=date(2026, 3, 10))
        response = self.client.get(f'/api/timelines/{self.timeline.id}/gantt/')
        self.assertEqual(response.data['tasks'], [])
        self.assertEqual(response.data['milestones'], [])
