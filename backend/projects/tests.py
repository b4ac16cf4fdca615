"""
Test suite for Projects module
Tests: project creation, key rules, membership visibility, roles and activity logging
"""
from unittest.mock import patch

from django.test import TestCase
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.activity.models import Activity
from backend.notifications.models import Notification
from backend.projects.models import Project, ProjectMember, DEFAULT_PROJECT_COLOR
from backend.teams.models import TeamMember


class ProjectCreateTests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.team = TestDataFactory.create_team(self.user)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_project(self):
        data = {'name': 'Website', 'key': 'web', 'team': self.team.id}
        response = self.client.post('/api/projects/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['key'], 'WEB')
        self.assertEqual(response.data['color'], DEFAULT_PROJECT_COLOR)

        project = Project.objects.get(pk=response.data['id'])
        self.assertEqual(ProjectMember.objects.get(project=project, user=self.user).role, ProjectMember.Role.OWNER)
        self.assertTrue(Activity.objects.filter(project=project, action=Activity.Action.PROJECT_CREATED).exists())

    def test_duplicate_key_in_team_conflicts(self):
        TestDataFactory.create_project(self.user, team=self.team, key='WEB')
        response = self.client.post('/api/projects/', {'name': 'Again', 'key': 'WEB', 'team': self.team.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'Project key already exists in this team')

    def test_same_key_in_other_team_is_allowed(self):
        other_team = TestDataFactory.create_team(self.user)
        TestDataFactory.create_project(self.user, team=other_team, key='WEB')
        response = self.client.post('/api/projects/', {'name': 'Web', 'key': 'WEB', 'team': self.team.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_invalid_key(self):
        for key in ('A', 'TOOLONG', 'A-B'):
            response = self.client.post('/api/projects/', {'name': 'X', 'key': key, 'team': self.team.id}, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, key)
            self.assertIn('key', response.data)

    def test_invalid_color(self):
        data = {'name': 'X', 'key': 'XY', 'team': self.team.id, 'color': 'blue'}
        response = self.client.post('/api/projects/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('color', response.data)

    def test_end_before_start(self):
        data = {'name': 'X', 'key': 'XY', 'team': self.team.id, 'start_date': '2026-05-10', 'end_date': '2026-05-01'}
        response = self.client.post('/api/projects/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_non_team_member_cannot_create(self):
        foreign_team = TestDataFactory.create_team(TestDataFactory.create_user())
        response = self.client.post('/api/projects/', {'name': 'X', 'key': 'XY', 'team': foreign_team.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'You are not a member of this team')


class ProjectAccessTests(TestCase):
    def setUp(self):
        self.owner = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.owner, key='APP')
        self.client = AuthenticatedAPIClient()

    def test_list_only_member_projects(self):
        TestDataFactory.create_project(TestDataFactory.create_user(), key='OTH')
        self.client.authenticate_user(self.owner)
        response = self.client.get('/api/projects/')
        self.assertEqual([p['id'] for p in response.data], [self.project.id])

    def test_detail_is_404_for_non_members(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get(f'/api/projects/{self.project.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_detail_includes_work_packages_and_milestones(self):
        wp = TestDataFactory.create_work_package(self.project)
        TestDataFactory.create_task(self.project, self.owner, work_package=wp)
        TestDataFactory.create_milestone(self.project)
        self.client.authenticate_user(self.owner)
        response = self.client.get(f'/api/projects/{self.project.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['work_packages'][0]['task_count'], 1)
        self.assertEqual(len(response.data['milestones']), 1)

    def test_member_cannot_update(self):
        member = TestDataFactory.create_user()
        TestDataFactory.add_project_member(self.project, member)
        self.client.authenticate_user(member)
        response = self.client.put(f'/api/projects/{self.project.id}/', {'name': 'Nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Insufficient project permissions')

    def test_manager_updates_but_key_is_fixed(self):
        manager = TestDataFactory.create_user()
        TestDataFactory.add_project_member(self.project, manager, role=ProjectMember.Role.MANAGER)
        self.client.authenticate_user(manager)
        response = self.client.put(f'/api/projects/{self.project.id}/', {'name': 'Renamed', 'key': 'NEW'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.project.refresh_from_db()
        self.assertEqual(self.project.name, 'Renamed')
        self.assertEqual(self.project.key, 'APP')
        self.assertTrue(Activity.objects.filter(project=self.project, action=Activity.Action.PROJECT_UPDATED).exists())

    def test_only_owner_deletes(self):
        manager = TestDataFactory.create_user()
        TestDataFactory.add_project_member(self.project, manager, role=ProjectMember.Role.MANAGER)
        self.client.authenticate_user(manager)
        self.assertEqual(self.client.delete(f'/api/projects/{self.project.id}/').status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.owner)
        self.assertEqual(self.client.delete(f'/api/projects/{self.project.id}/').status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Project.objects.filter(pk=self.project.pk).exists())


class ProjectMemberTests(TestCase):
    def setUp(self):
        self.owner = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.owner, key='MEM')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.owner)

    def test_add_member(self):
        user = TestDataFactory.create_user()
        response = self.client.post(f'/api/projects/{self.project.id}/members/', {'user': user.id, 'role': 'MEMBER'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(ProjectMember.objects.filter(project=self.project, user=user).exists())
        self.assertTrue(Activity.objects.filter(project=self.project, action=Activity.Action.MEMBER_ADDED).exists())
        self.assertTrue(Notification.objects.filter(user=user).exists())

    def test_add_member_twice_conflicts(self):
        user = TestDataFactory.create_user()
        TestDataFactory.add_project_member(self.project, user)
        response = self.client.post(f'/api/projects/{self.project.id}/members/', {'user': user.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_add_member_announces_to_mattermost(self):
        TestDataFactory.create_notification_settings(self.project)
        user = TestDataFactory.create_user()
        with patch('requests.post') as mock_post:
            mock_post.return_value.raise_for_status.return_value = None
            response = self.client.post(f'/api/projects/{self.project.id}/members/', {'user': user.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        mock_post.assert_called_once()
        self.assertIn('joined', mock_post.call_args.kwargs['json']['text'])

    def test_remove_member(self):
        user = TestDataFactory.create_user()
        TestDataFactory.add_project_member(self.project, user)
        response = self.client.delete(f'/api/projects/{self.project.id}/members/{user.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertTrue(Activity.objects.filter(project=self.project, action=Activity.Action.MEMBER_REMOVED).exists())

    def test_cannot_remove_last_owner(self):
        response = self.client.delete(f'/api/projects/{self.project.id}/members/{self.owner.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_team_membership_is_not_project_membership(self):
        team_mate = TestDataFactory.create_user()
        TestDataFactory.add_team_member(self.project.team, team_mate, role=TeamMember.Role.ADMIN)
        client = AuthenticatedAPIClient().authenticate_user(team_mate)
        response = client.get(f'/api/projects/{self.project.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
