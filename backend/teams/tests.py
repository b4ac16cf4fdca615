"""
Test suite for Teams module
Tests: team creation, slugs, membership management and role checks
"""
from django.test import TestCase
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.teams.models import Team, TeamMember


class TeamModelTests(TestCase):
    def test_unique_slug_gets_suffix(self):
        owner = TestDataFactory.create_user()
        TestDataFactory.create_team(owner, name='Core Platform')
        self.assertEqual(Team.build_unique_slug('Core Platform'), 'core-platform-2')

    def test_slug_falls_back_for_symbols(self):
        self.assertEqual(Team.build_unique_slug('!!!'), 'team')


class TeamAPITests(TestCase):
    def setUp(self):
        self.owner = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.owner)

    def test_create_team_makes_creator_owner(self):
        response = self.client.post('/api/teams/', {'name': 'Design Team'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['slug'], 'design-team')
        team = Team.objects.get(pk=response.data['id'])
        self.assertEqual(team.owner, self.owner)
        self.assertEqual(TeamMember.objects.get(team=team, user=self.owner).role, TeamMember.Role.OWNER)

    def test_list_only_my_teams(self):
        mine = TestDataFactory.create_team(self.owner)
        TestDataFactory.create_team(TestDataFactory.create_user())
        response = self.client.get('/api/teams/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([t['id'] for t in response.data], [mine.id])

    def test_detail_hidden_from_non_members(self):
        team = TestDataFactory.create_team(TestDataFactory.create_user())
        response = self.client.get(f'/api/teams/{team.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_detail_includes_projects(self):
        team = TestDataFactory.create_team(self.owner)
        TestDataFactory.create_project(self.owner, team=team, key='WEB')
        response = self.client.get(f'/api/teams/{team.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['projects'][0]['key'], 'WEB')

    def test_member_cannot_update_team(self):
        team = TestDataFactory.create_team(TestDataFactory.create_user())
        TestDataFactory.add_team_member(team, self.owner, role=TeamMember.Role.MEMBER)
        response = self.client.put(f'/api/teams/{team.id}/', {'name': 'Renamed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_can_update_but_not_delete(self):
        team = TestDataFactory.create_team(TestDataFactory.create_user())
        TestDataFactory.add_team_member(team, self.owner, role=TeamMember.Role.ADMIN)
        response = self.client.patch(f'/api/teams/{team.id}/', {'description': 'Updated'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['description'], 'Updated')

        response = self.client.delete(f'/api/teams/{team.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_owner_deletes_team(self):
        team = TestDataFactory.create_team(self.owner)
        response = self.client.delete(f'/api/teams/{team.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Team.objects.filter(pk=team.pk).exists())

    def test_add_member_by_email(self):
        team = TestDataFactory.create_team(self.owner)
        new_user = TestDataFactory.create_user(email='bob@example.com')
        response = self.client.post(f'/api/teams/{team.id}/members/', {'email': 'BOB@example.com', 'role': 'ADMIN'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(TeamMember.objects.get(team=team, user=new_user).role, TeamMember.Role.ADMIN)

        response = self.client.post(f'/api/teams/{team.id}/members/', {'email': 'bob@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_add_unknown_email(self):
        team = TestDataFactory.create_team(self.owner)
        response = self.client.post(f'/api/teams/{team.id}/members/', {'email': 'ghost@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'User not found')

    def test_remove_member_but_not_owner(self):
        team = TestDataFactory.create_team(self.owner)
        member = TestDataFactory.create_user()
        TestDataFactory.add_team_member(team, member)

        response = self.client.delete(f'/api/teams/{team.id}/members/{member.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

        response = self.client.delete(f'/api/teams/{team.id}/members/{self.owner.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
