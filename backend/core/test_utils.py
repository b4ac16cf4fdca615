"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient
from backend.core.auth import issue_session_tokens
from backend.teams.models import Team, TeamMember
from backend.projects.models import Project, ProjectMember
from backend.planning.models import WorkPackage, Milestone
from backend.tasks.models import Task, TaskDependency, Comment
from backend.timelines.models import Timeline, TimelineEvent
from backend.notifications.models import Notification, NotificationSettings
from datetime import timedelta
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def random_key(length=4):
        return ''.join(random.choices(string.ascii_uppercase, k=length))

    @staticmethod
    def create_user(email=None, password='testpass123', first_name='Test', last_name='User',
                    role=User.Role.MEMBER, is_active=True, is_staff=False, is_superuser=False):
        """Create a test user"""
        if not email:
            email = f'user_{TestDataFactory.random_string(6).lower()}@test.com'
        return User.objects.create_user(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            role=role,
            is_active=is_active,
            is_staff=is_staff,
            is_superuser=is_superuser
        )

    @staticmethod
    def create_admin(email=None, password='testpass123'):
        return TestDataFactory.create_user(email=email, password=password, role=User.Role.ADMIN)

    @staticmethod
    def create_team(owner, name=None):
        """Create a team with ``owner`` as its OWNER member"""
        if not name:
            name = f'Team {TestDataFactory.random_string(6)}'
        team = Team.objects.create(name=name, slug=Team.build_unique_slug(name), owner=owner)
        TeamMember.objects.create(team=team, user=owner, role=TeamMember.Role.OWNER)
        return team

    @staticmethod
    def add_team_member(team, user, role=TeamMember.Role.MEMBER):
        return TeamMember.objects.create(team=team, user=user, role=role)

    @staticmethod
    def create_project(owner, team=None, name=None, key=None, **extra):
        """Create a project (and a team when none is given) with ``owner`` as OWNER"""
        if team is None:
            team = TestDataFactory.create_team(owner)
        if not name:
            name = f'Project {TestDataFactory.random_string(6)}'
        if not key:
            key = TestDataFactory.random_key()
        project = Project.objects.create(name=name, key=key, team=team, **extra)
        ProjectMember.objects.create(project=project, user=owner, role=ProjectMember.Role.OWNER)
        return project

    @staticmethod
    def add_project_member(project, user, role=ProjectMember.Role.MEMBER):
        return ProjectMember.objects.create(project=project, user=user, role=role)

    @staticmethod
    def create_work_package(project, name=None, parent=None, sort_order=0, **extra):
        if not name:
            name = f'WP {TestDataFactory.random_string(6)}'
        return WorkPackage.objects.create(project=project, name=name, parent=parent, sort_order=sort_order, **extra)

    @staticmethod
    def create_milestone(project, name=None, due_date=None, **extra):
        if not name:
            name = f'Milestone {TestDataFactory.random_string(6)}'
        if due_date is None:
            due_date = timezone.localdate() + timedelta(days=14)
        return Milestone.objects.create(project=project, name=name, due_date=due_date, **extra)

    @staticmethod
    def create_task(project, creator, title=None, status=Task.Status.TODO, sort_order=0, **extra):
        """Create a test task"""
        if not title:
            title = f'Task {TestDataFactory.random_string(6)}'
        return Task.objects.create(
            project=project,
            creator=creator,
            title=title,
            status=status,
            sort_order=sort_order,
            **extra
        )

    @staticmethod
    def create_dependency(task, depends_on):
        return TaskDependency.objects.create(task=task, depends_on=depends_on)

    @staticmethod
    def create_comment(task, user, content='Looks good'):
        return Comment.objects.create(task=task, user=user, content=content)

    @staticmethod
    def create_timeline(project, name=None, start_date=None, end_date=None, is_default=False):
        if not name:
            name = f'Timeline {TestDataFactory.random_string(6)}'
        start_date = start_date or timezone.localdate()
        end_date = end_date or start_date + timedelta(days=30)
        return Timeline.objects.create(
            project=project,
            name=name,
            start_date=start_date,
            end_date=end_date,
            is_default=is_default
        )

    @staticmethod
    def create_timeline_event(timeline, title='Kickoff', event_type=TimelineEvent.EventType.MEETING, start_date=None, **extra):
        return TimelineEvent.objects.create(
            timeline=timeline,
            title=title,
            event_type=event_type,
            start_date=start_date or timeline.start_date,
            **extra
        )

    @staticmethod
    def create_notification(user, title='Heads up', message='Something happened', is_read=False):
        return Notification.objects.create(user=user, title=title, message=message, is_read=is_read)

    @staticmethod
    def create_notification_settings(project, webhook_url='https://chat.example.com/hooks/abc', enabled=True, **toggles):
        return NotificationSettings.objects.create(
            project=project,
            mattermost_webhook_url=webhook_url,
            mattermost_enabled=enabled,
            **toggles
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Open a session for ``user`` and send its access token"""
        self.tokens = issue_session_tokens(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {self.tokens["access"]}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
