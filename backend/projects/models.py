from django.conf import settings
from django.core.validators import RegexValidator
from django.db import models

DEFAULT_PROJECT_COLOR = '#6366f1'

hex_color_validator = RegexValidator(r'^#[0-9A-Fa-f]{6}$', 'Color must be a hex value like #6366f1')
project_key_validator = RegexValidator(r'^[A-Z0-9]{2,5}$', 'Key must be 2-5 upper-case letters or digits')


class Project(models.Model):
    class Status(models.TextChoices):
        ACTIVE = 'ACTIVE', 'Active'
        ON_HOLD = 'ON_HOLD', 'On hold'
        COMPLETED = 'COMPLETED', 'Completed'
        ARCHIVED = 'ARCHIVED', 'Archived'

    name = models.CharField(max_length=100)
    key = models.CharField(max_length=5, validators=[project_key_validator])
    description = models.TextField(blank=True, null=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)
    color = models.CharField(max_length=7, default=DEFAULT_PROJECT_COLOR, validators=[hex_color_validator])
    start_date = models.DateField(blank=True, null=True)
    end_date = models.DateField(blank=True, null=True)
    team = models.ForeignKey('teams.Team', on_delete=models.CASCADE, related_name='projects')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.key} - {self.name}"

    def get_membership(self, user):
        return self.members.filter(user=user).first()

    class Meta:
        db_table = 'projects'
        ordering = ['-updated_at']
        constraints = [
            models.UniqueConstraint(fields=['team', 'key'], name='unique_project_key_per_team'),
        ]


class ProjectMember(models.Model):
    class Role(models.TextChoices):
        OWNER = 'OWNER', 'Owner'
        MANAGER = 'MANAGER', 'Manager'
        MEMBER = 'MEMBER', 'Member'
        VIEWER = 'VIEWER', 'Viewer'

    MANAGE_ROLES = (Role.OWNER, Role.MANAGER)

    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='members')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='project_memberships')
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.MEMBER)
    joined_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.user} in {self.project} ({self.role})"

    @property
    def can_manage(self):
        return self.role in self.MANAGE_ROLES

    class Meta:
        db_table = 'project_members'
        ordering = ['joined_at']
        constraints = [
            models.UniqueConstraint(fields=['project', 'user'], name='unique_project_member'),
        ]
