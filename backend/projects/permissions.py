"""
Membership checks for project-scoped resources.

Access is decided by ProjectMember rows: any member may read and work on a
project's tasks, work packages, milestones, timelines and attachments;
management operations need one of the roles passed in.
"""
from django.http import Http404
from rest_framework.exceptions import PermissionDenied

from .models import Project, ProjectMember

NOT_A_MEMBER = 'You are not a member of this project'


def get_membership(project, user):
    project_id = getattr(project, 'pk', project)
    return ProjectMember.objects.filter(project_id=project_id, user=user).first()


def require_project_member(project, user):
    """Membership row for ``user`` or PermissionDenied"""
    membership = get_membership(project, user)
    if membership is None:
        raise PermissionDenied(NOT_A_MEMBER)
    return membership


def require_project_role(project, user, roles=ProjectMember.MANAGE_ROLES):
    membership = require_project_member(project, user)
    if membership.role not in roles:
        raise PermissionDenied('Insufficient project permissions')
    return membership


def get_member_project_or_404(pk, user):
    """Project visible to ``user``; non-members get 404 so existence is not leaked"""
    project = Project.objects.filter(pk=pk, members__user=user).select_related('team').first()
    if project is None:
        raise Http404('Project not found')
    return project
