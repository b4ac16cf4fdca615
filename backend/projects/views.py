import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django.db import transaction
from django.shortcuts import get_object_or_404

from backend.activity.models import Activity
from backend.activity.utils import log_activity
from backend.core.exceptions import ConflictError
from backend.notifications.models import NotificationSettings
from backend.notifications.utils import notify_project, create_notification, display_name, build_app_url
from backend.teams.models import TeamMember
from .models import Project, ProjectMember
from .permissions import get_member_project_or_404, require_project_role
from .serializers import (
    ProjectSerializer, ProjectUpdateSerializer, ProjectDetailSerializer,
    ProjectMemberSerializer, AddProjectMemberSerializer
)

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def project_list_create(request):
    """List projects the user is a member of or create a new project"""
    if request.method == 'GET':
        projects = Project.objects.filter(members__user=request.user).select_related('team').prefetch_related('members__user').distinct()
        serializer = ProjectSerializer(projects, many=True)
        return Response(serializer.data)

    serializer = ProjectSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    team = serializer.validated_data['team']
    key = serializer.validated_data['key']
    if not TeamMember.objects.filter(team=team, user=request.user).exists():
        raise PermissionDenied('You are not a member of this team')
    if Project.objects.filter(team=team, key=key).exists():
        raise ConflictError('Project key already exists in this team')

    with transaction.atomic():
        project = serializer.save()
        ProjectMember.objects.create(project=project, user=request.user, role=ProjectMember.Role.OWNER)

    log_activity(
        Activity.Action.PROJECT_CREATED, 'project', project.id,
        user=request.user, project=project, metadata={'project_name': project.name},
    )
    logger.info(f"Project {project.key} created in team {team.slug} by {request.user.email}")
    return Response(ProjectSerializer(project).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def project_detail(request, pk):
    """Retrieve (members), update (owner/manager) or delete (owner) a project"""
    project = get_member_project_or_404(pk, request.user)

    if request.method == 'GET':
        return Response(ProjectDetailSerializer(project).data)

    if request.method in ('PUT', 'PATCH'):
        require_project_role(project, request.user)
        serializer = ProjectUpdateSerializer(project, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        changed = sorted(serializer.validated_data.keys())
        project = serializer.save()
        log_activity(
            Activity.Action.PROJECT_UPDATED, 'project', project.id,
            user=request.user, project=project, metadata={'changes': changed},
        )
        notify_project(
            project, NotificationSettings.Event.PROJECT_UPDATED,
            project_name=project.name,
            update_type='status' if 'status' in changed else 'details',
            updated_by=display_name(request.user),
            description=f"Updated: {', '.join(changed)}" if changed else 'No changes',
            url=build_app_url(f"projects/{project.id}"),
        )
        return Response(ProjectSerializer(project).data)

    # DELETE
    require_project_role(project, request.user, roles=(ProjectMember.Role.OWNER,))
    project_name = project.name
    project.delete()
    log_activity(
        Activity.Action.PROJECT_DELETED, 'project', pk,
        user=request.user, metadata={'project_name': project_name},
    )
    logger.info(f"Project {pk} ({project_name}) deleted by {request.user.email}")
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def project_member_add(request, pk):
    project = get_member_project_or_404(pk, request.user)
    require_project_role(project, request.user)

    serializer = AddProjectMemberSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    user = serializer.validated_data['user']
    if ProjectMember.objects.filter(project=project, user=user).exists():
        raise ConflictError('User is already a member of this project')

    with transaction.atomic():
        member = ProjectMember.objects.create(project=project, user=user, role=serializer.validated_data['role'])

    log_activity(
        Activity.Action.MEMBER_ADDED, 'project_member', member.id,
        user=request.user, project=project, metadata={'member_id': user.id, 'role': member.role},
    )
    create_notification(
        user,
        title='Added to project',
        message=f"{display_name(request.user)} added you to {project.name} as {member.get_role_display()}",
        link=f"/projects/{project.id}",
    )
    notify_project(
        project, NotificationSettings.Event.MEMBER_JOINED,
        project_name=project.name,
        member_name=display_name(user),
        role=member.role,
        invited_by=display_name(request.user),
    )
    return Response(ProjectMemberSerializer(member).data, status=status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def project_member_remove(request, pk, user_id):
    project = get_member_project_or_404(pk, request.user)
    require_project_role(project, request.user)

    member = get_object_or_404(ProjectMember, project=project, user_id=user_id)
    if member.role == ProjectMember.Role.OWNER:
        owners = ProjectMember.objects.filter(project=project, role=ProjectMember.Role.OWNER).count()
        if owners <= 1:
            return Response({'error': 'Cannot remove the last owner of a project'}, status=status.HTTP_400_BAD_REQUEST)

    member_id = member.id
    member.delete()
    log_activity(
        Activity.Action.MEMBER_REMOVED, 'project_member', member_id,
        user=request.user, project=project, metadata={'member_id': user_id},
    )
    return Response(status=status.HTTP_204_NO_CONTENT)
