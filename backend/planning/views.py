import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django.db import transaction
from django.shortcuts import get_object_or_404

from backend.activity.models import Activity
from backend.activity.utils import log_activity
from backend.notifications.models import NotificationSettings
from backend.notifications.utils import notify_project, display_name, build_app_url
from backend.projects.models import Project
from backend.projects.permissions import require_project_member
from backend.tasks.models import Task
from backend.tasks.serializers import TaskListSerializer
from backend.tasks.utils import get_next_sort_order
from .models import WorkPackage, Milestone
from .serializers import (
    WorkPackageSerializer, WorkPackageUpdateSerializer, WorkPackageDetailSerializer,
    MilestoneSerializer, MilestoneUpdateSerializer, MilestoneDetailSerializer, MilestoneTaskSerializer
)

logger = logging.getLogger(__name__)


def _get_member_object_or_404(model, pk, user):
    obj = get_object_or_404(model.objects.select_related('project'), pk=pk)
    require_project_member(obj.project_id, user)
    return obj


# Work packages

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def project_work_packages(request, project_id):
    """Work packages of a project with progress"""
    project = get_object_or_404(Project, pk=project_id)
    require_project_member(project, request.user)
    work_packages = WorkPackage.objects.filter(project=project).prefetch_related('tasks', 'children')
    serializer = WorkPackageSerializer(work_packages, many=True)
    return Response(serializer.data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def work_package_create(request):
    serializer = WorkPackageSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    project = serializer.validated_data['project']
    require_project_member(project, request.user)

    with transaction.atomic():
        Project.objects.select_for_update().filter(pk=project.pk).first()
        sort_order = get_next_sort_order(WorkPackage.objects.filter(project=project))
        work_package = serializer.save(sort_order=sort_order)

    logger.info(f"Work package {work_package.id} created in project {project.key}")
    return Response(WorkPackageSerializer(work_package).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def work_package_detail(request, pk):
    work_package = _get_member_object_or_404(WorkPackage, pk, request.user)

    if request.method == 'GET':
        return Response(WorkPackageDetailSerializer(work_package).data)

    if request.method == 'DELETE':
        work_package.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = WorkPackageUpdateSerializer(work_package, data=request.data, partial=True)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    work_package = serializer.save()
    return Response(WorkPackageSerializer(work_package).data)


# Milestones

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def project_milestones(request, project_id):
    """Milestones of a project with progress and completed task counts"""
    project = get_object_or_404(Project, pk=project_id)
    require_project_member(project, request.user)
    milestones = Milestone.objects.filter(project=project).prefetch_related('tasks')
    serializer = MilestoneSerializer(milestones, many=True)
    return Response(serializer.data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def milestone_create(request):
    serializer = MilestoneSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    require_project_member(serializer.validated_data['project'], request.user)
    milestone = serializer.save()
    return Response(MilestoneSerializer(milestone).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def milestone_detail(request, pk):
    milestone = _get_member_object_or_404(Milestone, pk, request.user)

    if request.method == 'GET':
        return Response(MilestoneDetailSerializer(milestone).data)

    if request.method == 'DELETE':
        milestone.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    was_completed = milestone.status == Milestone.Status.COMPLETED
    serializer = MilestoneUpdateSerializer(milestone, data=request.data, partial=True)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    milestone = serializer.save()

    if not was_completed and milestone.status == Milestone.Status.COMPLETED:
        log_activity(
            Activity.Action.MILESTONE_COMPLETED, 'milestone', milestone.id,
            user=request.user, project=milestone.project, metadata={'name': milestone.name},
        )
        notify_project(
            milestone.project, NotificationSettings.Event.MILESTONE_REACHED,
            milestone_name=milestone.name,
            project_name=milestone.project.name,
            completed_by=display_name(request.user),
            url=build_app_url(f"projects/{milestone.project_id}/milestones/{milestone.id}"),
        )
        logger.info(f"Milestone {milestone.id} completed by {request.user.email}")

    return Response(MilestoneSerializer(milestone).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def milestone_task_add(request, pk):
    """Attach an existing task of the same project to the milestone"""
    milestone = _get_member_object_or_404(Milestone, pk, request.user)

    serializer = MilestoneTaskSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    task = get_object_or_404(Task, pk=serializer.validated_data['task'])
    if task.project_id != milestone.project_id:
        return Response(
            {'error': 'Task belongs to a different project'},
            status=status.HTTP_400_BAD_REQUEST
        )

    task.milestone = milestone
    task.save(update_fields=['milestone', 'updated_at'])
    return Response(TaskListSerializer(task).data)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def milestone_task_remove(request, pk, task_id):
    milestone = _get_member_object_or_404(Milestone, pk, request.user)
    task = get_object_or_404(Task, pk=task_id, milestone=milestone)
    task.milestone = None
    task.save(update_fields=['milestone', 'updated_at'])
    return Response(status=status.HTTP_204_NO_CONTENT)
