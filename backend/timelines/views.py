import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django.db import transaction
from django.db.models import Prefetch
from django.shortcuts import get_object_or_404

from backend.planning.models import WorkPackage, Milestone
from backend.planning.serializers import MilestoneSummarySerializer
from backend.projects.models import Project
from backend.projects.permissions import require_project_member
from backend.tasks.models import Task
from backend.tasks.serializers import TaskListSerializer
from .models import Timeline, TimelineEvent
from .serializers import (
    TimelineSerializer, TimelineUpdateSerializer, TimelineDetailSerializer, TimelineEventSerializer
)
from .utils import overlapping_window, set_default_timeline

logger = logging.getLogger(__name__)


def _get_member_timeline_or_404(pk, user):
    timeline = get_object_or_404(Timeline.objects.select_related('project'), pk=pk)
    require_project_member(timeline.project_id, user)
    return timeline


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def project_timelines(request, project_id):
    """Timelines of a project, default first"""
    project = get_object_or_404(Project, pk=project_id)
    require_project_member(project, request.user)
    timelines = Timeline.objects.filter(project=project).prefetch_related('events')
    serializer = TimelineSerializer(timelines, many=True)
    return Response(serializer.data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def timeline_create(request):
    serializer = TimelineSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    require_project_member(serializer.validated_data['project'], request.user)

    make_default = serializer.validated_data.pop('is_default', False)
    with transaction.atomic():
        timeline = serializer.save(is_default=False)
        if make_default:
            set_default_timeline(timeline)

    return Response(TimelineSerializer(timeline).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def timeline_detail(request, pk):
    timeline = _get_member_timeline_or_404(pk, request.user)

    if request.method == 'GET':
        return Response(TimelineDetailSerializer(timeline).data)

    if request.method == 'DELETE':
        timeline.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = TimelineUpdateSerializer(timeline, data=request.data, partial=True)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    make_default = serializer.validated_data.pop('is_default', None)
    with transaction.atomic():
        timeline = serializer.save()
        if make_default:
            set_default_timeline(timeline)
        elif make_default is False and timeline.is_default:
            timeline.is_default = False
            timeline.save(update_fields=['is_default', 'updated_at'])

    return Response(TimelineSerializer(timeline).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def timeline_event_create(request, pk):
    timeline = _get_member_timeline_or_404(pk, request.user)

    serializer = TimelineEventSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    event = serializer.save(timeline=timeline)
    return Response(TimelineEventSerializer(event).data, status=status.HTTP_201_CREATED)


@api_view(['PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def timeline_event_detail(request, pk, event_id):
    timeline = _get_member_timeline_or_404(pk, request.user)
    event = get_object_or_404(TimelineEvent, pk=event_id, timeline=timeline)

    if request.method == 'DELETE':
        event.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = TimelineEventSerializer(event, data=request.data, partial=True)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    event = serializer.save()
    return Response(TimelineEventSerializer(event).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def timeline_gantt(request, pk):
    """
    Gantt chart data for a timeline window.

    Returns the timeline with its events, the project's milestones due in
    the window, work packages overlapping the window (each with its
    overlapping tasks) and overlapping tasks outside any work package.
    """
    timeline = _get_member_timeline_or_404(pk, request.user)
    start, end = timeline.start_date, timeline.end_date
    project = timeline.project

    task_window = overlapping_window(start, end)
    tasks_in_window = Task.objects.filter(task_window).select_related('assignee').order_by('start_date', 'sort_order')

    milestones = Milestone.objects.filter(project=project, due_date__gte=start, due_date__lte=end).order_by('due_date')
    work_packages = (
        WorkPackage.objects
        .filter(overlapping_window(start, end), project=project)
        .prefetch_related(Prefetch('tasks', queryset=tasks_in_window, to_attr='window_tasks'))
    )
    loose_tasks = tasks_in_window.filter(project=project, work_package__isnull=True)

    return Response({
        'timeline': TimelineSerializer(timeline).data,
        'milestones': MilestoneSummarySerializer(milestones, many=True).data,
        'work_packages': [
            {
                'id': wp.id,
                'name': wp.name,
                'status': wp.status,
                'color': wp.color,
                'parent': wp.parent_id,
                'start_date': wp.start_date,
                'due_date': wp.due_date,
                'tasks': TaskListSerializer(wp.window_tasks, many=True).data,
            }
            for wp in work_packages
        ],
        'tasks': TaskListSerializer(loose_tasks, many=True).data,
    })
