import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django.db import transaction
from django.db.models import Case, When, IntegerField, F
from django.shortcuts import get_object_or_404
from django.utils import timezone

from backend.activity.models import Activity
from backend.activity.utils import log_activity
from backend.notifications.models import NotificationSettings
from backend.notifications.utils import notify_project, create_notification, display_name, build_app_url
from backend.planning.models import Priority, WorkPackage
from backend.projects.models import Project
from backend.projects.permissions import require_project_member
from .filters import MyTaskFilter
from .models import Task, TaskDependency
from .serializers import (
    TaskSerializer, TaskCreateSerializer, TaskDetailSerializer, CommentSerializer,
    DependencySerializer, DependentSerializer, AddDependencySerializer,
    ReorderTasksSerializer, AssignTaskSerializer
)
from .utils import add_task_dependency, get_next_sort_order

logger = logging.getLogger(__name__)

PRIORITY_RANK = Case(
    When(priority=Priority.URGENT, then=4),
    When(priority=Priority.HIGH, then=3),
    When(priority=Priority.MEDIUM, then=2),
    When(priority=Priority.LOW, then=1),
    default=0,
    output_field=IntegerField(),
)


def _task_queryset():
    return Task.objects.select_related('assignee', 'creator', 'work_package', 'milestone', 'project')


def _get_member_task_or_404(pk, user):
    task = get_object_or_404(_task_queryset(), pk=pk)
    require_project_member(task.project_id, user)
    return task


def _task_url(task):
    return build_app_url(f"projects/{task.project_id}/tasks/{task.id}")


def _announce_assignment(task, actor):
    """In-app and Mattermost notice for a newly assigned task"""
    assignee = task.assignee
    if assignee is None:
        return
    if assignee.pk != actor.pk:
        create_notification(
            assignee,
            title='New task assigned',
            message=f"{display_name(actor)} assigned you to \"{task.title}\"",
            link=f"/projects/{task.project_id}/tasks/{task.id}",
        )
    notify_project(
        task.project, NotificationSettings.Event.TASK_ASSIGNED,
        task_title=task.title,
        task_id=task.id,
        assignee_name=display_name(assignee),
        assigner_name=display_name(actor),
        project_name=task.project.name,
        url=_task_url(task),
    )


def _announce_completion(task, actor):
    log_activity(
        Activity.Action.TASK_COMPLETED, 'task', task.id,
        user=actor, project=task.project, task=task, metadata={'title': task.title},
    )
    notify_project(
        task.project, NotificationSettings.Event.TASK_COMPLETED,
        task_title=task.title,
        task_id=task.id,
        completed_by=display_name(actor),
        project_name=task.project.name,
        url=_task_url(task),
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def project_tasks(request, project_id):
    """Tasks of a project ordered by sort order"""
    project = get_object_or_404(Project, pk=project_id)
    require_project_member(project, request.user)
    tasks = _task_queryset().filter(project=project).order_by('sort_order', '-created_at')
    serializer = TaskSerializer(tasks, many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def work_package_tasks(request, work_package_id):
    work_package = get_object_or_404(WorkPackage, pk=work_package_id)
    require_project_member(work_package.project_id, request.user)
    tasks = _task_queryset().filter(work_package=work_package).order_by('sort_order', '-created_at')
    serializer = TaskSerializer(tasks, many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_tasks(request):
    """
    Tasks assigned to the caller.

    Query params:
        status: Task status
        project: Project id

    Ordered by priority (URGENT first) then due date.
    """
    queryset = _task_queryset().filter(assignee=request.user)
    task_filter = MyTaskFilter(request.GET, queryset=queryset)
    if not task_filter.is_valid():
        return Response(task_filter.errors, status=status.HTTP_400_BAD_REQUEST)

    tasks = task_filter.qs.annotate(priority_rank=PRIORITY_RANK).order_by(
        '-priority_rank', F('due_date').asc(nulls_last=True), 'id'
    )
    serializer = TaskSerializer(tasks, many=True)
    return Response(serializer.data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def task_create(request):
    serializer = TaskCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    project = serializer.validated_data['project']
    require_project_member(project, request.user)

    with transaction.atomic():
        Project.objects.select_for_update().filter(pk=project.pk).first()
        sort_order = get_next_sort_order(Task.objects.filter(project=project))
        task = serializer.save(creator=request.user, sort_order=sort_order)

    log_activity(
        Activity.Action.TASK_CREATED, 'task', task.id,
        user=request.user, project=project, task=task, metadata={'title': task.title},
    )
    if task.assignee_id:
        _announce_assignment(task, request.user)

    logger.info(f"Task {task.id} created in project {project.key} by {request.user.email}")
    return Response(TaskSerializer(task).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def task_detail(request, pk):
    """
    Retrieve, update or delete a task (project members only)

    Updates are partial. The first move to DONE stamps completed_at and
    announces the completion; a changed assignee is announced as an
    assignment.
    """
    task = _get_member_task_or_404(pk, request.user)

    if request.method == 'GET':
        return Response(TaskDetailSerializer(task).data)

    if request.method == 'DELETE':
        task_id = task.id
        task.delete()
        logger.info(f"Task {task_id} deleted by {request.user.email}")
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = TaskSerializer(task, data=request.data, partial=True)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    previous_assignee_id = task.assignee_id
    newly_done = serializer.validated_data.get('status') == Task.Status.DONE and task.completed_at is None
    extra = {'completed_at': timezone.now()} if newly_done else {}
    task = serializer.save(**extra)

    log_activity(
        Activity.Action.TASK_UPDATED, 'task', task.id,
        user=request.user, project=task.project, task=task,
        metadata={'changes': sorted(serializer.validated_data.keys())},
    )
    if newly_done:
        _announce_completion(task, request.user)
    if 'assignee' in serializer.validated_data and task.assignee_id != previous_assignee_id:
        log_activity(
            Activity.Action.TASK_ASSIGNED, 'task', task.id,
            user=request.user, project=task.project, task=task, metadata={'assignee_id': task.assignee_id},
        )
        _announce_assignment(task, request.user)

    return Response(TaskSerializer(task).data)


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def task_reorder(request):
    """Bulk sort-order (and optional status) update for tasks of one project"""
    serializer = ReorderTasksSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    project = serializer.validated_data['project']
    require_project_member(project, request.user)

    updates = serializer.validated_data['tasks']
    ids = {update['id'] for update in updates}
    tasks = {task.id: task for task in Task.objects.filter(project=project, id__in=ids)}
    if len(tasks) != len(ids):
        return Response(
            {'error': 'One or more tasks do not belong to this project'},
            status=status.HTTP_400_BAD_REQUEST
        )

    with transaction.atomic():
        for update in updates:
            task = tasks[update['id']]
            task.sort_order = update['sort_order']
            fields = ['sort_order', 'updated_at']
            new_status = update.get('status')
            if new_status:
                task.status = new_status
                fields.append('status')
                if new_status == Task.Status.DONE and task.completed_at is None:
                    task.completed_at = timezone.now()
                    fields.append('completed_at')
            task.save(update_fields=fields)

    logger.info(f"Reordered {len(updates)} tasks in project {project.key}")
    return Response({'message': 'Tasks reordered successfully'})


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def task_assign(request, pk):
    task = _get_member_task_or_404(pk, request.user)

    serializer = AssignTaskSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    # Reuse the task serializer so membership of the assignee is checked
    task_serializer = TaskSerializer(task, data={'assignee': request.data.get('assignee')}, partial=True)
    if not task_serializer.is_valid():
        return Response(task_serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    task = task_serializer.save()

    log_activity(
        Activity.Action.TASK_ASSIGNED, 'task', task.id,
        user=request.user, project=task.project, task=task, metadata={'assignee_id': task.assignee_id},
    )
    _announce_assignment(task, request.user)
    return Response(TaskSerializer(task).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def task_dependencies(request, pk):
    """List a task's dependencies and dependents, or add a dependency"""
    task = _get_member_task_or_404(pk, request.user)

    if request.method == 'GET':
        dependencies = task.dependencies.select_related('depends_on')
        dependents = task.dependents.select_related('task')
        return Response({
            'dependencies': DependencySerializer(dependencies, many=True).data,
            'dependents': DependentSerializer(dependents, many=True).data,
        })

    serializer = AddDependencySerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    dependency = add_task_dependency(task, serializer.validated_data['depends_on'])
    logger.info(f"Task {task.id} now depends on {dependency.depends_on_id}")
    return Response(DependencySerializer(dependency).data, status=status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def task_dependency_remove(request, pk, depends_on_id):
    task = _get_member_task_or_404(pk, request.user)
    dependency = get_object_or_404(TaskDependency, task=task, depends_on_id=depends_on_id)
    dependency.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def task_comments(request, pk):
    task = _get_member_task_or_404(pk, request.user)

    if request.method == 'GET':
        comments = task.comments.select_related('user')
        return Response(CommentSerializer(comments, many=True).data)

    serializer = CommentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    comment = serializer.save(task=task, user=request.user)
    log_activity(
        Activity.Action.TASK_COMMENTED, 'comment', comment.id,
        user=request.user, project=task.project, task=task, metadata={'task_title': task.title},
    )

    recipients = {}
    for user in (task.creator, task.assignee):
        if user is not None and user.pk != request.user.pk:
            recipients[user.pk] = user
    for user in recipients.values():
        create_notification(
            user,
            title='New comment',
            message=f"{display_name(request.user)} commented on \"{task.title}\"",
            link=f"/projects/{task.project_id}/tasks/{task.id}",
        )

    notify_project(
        task.project, NotificationSettings.Event.TASK_COMMENT,
        task_title=task.title,
        task_id=task.id,
        commenter_name=display_name(request.user),
        comment_preview=comment.content,
        project_name=task.project.name,
        url=_task_url(task),
    )
    return Response(CommentSerializer(comment).data, status=status.HTTP_201_CREATED)
