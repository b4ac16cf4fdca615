"""
Task relationship and progress helpers shared by the task, work package and
milestone views: dependency guard, progress aggregation and sort-order
assignment.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import IntegrityError, transaction
from django.db.models import Max
from rest_framework.exceptions import ValidationError

from backend.core.exceptions import ConflictError
from .models import Task, TaskDependency

logger = logging.getLogger(__name__)

CYCLE_CHECK_REACHABILITY = 'reachability'
CYCLE_CHECK_DIRECT = 'direct'


class DuplicateDependencyError(ConflictError):
    default_detail = 'Dependency already exists'
    default_code = 'duplicate_dependency'


class CircularDependencyError(ConflictError):
    default_detail = 'Circular dependency detected'
    default_code = 'circular_dependency'


def _status_of(item):
    return getattr(item, 'status', item)


def count_completed(statuses):
    """Number of DONE entries in an iterable of statuses or status-bearing objects"""
    return sum(1 for item in statuses if _status_of(item) == Task.Status.DONE)


def calculate_progress(statuses):
    """
    Integer completion percentage (0-100) for a collection of tasks.

    Only DONE counts as complete; CANCELLED tasks still count toward the
    total. An empty collection is 0. Halves round up (2.5 -> 3).
    """
    statuses = list(statuses)
    if not statuses:
        return 0
    done = count_completed(statuses)
    percentage = Decimal(100 * done) / Decimal(len(statuses))
    return int(percentage.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def get_next_sort_order(queryset):
    """max(sort_order) + 1 over the sibling queryset; 1 for an empty scope"""
    current_max = queryset.aggregate(max_order=Max('sort_order'))['max_order']
    return (current_max or 0) + 1


def get_cycle_check_mode():
    mode = getattr(settings, 'TASK_DEPENDENCY_CYCLE_CHECK', CYCLE_CHECK_REACHABILITY)
    if mode not in (CYCLE_CHECK_REACHABILITY, CYCLE_CHECK_DIRECT):
        raise ImproperlyConfigured(
            f"TASK_DEPENDENCY_CYCLE_CHECK must be '{CYCLE_CHECK_REACHABILITY}' or '{CYCLE_CHECK_DIRECT}', got {mode!r}"
        )
    return mode


def is_reachable(start_id, target_id, edges):
    """Depth-first search over ``edges`` (task_id -> [depends_on_id, ...])"""
    stack = [start_id]
    visited = set()
    while stack:
        current = stack.pop()
        if current == target_id:
            return True
        if current in visited:
            continue
        visited.add(current)
        stack.extend(edges.get(current, ()))
    return False


def would_create_cycle(task, depends_on, mode=None):
    """True when adding ``task -> depends_on`` closes a cycle"""
    mode = mode or get_cycle_check_mode()
    if mode == CYCLE_CHECK_DIRECT:
        return TaskDependency.objects.filter(task=depends_on, depends_on=task).exists()

    edges = {}
    rows = TaskDependency.objects.filter(task__project_id=task.project_id).values_list('task_id', 'depends_on_id')
    for task_id, depends_on_id in rows:
        edges.setdefault(task_id, []).append(depends_on_id)
    return is_reachable(depends_on.pk, task.pk, edges)


def add_task_dependency(task, depends_on, mode=None):
    """
    Record that ``task`` depends on ``depends_on``.

    Raises ValidationError for self or cross-project edges,
    DuplicateDependencyError when the edge exists and CircularDependencyError
    when the edge would close a cycle.
    """
    if task.pk == depends_on.pk:
        raise ValidationError({'depends_on': ['A task cannot depend on itself']})
    if task.project_id != depends_on.project_id:
        raise ValidationError({'depends_on': ['Dependencies must be within the same project']})

    if TaskDependency.objects.filter(task=task, depends_on=depends_on).exists():
        raise DuplicateDependencyError()
    if would_create_cycle(task, depends_on, mode):
        logger.warning(f"Rejected circular dependency {task.pk} -> {depends_on.pk}")
        raise CircularDependencyError()

    try:
        with transaction.atomic():
            return TaskDependency.objects.create(task=task, depends_on=depends_on)
    except IntegrityError:
        raise DuplicateDependencyError()
