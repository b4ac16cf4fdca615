from django.db import transaction
from django.db.models import Q

from .models import Timeline


def overlapping_window(start, end, start_field='start_date', end_field='due_date'):
    """
    Q matching rows whose [start_field, end_field] range overlaps [start, end].

    A row with only one of the two dates set matches when that date falls
    inside the window. Rows with neither date never match.
    """
    both = Q(**{
        f'{start_field}__isnull': False,
        f'{end_field}__isnull': False,
        f'{start_field}__lte': end,
        f'{end_field}__gte': start,
    })
    start_only = Q(**{
        f'{end_field}__isnull': True,
        f'{start_field}__gte': start,
        f'{start_field}__lte': end,
    })
    end_only = Q(**{
        f'{start_field}__isnull': True,
        f'{end_field}__gte': start,
        f'{end_field}__lte': end,
    })
    return both | start_only | end_only


def set_default_timeline(timeline):
    """Make ``timeline`` the only default timeline of its project"""
    with transaction.atomic():
        Timeline.objects.filter(project_id=timeline.project_id, is_default=True).exclude(pk=timeline.pk).update(is_default=False)
        timeline.is_default = True
        timeline.save(update_fields=['is_default', 'updated_at'])
    return timeline
