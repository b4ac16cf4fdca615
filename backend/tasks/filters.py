import django_filters
from .models import Task


class MyTaskFilter(django_filters.FilterSet):
    """Filters for the caller's assigned tasks"""
    status = django_filters.ChoiceFilter(choices=Task.Status.choices)
    project = django_filters.NumberFilter(field_name='project_id')

    class Meta:
        model = Task
        fields = ['status', 'project']
