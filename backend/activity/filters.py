import django_filters
from .models import Activity


class ActivityFilter(django_filters.FilterSet):
    action = django_filters.ChoiceFilter(choices=Activity.Action.choices)

    class Meta:
        model = Activity
        fields = ['action']
