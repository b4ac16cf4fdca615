from django.urls import path
from .views import (
    project_timelines, timeline_create, timeline_detail, timeline_event_create,
    timeline_event_detail, timeline_gantt
)

urlpatterns = [
    path('timelines/', timeline_create, name='timeline-create'),
    path('timelines/project/<int:project_id>/', project_timelines, name='timeline-project-list'),
    path('timelines/<int:pk>/', timeline_detail, name='timeline-detail'),
    path('timelines/<int:pk>/events/', timeline_event_create, name='timeline-event-create'),
    path('timelines/<int:pk>/events/<int:event_id>/', timeline_event_detail, name='timeline-event-detail'),
    path('timelines/<int:pk>/gantt/', timeline_gantt, name='timeline-gantt'),
]
