from django.urls import path
from .views import (
    notification_list, notification_mark_read, notification_mark_all_read,
    project_notification_settings, project_notification_test
)

urlpatterns = [
    path('users/notifications/', notification_list, name='notification-list'),
    path('users/notifications/read-all/', notification_mark_all_read, name='notification-read-all'),
    path('users/notifications/<int:pk>/read/', notification_mark_read, name='notification-read'),
    path('notifications/project/<int:pk>/settings/', project_notification_settings, name='notification-settings'),
    path('notifications/project/<int:pk>/test/', project_notification_test, name='notification-test'),
]
