from django.urls import path
from .views import task_attachments, attachment_upload, attachment_download, attachment_delete

urlpatterns = [
    path('attachments/task/<int:task_id>/', task_attachments, name='attachment-task-list'),
    path('attachments/upload/', attachment_upload, name='attachment-upload'),
    path('attachments/download/<int:pk>/', attachment_download, name='attachment-download'),
    path('attachments/<int:pk>/', attachment_delete, name='attachment-delete'),
]
