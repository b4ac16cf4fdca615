from django.conf import settings
from django.db import models


class Attachment(models.Model):
    """File attached to a task; ``url`` holds the stored filename"""
    name = models.CharField(max_length=255)
    url = models.CharField(max_length=255)
    mime_type = models.CharField(max_length=100)
    size = models.PositiveIntegerField()
    task = models.ForeignKey('tasks.Task', on_delete=models.CASCADE, related_name='attachments')
    uploaded_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, related_name='uploaded_attachments', blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'attachments'
        ordering = ['-created_at']
