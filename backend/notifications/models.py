from django.conf import settings
from django.db import models


class Notification(models.Model):
    """In-app notification for a single user"""
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications')
    title = models.CharField(max_length=200)
    message = models.TextField()
    link = models.CharField(max_length=500, blank=True, null=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.title} -> {self.user}"

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'is_read'], name='notification_user_read_idx'),
        ]


class NotificationSettings(models.Model):
    """Per-project Mattermost webhook configuration and event toggles"""

    class Event(models.TextChoices):
        TASK_ASSIGNED = 'task_assigned', 'Task assigned'
        TASK_COMPLETED = 'task_completed', 'Task completed'
        TASK_DUE_SOON = 'task_due_soon', 'Task due soon'
        TASK_COMMENT = 'task_comment', 'Task comment'
        MILESTONE_REACHED = 'milestone_reached', 'Milestone reached'
        PROJECT_UPDATED = 'project_updated', 'Project updated'
        MEMBER_JOINED = 'member_joined', 'Member joined'

    project = models.OneToOneField('projects.Project', on_delete=models.CASCADE, related_name='notification_settings')
    mattermost_webhook_url = models.CharField(max_length=500, blank=True, default='')
    mattermost_channel = models.CharField(max_length=100, blank=True, default='')
    mattermost_username = models.CharField(max_length=100, default='ProjectForge')
    mattermost_enabled = models.BooleanField(default=False)
    task_assigned = models.BooleanField(default=True)
    task_completed = models.BooleanField(default=True)
    task_due_soon = models.BooleanField(default=True)
    task_comment = models.BooleanField(default=True)
    milestone_reached = models.BooleanField(default=True)
    project_updated = models.BooleanField(default=False)
    member_joined = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Notification settings for {self.project}"

    def is_event_enabled(self, event):
        """Webhook configured, integration on and the event's toggle set"""
        if not self.mattermost_enabled or not self.mattermost_webhook_url:
            return False
        return bool(getattr(self, str(event), False))

    class Meta:
        db_table = 'notification_settings'
        verbose_name_plural = 'notification settings'
