from django.conf import settings
from django.db import models


class Activity(models.Model):
    """Append-only project activity feed entry"""

    class Action(models.TextChoices):
        PROJECT_CREATED = 'PROJECT_CREATED', 'Project created'
        PROJECT_UPDATED = 'PROJECT_UPDATED', 'Project updated'
        PROJECT_DELETED = 'PROJECT_DELETED', 'Project deleted'
        TASK_CREATED = 'TASK_CREATED', 'Task created'
        TASK_UPDATED = 'TASK_UPDATED', 'Task updated'
        TASK_ASSIGNED = 'TASK_ASSIGNED', 'Task assigned'
        TASK_COMPLETED = 'TASK_COMPLETED', 'Task completed'
        TASK_COMMENTED = 'TASK_COMMENTED', 'Task commented'
        MEMBER_ADDED = 'MEMBER_ADDED', 'Member added'
        MEMBER_REMOVED = 'MEMBER_REMOVED', 'Member removed'
        MILESTONE_COMPLETED = 'MILESTONE_COMPLETED', 'Milestone completed'

    action = models.CharField(max_length=30, choices=Action.choices)
    entity_type = models.CharField(max_length=50)
    entity_id = models.CharField(max_length=50)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, related_name='activities', blank=True, null=True)
    project = models.ForeignKey('projects.Project', on_delete=models.SET_NULL, related_name='activities', blank=True, null=True)
    task = models.ForeignKey('tasks.Task', on_delete=models.SET_NULL, related_name='activities', blank=True, null=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.action} {self.entity_type}:{self.entity_id}"

    class Meta:
        db_table = 'activities'
        ordering = ['-created_at']
        verbose_name_plural = 'activities'
        indexes = [
            models.Index(fields=['entity_type', 'entity_id'], name='activity_entity_idx'),
            models.Index(fields=['project', 'created_at'], name='activity_project_created_idx'),
        ]
