from django.conf import settings
from django.db import models

from backend.planning.models import Priority


class Task(models.Model):
    class Status(models.TextChoices):
        TODO = 'TODO', 'To do'
        IN_PROGRESS = 'IN_PROGRESS', 'In progress'
        IN_REVIEW = 'IN_REVIEW', 'In review'
        DONE = 'DONE', 'Done'
        CANCELLED = 'CANCELLED', 'Cancelled'

    OPEN_STATUSES = (Status.TODO, Status.IN_PROGRESS, Status.IN_REVIEW)

    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, null=True)
    project = models.ForeignKey('projects.Project', on_delete=models.CASCADE, related_name='tasks')
    work_package = models.ForeignKey('planning.WorkPackage', on_delete=models.CASCADE, related_name='tasks', blank=True, null=True)
    milestone = models.ForeignKey('planning.Milestone', on_delete=models.CASCADE, related_name='tasks', blank=True, null=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.TODO)
    priority = models.CharField(max_length=20, choices=Priority.choices, default=Priority.MEDIUM)
    assignee = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, related_name='assigned_tasks', blank=True, null=True)
    creator = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='created_tasks')
    sort_order = models.IntegerField(default=0)
    estimated_hours = models.DecimalField(max_digits=8, decimal_places=2, blank=True, null=True)
    logged_hours = models.DecimalField(max_digits=8, decimal_places=2, default=0)
    start_date = models.DateField(blank=True, null=True)
    due_date = models.DateField(blank=True, null=True)
    completed_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.title

    class Meta:
        db_table = 'tasks'
        ordering = ['sort_order', '-created_at']
        indexes = [
            models.Index(fields=['project', 'sort_order'], name='task_project_sort_idx'),
        ]


class TaskDependency(models.Model):
    """Directed edge: ``task`` depends on ``depends_on``"""
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name='dependencies')
    depends_on = models.ForeignKey(Task, on_delete=models.CASCADE, related_name='dependents')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.task_id} -> {self.depends_on_id}"

    class Meta:
        db_table = 'task_dependencies'
        constraints = [
            models.UniqueConstraint(fields=['task', 'depends_on'], name='unique_task_dependency'),
        ]


class Comment(models.Model):
    content = models.TextField()
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name='comments')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='comments')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Comment by {self.user} on {self.task}"

    class Meta:
        db_table = 'comments'
        ordering = ['created_at']
