from django.db import models

from backend.projects.models import hex_color_validator


class Timeline(models.Model):
    name = models.CharField(max_length=200)
    project = models.ForeignKey('projects.Project', on_delete=models.CASCADE, related_name='timelines')
    start_date = models.DateField()
    end_date = models.DateField()
    is_default = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'timelines'
        ordering = ['-is_default', 'start_date']


class TimelineEvent(models.Model):
    class EventType(models.TextChoices):
        MILESTONE = 'MILESTONE', 'Milestone'
        DEADLINE = 'DEADLINE', 'Deadline'
        REVIEW = 'REVIEW', 'Review'
        MEETING = 'MEETING', 'Meeting'
        RELEASE = 'RELEASE', 'Release'
        CUSTOM = 'CUSTOM', 'Custom'

    timeline = models.ForeignKey(Timeline, on_delete=models.CASCADE, related_name='events')
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, null=True)
    event_type = models.CharField(max_length=20, choices=EventType.choices)
    start_date = models.DateField()
    end_date = models.DateField(blank=True, null=True)
    color = models.CharField(max_length=7, blank=True, null=True, validators=[hex_color_validator])
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.title

    class Meta:
        db_table = 'timeline_events'
        ordering = ['start_date']
