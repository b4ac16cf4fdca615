from django.contrib import admin
from .models import Notification, NotificationSettings


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['title', 'user', 'is_read', 'created_at']
    list_filter = ['is_read']
    search_fields = ['title', 'message', 'user__email']


@admin.register(NotificationSettings)
class NotificationSettingsAdmin(admin.ModelAdmin):
    list_display = ['project', 'mattermost_enabled', 'mattermost_channel', 'updated_at']
    list_filter = ['mattermost_enabled']
    search_fields = ['project__name', 'project__key']
    fieldsets = (
        (None, {'fields': ('project',)}),
        ('Mattermost', {'fields': ('mattermost_webhook_url', 'mattermost_channel', 'mattermost_username', 'mattermost_enabled')}),
        ('Events', {'fields': (
            'task_assigned', 'task_completed', 'task_due_soon', 'task_comment',
            'milestone_reached', 'project_updated', 'member_joined'
        )}),
    )
