from django.contrib import admin
from .models import Activity


@admin.register(Activity)
class ActivityAdmin(admin.ModelAdmin):
    list_display = ['action', 'entity_type', 'entity_id', 'user', 'project', 'created_at']
    list_filter = ['action', 'entity_type']
    search_fields = ['entity_id', 'user__email', 'project__name']
    readonly_fields = ['action', 'entity_type', 'entity_id', 'user', 'project', 'task', 'metadata', 'created_at']
