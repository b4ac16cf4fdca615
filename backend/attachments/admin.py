from django.contrib import admin
from .models import Attachment


@admin.register(Attachment)
class AttachmentAdmin(admin.ModelAdmin):
    list_display = ['name', 'task', 'mime_type', 'size', 'uploaded_by', 'created_at']
    list_filter = ['mime_type']
    search_fields = ['name', 'url', 'task__title']
    readonly_fields = ['url', 'size', 'created_at']
