from django.contrib import admin
from .models import Task, TaskDependency, Comment


class CommentInline(admin.TabularInline):
    model = Comment
    extra = 0
    readonly_fields = ['user', 'created_at']


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ['title', 'project', 'status', 'priority', 'assignee', 'due_date', 'sort_order']
    list_filter = ['status', 'priority', 'project']
    search_fields = ['title', 'project__key', 'assignee__email']
    autocomplete_fields = ['assignee', 'creator']
    readonly_fields = ['completed_at', 'created_at', 'updated_at']
    inlines = [CommentInline]


@admin.register(TaskDependency)
class TaskDependencyAdmin(admin.ModelAdmin):
    list_display = ['task', 'depends_on', 'created_at']
    search_fields = ['task__title', 'depends_on__title']


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ['task', 'user', 'created_at']
    search_fields = ['content', 'task__title', 'user__email']
