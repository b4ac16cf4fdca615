from django.contrib import admin
from .models import WorkPackage, Milestone


@admin.register(WorkPackage)
class WorkPackageAdmin(admin.ModelAdmin):
    list_display = ['name', 'project', 'parent', 'status', 'priority', 'due_date', 'sort_order']
    list_filter = ['status', 'priority', 'project']
    search_fields = ['name', 'project__name', 'project__key']
    ordering = ['project', 'sort_order']


@admin.register(Milestone)
class MilestoneAdmin(admin.ModelAdmin):
    list_display = ['name', 'project', 'work_package', 'due_date', 'status', 'completed_at']
    list_filter = ['status', 'project']
    search_fields = ['name', 'project__name', 'project__key']
    readonly_fields = ['completed_at']
