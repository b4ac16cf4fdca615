from django.contrib import admin
from .models import Timeline, TimelineEvent


class TimelineEventInline(admin.TabularInline):
    model = TimelineEvent
    extra = 0


@admin.register(Timeline)
class TimelineAdmin(admin.ModelAdmin):
    list_display = ['name', 'project', 'start_date', 'end_date', 'is_default']
    list_filter = ['is_default', 'project']
    search_fields = ['name', 'project__name']
    inlines = [TimelineEventInline]
