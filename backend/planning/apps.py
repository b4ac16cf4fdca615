from django.apps import AppConfig


class PlanningConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'backend.planning'
    verbose_name = 'Work Packages & Milestones'
