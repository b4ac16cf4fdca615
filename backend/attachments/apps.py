from django.apps import AppConfig


class AttachmentsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'backend.attachments'
    verbose_name = 'Attachments'

    def ready(self):
        """Import signals when app is ready"""
        import backend.attachments.signals  # noqa: F401
