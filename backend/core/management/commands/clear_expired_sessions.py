"""
Management command to delete expired refresh-token sessions
"""
from django.core.management.base import BaseCommand
from django.utils import timezone
from backend.core.models import UserSession


class Command(BaseCommand):
    help = "Deletes user sessions whose refresh token has expired"

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Only report how many sessions would be deleted',
        )

    def handle(self, *args, **options):
        expired = UserSession.objects.filter(expires_at__lte=timezone.now())
        count = expired.count()

        if options['dry_run']:
            self.stdout.write(self.style.WARNING(f"DRY RUN MODE: {count} expired sessions would be deleted."))
            return

        expired.delete()
        self.stdout.write(self.style.SUCCESS(f"Deleted {count} expired sessions."))
