from datetime import timedelta

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from backend.notifications.models import NotificationSettings
from backend.notifications.utils import notify_project, create_notification, display_name, build_app_url
from backend.tasks.models import Task


class Command(BaseCommand):
    help = 'Sends "task due soon" reminders for open tasks due within the next N days'

    def add_arguments(self, parser):
        parser.add_argument(
            '--days',
            type=int,
            default=1,
            help='Look-ahead window in days (default: 1)',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List the tasks without sending anything',
        )

    def handle(self, *args, **options):
        days = options['days']
        dry_run = options['dry_run']
        if days < 0:
            raise CommandError('--days must be zero or positive')

        today = timezone.localdate()
        tasks = (
            Task.objects
            .filter(status__in=Task.OPEN_STATUSES, due_date__gte=today, due_date__lte=today + timedelta(days=days))
            .select_related('project', 'assignee')
            .order_by('due_date', 'id')
        )
        self.stdout.write(f"Found {tasks.count()} open tasks due by {today + timedelta(days=days)}")
        if dry_run:
            self.stdout.write(self.style.WARNING("DRY RUN MODE: No notifications will be sent."))

        sent = 0
        for task in tasks:
            self.stdout.write(f"  - [{task.project.key}] {task.title} due {task.due_date}")
            if dry_run:
                continue

            if task.assignee is not None:
                create_notification(
                    task.assignee,
                    title='Task due soon',
                    message=f"\"{task.title}\" is due on {task.due_date}",
                    link=f"/projects/{task.project_id}/tasks/{task.id}",
                )
            delivered = notify_project(
                task.project, NotificationSettings.Event.TASK_DUE_SOON,
                task_title=task.title,
                task_id=task.id,
                assignee_name=display_name(task.assignee),
                due_date=task.due_date.isoformat(),
                project_name=task.project.name,
                url=build_app_url(f"projects/{task.project_id}/tasks/{task.id}"),
            )
            if delivered:
                sent += 1

        if not dry_run:
            self.stdout.write(self.style.SUCCESS(f"Sent {sent} Mattermost reminders."))
