import logging

from django.conf import settings
from django.db import transaction

from . import mattermost
from .mattermost import MattermostService
from .models import Notification, NotificationSettings

logger = logging.getLogger(__name__)

Event = NotificationSettings.Event

PAYLOAD_BUILDERS = {
    Event.TASK_ASSIGNED: mattermost.build_task_assigned,
    Event.TASK_COMPLETED: mattermost.build_task_completed,
    Event.TASK_DUE_SOON: mattermost.build_task_due_soon,
    Event.TASK_COMMENT: mattermost.build_task_comment,
    Event.MILESTONE_REACHED: mattermost.build_milestone_reached,
    Event.PROJECT_UPDATED: mattermost.build_project_updated,
    Event.MEMBER_JOINED: mattermost.build_member_joined,
}


def display_name(user):
    if user is None:
        return 'Unassigned'
    return user.full_name or user.email


def build_app_url(path):
    """Absolute frontend link for ``path``"""
    base = getattr(settings, 'APP_BASE_URL', '') or ''
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


def notify_project(project, event, **data):
    """
    Send ``event`` to the project's Mattermost channel.

    Skipped (False) when the project has no settings, the integration is off
    or the event's toggle is off. Otherwise returns the delivery result.
    """
    notification_settings = NotificationSettings.objects.filter(project=project).first()
    if notification_settings is None or not notification_settings.is_event_enabled(event):
        return False

    payload = PAYLOAD_BUILDERS[event](**data)
    service = MattermostService.from_settings(notification_settings)
    sent = service.send_message(payload)
    if not sent:
        logger.warning(f"Mattermost {event} notification for project {project.pk} was not delivered")
    return sent


def create_notification(user, title, message, link=None):
    """In-app notification; failures are logged and swallowed"""
    if user is None:
        return None
    try:
        with transaction.atomic():
            return Notification.objects.create(user=user, title=title, message=message, link=link)
    except Exception as e:
        logger.error(f"Failed to create notification for {user.pk}: {str(e)}")
        return None
