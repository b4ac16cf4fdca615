"""
Mattermost incoming-webhook client.

One POST per event with a ``text`` headline and a single attachment card.
Delivery is fire-and-forget: a failed call is logged and reported as False,
never retried and never raised to the caller.
"""
import logging
from typing import Any, Dict, List, Optional

import requests
from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)

DEFAULT_USERNAME = 'ProjectForge'
FOOTER = 'ProjectForge'
COMMENT_PREVIEW_LENGTH = 200

COLOR_ASSIGNED = '#6366f1'
COLOR_COMPLETED = '#22c55e'
COLOR_DUE_SOON = '#f59e0b'
COLOR_COMMENT = '#3b82f6'
COLOR_MILESTONE = '#a855f7'
COLOR_PROJECT = '#64748b'
COLOR_MEMBER = '#22c55e'

CONNECTED_MESSAGE = (
    '✅ **ProjectForge notifications connected successfully!**\n\n'
    'You will receive notifications for this project in this channel.'
)
TEST_MESSAGE = (
    '🧪 **Test notification from ProjectForge**\n\n'
    'If you see this message, your Mattermost integration is working correctly!'
)


def _field(title: str, value: Any, short: bool = True) -> Dict[str, Any]:
    return {'short': short, 'title': title, 'value': str(value)}


def _attachment(color: str, fields: List[Dict[str, Any]], title: Optional[str] = None,
                url: Optional[str] = None, text: Optional[str] = None,
                footer: str = FOOTER) -> Dict[str, Any]:
    attachment = {'color': color}
    if title:
        attachment['title'] = title
    if url:
        attachment['title_link'] = url
    if text:
        attachment['text'] = text
    attachment['fields'] = fields
    attachment['footer'] = footer
    attachment['timestamp'] = timezone.now().isoformat()
    return attachment


def truncate_preview(content: str, limit: int = COMMENT_PREVIEW_LENGTH) -> str:
    if len(content) > limit:
        return content[:limit] + '...'
    return content


# Payload builders
def build_task_assigned(task_title, task_id, assignee_name, assigner_name, project_name, url=None):
    return {
        'text': f'📋 **New task assigned to {assignee_name}**',
        'attachments': [_attachment(
            COLOR_ASSIGNED,
            [
                _field('Assignee', assignee_name),
                _field('Assigned by', assigner_name),
                _field('Task ID', task_id),
            ],
            title=task_title, url=url, text=f'Project: *{project_name}*',
        )],
    }


def build_task_completed(task_title, task_id, completed_by, project_name, url=None):
    return {
        'text': f'✅ **Task completed by {completed_by}**',
        'attachments': [_attachment(
            COLOR_COMPLETED,
            [
                _field('Completed by', completed_by),
                _field('Project', project_name),
                _field('Task ID', task_id),
            ],
            title=task_title, url=url,
        )],
    }


def build_task_due_soon(task_title, task_id, assignee_name, due_date, project_name, url=None):
    return {
        'text': f'⏰ **Task due soon - {assignee_name}**',
        'attachments': [_attachment(
            COLOR_DUE_SOON,
            [
                _field('Assignee', assignee_name),
                _field('Due Date', due_date),
                _field('Project', project_name),
            ],
            title=task_title, url=url, footer='ProjectForge - Due Soon Reminder',
        )],
    }


def build_task_comment(task_title, task_id, commenter_name, comment_preview, project_name, url=None):
    preview = truncate_preview(comment_preview)
    return {
        'text': f'💬 **New comment by {commenter_name}**',
        'attachments': [_attachment(
            COLOR_COMMENT,
            [_field('Task ID', task_id)],
            title=task_title, url=url, text=f'>{preview}\n\n**Project:** {project_name}',
        )],
    }


def build_milestone_reached(milestone_name, project_name, completed_by, url=None):
    return {
        'text': f'🎉 **Milestone reached: {milestone_name}**',
        'attachments': [_attachment(
            COLOR_MILESTONE,
            [
                _field('Project', project_name),
                _field('Completed by', completed_by),
            ],
            title=milestone_name, url=url, footer='ProjectForge - Milestone',
        )],
    }


def build_project_updated(project_name, update_type, updated_by, description, url=None):
    return {
        'text': f'📁 **Project update by {updated_by}**',
        'attachments': [_attachment(
            COLOR_PROJECT,
            [
                _field('Update type', update_type),
                _field('Updated by', updated_by),
            ],
            title=project_name, url=url, text=description,
        )],
    }


def build_member_joined(project_name, member_name, role, invited_by):
    return {
        'text': f'👋 **{member_name} joined {project_name}**',
        'attachments': [_attachment(
            COLOR_MEMBER,
            [
                _field('Member', member_name),
                _field('Role', role),
                _field('Invited by', invited_by),
                _field('Project', project_name),
            ],
        )],
    }


class MattermostService:
    """Sender bound to one webhook configuration; build one per project and call"""

    def __init__(self, webhook_url: str = '', channel: Optional[str] = None,
                 username: Optional[str] = None, icon_url: Optional[str] = None,
                 timeout: Optional[int] = None):
        self.webhook_url = webhook_url or ''
        self.channel = channel or None
        self.username = username or getattr(settings, 'MATTERMOST_DEFAULT_USERNAME', DEFAULT_USERNAME)
        self.icon_url = icon_url or getattr(settings, 'MATTERMOST_ICON_URL', '') or None
        self.timeout = timeout or getattr(settings, 'MATTERMOST_TIMEOUT', 10)

    @classmethod
    def from_settings(cls, notification_settings):
        return cls(
            webhook_url=notification_settings.mattermost_webhook_url,
            channel=notification_settings.mattermost_channel,
            username=notification_settings.mattermost_username,
        )

    def is_enabled(self) -> bool:
        return bool(self.webhook_url)

    def build_request_body(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = {'username': self.username}
        if self.icon_url:
            body['icon_url'] = self.icon_url
        body.update(payload)
        channel = payload.get('channel') or self.channel
        if channel:
            body['channel'] = channel
        return body

    def send_message(self, payload: Dict[str, Any]) -> bool:
        """POST ``payload`` to the webhook; True on a 2xx answer"""
        if not self.is_enabled():
            logger.debug("Mattermost webhook not configured, skipping notification")
            return False

        try:
            response = requests.post(
                self.webhook_url,
                json=self.build_request_body(payload),
                headers={'Content-Type': 'application/json'},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.Timeout:
            logger.warning(f"Mattermost webhook timed out after {self.timeout}s")
            return False
        except requests.exceptions.RequestException as e:
            logger.warning(f"Failed to send Mattermost notification: {str(e)}")
            return False

        logger.info("Mattermost notification sent")
        return True

    def send_text(self, text: str, channel: Optional[str] = None) -> bool:
        payload = {'text': text}
        if channel:
            payload['channel'] = channel
        return self.send_message(payload)
