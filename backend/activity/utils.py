import logging

from django.db import transaction

from .models import Activity

logger = logging.getLogger(__name__)


def log_activity(action, entity_type, entity_id, user=None, project=None, task=None, metadata=None):
    """
    Append an entry to the activity feed.

    Args:
        action: Activity.Action value
        entity_type: Kind of object acted upon ('project', 'task', 'milestone', ...)
        entity_id: Primary key of that object
        user: Acting user (anonymous users are stored as null)
        project: Project the entry belongs to, for the project feed
        task: Task the entry refers to, if any
        metadata: Extra JSON detail (names, assignee ids, ...)

    A failure to write the row is logged and never propagates to the caller.
    """
    try:
        with transaction.atomic():
            return Activity.objects.create(
                action=action,
                entity_type=entity_type,
                entity_id=str(entity_id),
                user=user if user is not None and user.is_authenticated else None,
                project=project,
                task=task,
                metadata=metadata or {},
            )
    except Exception as e:
        logger.error(f"Failed to record activity {action} for {entity_type}:{entity_id}: {str(e)}")
        return None
