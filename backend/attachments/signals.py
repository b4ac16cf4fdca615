"""
Stored files follow their attachment rows.

The file is unlinked only after the deleting transaction commits, so a
rolled-back delete keeps both the row and its file. Rows removed by a task
or project cascade are covered the same way.
"""
from django.db import transaction
from django.db.models.signals import post_delete
from django.dispatch import receiver
from .models import Attachment
from .storage import LocalStorageService
import logging

logger = logging.getLogger(__name__)


def remove_stored_file(attachment_id, filename):
    if not LocalStorageService().delete_file(filename):
        logger.warning(f"File {filename} for attachment {attachment_id} was already gone")


@receiver(post_delete, sender=Attachment)
def attachment_post_delete(sender, instance, **kwargs):
    """Unlink the stored file once the delete is committed"""
    attachment_id, filename = instance.id, instance.url
    transaction.on_commit(lambda: remove_stored_file(attachment_id, filename))
