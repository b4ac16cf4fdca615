import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django.conf import settings
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils.http import content_disposition_header

from backend.projects.models import ProjectMember
from backend.projects.permissions import require_project_member
from backend.tasks.models import Task
from .models import Attachment
from .serializers import AttachmentSerializer
from .storage import LocalStorageService, guess_mime_type

logger = logging.getLogger(__name__)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def task_attachments(request, task_id):
    task = get_object_or_404(Task, pk=task_id)
    require_project_member(task.project_id, request.user)
    attachments = task.attachments.select_related('uploaded_by')
    serializer = AttachmentSerializer(attachments, many=True)
    return Response(serializer.data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def attachment_upload(request):
    """
    Upload a file to a task.

    Multipart fields:
        file: The file
        task: Task id
    """
    upload = request.FILES.get('file')
    if upload is None:
        return Response({'error': 'No file uploaded'}, status=status.HTTP_400_BAD_REQUEST)

    task_id = str(request.data.get('task', '')).strip()
    if not task_id.isdigit():
        return Response({'task': ['A valid task id is required.']}, status=status.HTTP_400_BAD_REQUEST)

    task = get_object_or_404(Task, pk=int(task_id))
    require_project_member(task.project_id, request.user)

    max_size = settings.MAX_UPLOAD_SIZE
    if upload.size > max_size:
        logger.warning(f"Rejected upload {upload.name} ({upload.size} bytes) from {request.user.email}")
        return Response(
            {'error': f'File exceeds the maximum upload size of {max_size} bytes'},
            status=status.HTTP_400_BAD_REQUEST
        )

    mime_type = upload.content_type or guess_mime_type(upload.name)
    stored = LocalStorageService().save_file(upload.chunks(), upload.name, mime_type)

    attachment = Attachment.objects.create(
        task=task,
        name=stored.original_name,
        url=stored.filename,
        mime_type=stored.mime_type,
        size=stored.size,
        uploaded_by=request.user,
    )
    logger.info(f"Attachment {attachment.id} uploaded to task {task.id} by {request.user.email}")
    return Response(AttachmentSerializer(attachment).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def attachment_download(request, pk):
    attachment = get_object_or_404(Attachment.objects.select_related('task'), pk=pk)
    require_project_member(attachment.task.project_id, request.user)

    stored = LocalStorageService().get_file(attachment.url)
    if stored is None:
        logger.error(f"Attachment {attachment.id} is missing its file {attachment.url}")
        return Response({'error': 'File not found on disk'}, status=status.HTTP_404_NOT_FOUND)

    response = HttpResponse(stored.content, content_type=attachment.mime_type or stored.mime_type)
    response['Content-Disposition'] = content_disposition_header(True, attachment.name)
    response['Content-Length'] = len(stored.content)
    return response


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def attachment_delete(request, pk):
    """Task creator or project owner/manager only"""
    attachment = get_object_or_404(Attachment.objects.select_related('task'), pk=pk)
    membership = require_project_member(attachment.task.project_id, request.user)

    if attachment.task.creator_id != request.user.id and membership.role not in ProjectMember.MANAGE_ROLES:
        raise PermissionDenied('Access denied')

    attachment.delete()
    logger.info(f"Attachment {pk} deleted by {request.user.email}")
    return Response(status=status.HTTP_204_NO_CONTENT)
