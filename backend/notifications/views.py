import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django.db import transaction
from django.shortcuts import get_object_or_404

from backend.core.utils import parse_bool
from backend.projects.permissions import get_member_project_or_404, get_membership, require_project_role
from .mattermost import MattermostService, CONNECTED_MESSAGE, TEST_MESSAGE
from .models import Notification, NotificationSettings
from .serializers import NotificationSerializer, NotificationSettingsSerializer, settings_payload

logger = logging.getLogger(__name__)

DEFAULT_NOTIFICATION_LIMIT = 50
MAX_NOTIFICATION_LIMIT = 200


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notification_list(request):
    """
    The caller's in-app notifications, newest first.

    Query params:
        unread_only: Only unread notifications
        limit: Maximum rows (default 50)
    """
    notifications = Notification.objects.filter(user=request.user)
    if parse_bool(request.GET.get('unread_only')):
        notifications = notifications.filter(is_read=False)

    try:
        limit = int(request.GET.get('limit', DEFAULT_NOTIFICATION_LIMIT))
    except (TypeError, ValueError):
        return Response({'error': 'limit must be an integer'}, status=status.HTTP_400_BAD_REQUEST)
    limit = max(1, min(limit, MAX_NOTIFICATION_LIMIT))

    unread_count = Notification.objects.filter(user=request.user, is_read=False).count()
    serializer = NotificationSerializer(notifications[:limit], many=True)
    return Response({'notifications': serializer.data, 'unread_count': unread_count})


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def notification_mark_read(request, pk):
    notification = get_object_or_404(Notification, pk=pk, user=request.user)
    if not notification.is_read:
        notification.is_read = True
        notification.save(update_fields=['is_read'])
    return Response(NotificationSerializer(notification).data)


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def notification_mark_all_read(request):
    updated = Notification.objects.filter(user=request.user, is_read=False).update(is_read=True)
    return Response({'message': 'All notifications marked as read', 'updated': updated})


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def project_notification_settings(request, pk):
    """
    Mattermost settings of a project.

    Any member may read them (the webhook URL is blanked for non-managers);
    owners and managers may change them. A request carrying both ``enabled``
    and a webhook URL posts a confirmation message and reports 400 when it
    fails.
    """
    project = get_member_project_or_404(pk, request.user)

    if request.method == 'GET':
        membership = get_membership(project, request.user)
        notification_settings = NotificationSettings.objects.filter(project=project).first()
        if notification_settings is None:
            notification_settings = NotificationSettings(project=project)
        return Response(settings_payload(notification_settings, membership.can_manage))

    require_project_role(project, request.user)
    serializer = NotificationSettingsSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        notification_settings, _ = NotificationSettings.objects.get_or_create(project=project)
        notification_settings = serializer.update(notification_settings, serializer.validated_data)
    logger.info(f"Notification settings for project {project.key} updated by {request.user.email}")

    # Only a request that itself turns the integration on with a URL is confirmed in the channel
    if serializer.validated_data.get('enabled') and serializer.validated_data.get('webhook_url'):
        service = MattermostService.from_settings(notification_settings)
        if not service.send_text(CONNECTED_MESSAGE):
            return Response(
                {'error': 'Settings saved but webhook test failed. Please check your webhook URL.'},
                status=status.HTTP_400_BAD_REQUEST
            )

    return Response({
        'message': 'Settings updated successfully',
        'settings': settings_payload(notification_settings, True),
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def project_notification_test(request, pk):
    project = get_member_project_or_404(pk, request.user)
    require_project_role(project, request.user)

    notification_settings = NotificationSettings.objects.filter(project=project).first()
    if notification_settings is None or not notification_settings.mattermost_enabled or not notification_settings.mattermost_webhook_url:
        return Response({'error': 'Mattermost integration not enabled'}, status=status.HTTP_400_BAD_REQUEST)

    if not MattermostService.from_settings(notification_settings).send_text(TEST_MESSAGE):
        return Response({'error': 'Failed to send test notification'}, status=status.HTTP_400_BAD_REQUEST)
    return Response({'message': 'Test notification sent successfully'})
