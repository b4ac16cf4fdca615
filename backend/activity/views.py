from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from backend.projects.permissions import get_member_project_or_404
from .filters import ActivityFilter
from .models import Activity
from .serializers import ActivitySerializer

DEFAULT_ACTIVITY_LIMIT = 50
MAX_ACTIVITY_LIMIT = 200


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def project_activity(request, pk):
    """
    Activity feed of a project, newest first.

    Query params:
        action: Activity action
        limit: Maximum rows (default 50)
    """
    project = get_member_project_or_404(pk, request.user)

    try:
        limit = int(request.GET.get('limit', DEFAULT_ACTIVITY_LIMIT))
    except (TypeError, ValueError):
        return Response({'error': 'limit must be an integer'}, status=status.HTTP_400_BAD_REQUEST)
    limit = max(1, min(limit, MAX_ACTIVITY_LIMIT))

    queryset = Activity.objects.filter(project=project).select_related('user')
    activity_filter = ActivityFilter(request.GET, queryset=queryset)
    if not activity_filter.is_valid():
        return Response(activity_filter.errors, status=status.HTTP_400_BAD_REQUEST)

    activities = activity_filter.qs.order_by('-created_at', '-id')[:limit]
    return Response(ActivitySerializer(activities, many=True).data)
