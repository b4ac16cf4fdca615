import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django.contrib.auth import get_user_model
from django.db import transaction
from django.http import Http404
from django.shortcuts import get_object_or_404

from backend.core.exceptions import ConflictError
from .models import Team, TeamMember
from .serializers import TeamSerializer, TeamDetailSerializer, TeamMemberSerializer, AddTeamMemberSerializer

User = get_user_model()
logger = logging.getLogger(__name__)


def _get_member_team_or_404(pk, user):
    team = Team.objects.filter(pk=pk, members__user=user).select_related('owner').first()
    if team is None:
        raise Http404('Team not found')
    return team


def _require_team_role(team, user, roles=TeamMember.MANAGE_ROLES):
    membership = TeamMember.objects.filter(team=team, user=user).first()
    if membership is None or membership.role not in roles:
        raise PermissionDenied('Insufficient team permissions')
    return membership


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def team_list_create(request):
    """List teams the user belongs to or create a new team"""
    if request.method == 'GET':
        teams = Team.objects.filter(members__user=request.user).select_related('owner').prefetch_related('members__user').distinct()
        serializer = TeamSerializer(teams, many=True)
        return Response(serializer.data)

    serializer = TeamSerializer(data=request.data)
    if serializer.is_valid():
        with transaction.atomic():
            team = serializer.save(
                owner=request.user,
                slug=Team.build_unique_slug(serializer.validated_data['name']),
            )
            TeamMember.objects.create(team=team, user=request.user, role=TeamMember.Role.OWNER)
        logger.info(f"Team {team.slug} created by {request.user.email}")
        return Response(TeamSerializer(team).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def team_detail(request, pk):
    """Retrieve, update or delete a team (members only)"""
    team = _get_member_team_or_404(pk, request.user)

    if request.method == 'GET':
        return Response(TeamDetailSerializer(team).data)

    if request.method in ('PUT', 'PATCH'):
        _require_team_role(team, request.user)
        serializer = TeamSerializer(team, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    # DELETE
    _require_team_role(team, request.user, roles=(TeamMember.Role.OWNER,))
    team.delete()
    logger.info(f"Team {pk} deleted by {request.user.email}")
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def team_member_add(request, pk):
    """Add a user to the team by email"""
    team = _get_member_team_or_404(pk, request.user)
    _require_team_role(team, request.user)

    serializer = AddTeamMemberSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    user = User.objects.filter(email=serializer.validated_data['email'].lower()).first()
    if user is None:
        return Response({'error': 'User not found'}, status=status.HTTP_404_NOT_FOUND)
    if TeamMember.objects.filter(team=team, user=user).exists():
        raise ConflictError('User is already a member of this team')

    with transaction.atomic():
        member = TeamMember.objects.create(team=team, user=user, role=serializer.validated_data['role'])
    logger.info(f"{user.email} added to team {team.slug} as {member.role}")
    return Response(TeamMemberSerializer(member).data, status=status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def team_member_remove(request, pk, user_id):
    team = _get_member_team_or_404(pk, request.user)
    _require_team_role(team, request.user)

    member = get_object_or_404(TeamMember, team=team, user_id=user_id)
    if member.user_id == team.owner_id:
        return Response({'error': 'The team owner cannot be removed'}, status=status.HTTP_400_BAD_REQUEST)
    member.delete()
    logger.info(f"User {user_id} removed from team {team.slug}")
    return Response(status=status.HTTP_204_NO_CONTENT)
