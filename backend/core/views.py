import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.exceptions import TokenError
from django.contrib.auth import get_user_model
from django.db import connection, transaction
from django.db.models import Q
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone

from .auth import issue_session_tokens, get_session_for_refresh, rotate_session, invalidate_all_sessions
from .exceptions import ConflictError
from .filters import UserFilter
from .models import UserSession
from .permissions import IsAdminRole
from .serializers import (
    UserSerializer, UserSummarySerializer, UserListSerializer, UserDetailSerializer,
    UserCreateSerializer, LoginSerializer, RefreshSerializer, ProfileSerializer,
    ChangePasswordSerializer, UserRoleSerializer, UserSessionSerializer
)

User = get_user_model()
logger = logging.getLogger(__name__)

USER_SEARCH_MIN_LENGTH = 2
USER_SEARCH_LIMIT = 10


# Auth views
@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """User registration endpoint"""
    email = str(request.data.get('email', '')).strip().lower()
    if email and User.objects.filter(email=email).exists():
        raise ConflictError('Email already registered')

    serializer = UserCreateSerializer(data=request.data)
    if serializer.is_valid():
        with transaction.atomic():
            user = serializer.save()
            tokens = issue_session_tokens(user, request)
        logger.info(f"Registered user {user.email}")
        return Response({
            'user': UserSerializer(user).data,
            **tokens,
        }, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    """Exchange email and password for a session token pair"""
    serializer = LoginSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    email = serializer.validated_data['email'].lower()
    user = User.objects.filter(email=email).first()
    if user is None or not user.check_password(serializer.validated_data['password']):
        logger.warning(f"Failed login attempt for {email}")
        return Response({'error': 'Invalid credentials'}, status=status.HTTP_401_UNAUTHORIZED)

    if not user.is_active:
        return Response({'error': 'Account is deactivated'}, status=status.HTTP_403_FORBIDDEN)

    user.last_login = timezone.now()
    user.save(update_fields=['last_login'])
    tokens = issue_session_tokens(user, request)
    logger.info(f"User {user.email} logged in")
    return Response({
        'user': UserSerializer(user).data,
        **tokens,
    })


@api_view(['POST'])
@permission_classes([AllowAny])
def refresh(request):
    """Rotate a refresh token: the old session is dropped and a new one issued"""
    serializer = RefreshSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        token = RefreshToken(serializer.validated_data['refresh'])
    except TokenError:
        return Response({'error': 'Invalid refresh token'}, status=status.HTTP_401_UNAUTHORIZED)

    session = get_session_for_refresh(token)
    if session is None or session.is_expired:
        return Response({'error': 'Session not found'}, status=status.HTTP_401_UNAUTHORIZED)

    if not session.user.is_active:
        session.delete()
        return Response({'error': 'Account is deactivated'}, status=status.HTTP_403_FORBIDDEN)

    with transaction.atomic():
        tokens = rotate_session(session, request)
    return Response(tokens)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me(request):
    """Get current user"""
    return Response(UserSerializer(request.user).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout(request):
    """End the session the request was authenticated with"""
    if isinstance(request.auth, UserSession):
        request.auth.delete()
    return Response({'message': 'Logged out successfully'})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout_all(request):
    invalidate_all_sessions(request.user)
    return Response({'message': 'All sessions logged out successfully'})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def session_list(request):
    """Live sessions of the current user"""
    sessions = UserSession.objects.filter(user=request.user, expires_at__gt=timezone.now())
    serializer = UserSessionSerializer(sessions, many=True, context={'request': request})
    return Response(serializer.data)


# User views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_search(request):
    """Search active users by email or name, for assignment pickers"""
    query = request.query_params.get('q', '').strip()
    if len(query) < USER_SEARCH_MIN_LENGTH:
        return Response([])

    users = User.objects.filter(is_active=True).filter(
        Q(email__icontains=query) |
        Q(first_name__icontains=query) |
        Q(last_name__icontains=query)
    ).order_by('first_name', 'last_name')[:USER_SEARCH_LIMIT]
    return Response(UserSummarySerializer(users, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_list(request):
    """List all users (admins only) with role, active and search filters"""
    queryset = User.objects.all().order_by('-created_at')
    user_filter = UserFilter(request.query_params, queryset=queryset)
    if not user_filter.is_valid():
        return Response(user_filter.errors, status=status.HTTP_400_BAD_REQUEST)
    serializer = UserListSerializer(user_filter.qs, many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_detail(request, pk):
    user = get_object_or_404(User, pk=pk)
    return Response(UserDetailSerializer(user).data)


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def user_profile(request):
    """Update own first/last name and avatar"""
    serializer = ProfileSerializer(request.user, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        return Response(UserSerializer(request.user).data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def change_password(request):
    """Change own password; every other session of the user is ended"""
    serializer = ChangePasswordSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    user = request.user
    if not user.check_password(serializer.validated_data['current_password']):
        return Response({'error': 'Current password is incorrect'}, status=status.HTTP_401_UNAUTHORIZED)

    with transaction.atomic():
        user.set_password(serializer.validated_data['new_password'])
        user.save(update_fields=['password', 'updated_at'])
        others = UserSession.objects.filter(user=user)
        if isinstance(request.auth, UserSession):
            others = others.exclude(pk=request.auth.pk)
        others.delete()

    logger.info(f"Password changed for {user.email}")
    return Response({'message': 'Password changed successfully'})


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_role(request, pk):
    user = get_object_or_404(User, pk=pk)
    serializer = UserRoleSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    user.role = serializer.validated_data['role']
    user.save(update_fields=['role', 'updated_at'])
    logger.info(f"{request.user.email} set role of {user.email} to {user.role}")
    return Response(UserSerializer(user).data)


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_deactivate(request, pk):
    """Deactivate a user and end all of their sessions"""
    user = get_object_or_404(User, pk=pk)
    if user.pk == request.user.pk:
        return Response({'error': 'You cannot deactivate your own account'}, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        user.is_active = False
        user.save(update_fields=['is_active', 'updated_at'])
        invalidate_all_sessions(user)
    logger.info(f"{request.user.email} deactivated {user.email}")
    return Response({'message': 'User deactivated successfully'})


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_activate(request, pk):
    user = get_object_or_404(User, pk=pk)
    user.is_active = True
    user.save(update_fields=['is_active', 'updated_at'])
    logger.info(f"{request.user.email} activated {user.email}")
    return Response({'message': 'User activated successfully'})


# Service views
@api_view(['GET'])
@permission_classes([AllowAny])
def health(request):
    """Liveness probe; also checks the database connection"""
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
    except Exception as e:
        logger.error(f"Health check failed: {e}", exc_info=True)
        return Response({'status': 'error', 'database': 'unavailable'}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response({'status': 'ok', 'timestamp': timezone.now().isoformat()})


def not_found(request, exception=None):
    """JSON 404 for unknown routes"""
    return JsonResponse(
        {'error': f"Route {request.method} {request.path} not found"},
        status=status.HTTP_404_NOT_FOUND,
    )
