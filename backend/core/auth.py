"""
Token issuing and session bookkeeping.

Each login creates a UserSession keyed by the refresh token's jti. Both the
refresh and the access token carry that jti in the ``sid`` claim, so deleting
the session row revokes the pair.
"""
import logging
from datetime import datetime, timezone as dt_timezone

from rest_framework_simplejwt.tokens import RefreshToken

from .models import UserSession
from .utils import get_client_ip, get_user_agent

logger = logging.getLogger(__name__)

SESSION_CLAIM = 'sid'


def issue_session_tokens(user, request=None):
    """Create a session for ``user`` and return the token pair for it"""
    refresh = RefreshToken.for_user(user)
    refresh['email'] = user.email
    refresh['role'] = user.role
    refresh[SESSION_CLAIM] = refresh['jti']

    UserSession.objects.create(
        user=user,
        jti=refresh['jti'],
        expires_at=datetime.fromtimestamp(refresh['exp'], tz=dt_timezone.utc),
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request),
    )

    access = refresh.access_token
    logger.debug(f"Issued session {refresh['jti'][:8]} for {user.email}")
    return {
        'access': str(access),
        'refresh': str(refresh),
        'expires_in': int(access.lifetime.total_seconds()),
    }


def get_session_for_refresh(refresh):
    """Live session for a validated refresh token, or None"""
    return UserSession.objects.select_related('user').filter(
        jti=refresh.get(SESSION_CLAIM, refresh.get('jti')),
    ).first()


def rotate_session(session, request=None):
    """Replace ``session`` with a fresh one and return the new token pair"""
    user = session.user
    session.delete()
    return issue_session_tokens(user, request)


def invalidate_all_sessions(user):
    deleted, _ = UserSession.objects.filter(user=user).delete()
    logger.info(f"Invalidated {deleted} session(s) for {user.email}")
    return deleted
