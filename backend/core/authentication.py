from django.utils import timezone
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import AuthenticationFailed

from .auth import SESSION_CLAIM
from .models import UserSession


class SessionJWTAuthentication(JWTAuthentication):
    """
    Bearer JWT authentication that also requires a live UserSession.

    On success ``request.user`` is the user and ``request.auth`` is the
    UserSession the token belongs to, so views never have to re-parse the
    Authorization header.
    """

    def authenticate(self, request):
        result = super().authenticate(request)
        if result is None:
            return None

        user, token = result
        session_id = token.get(SESSION_CLAIM)
        if not session_id:
            raise AuthenticationFailed('Token is not bound to a session', code='no_session')

        session = UserSession.objects.filter(
            jti=session_id,
            user=user,
            expires_at__gt=timezone.now(),
        ).first()
        if session is None:
            raise AuthenticationFailed('Session expired', code='session_expired')

        return user, session
