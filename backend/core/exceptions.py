"""
API error taxonomy and the single exception handler every view funnels into.

400 validation, 401 authentication, 403 membership/role, 404 missing row,
409 conflicts (unique constraints, duplicate or circular dependencies),
500 for everything else.
"""
import logging

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.db.models import ProtectedError
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ConflictError(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'A record with this value already exists'
    default_code = 'conflict'


def _error_message(detail):
    if isinstance(detail, list) and detail:
        return _error_message(detail[0])
    if isinstance(detail, dict):
        return detail.get('detail', detail)
    return str(detail)


def api_exception_handler(exc, context):
    request = context.get('request')
    view_name = f"{request.method} {request.path}" if request is not None else 'unknown view'

    if isinstance(exc, IntegrityError):
        logger.warning(f"IntegrityError in {view_name}: {exc}")
        return Response({'error': 'A record with this value already exists'}, status=status.HTTP_409_CONFLICT)

    if isinstance(exc, ProtectedError):
        logger.warning(f"ProtectedError in {view_name}: {exc}")
        return Response({'error': 'Record is still referenced and cannot be deleted'}, status=status.HTTP_409_CONFLICT)

    if isinstance(exc, DjangoValidationError):
        exc = ValidationError(exc.message_dict if hasattr(exc, 'error_dict') else exc.messages)

    response = exception_handler(exc, context)
    if response is not None:
        if not isinstance(exc, ValidationError):
            response.data = {'error': _error_message(response.data)}
        return response

    logger.error(f"Unexpected error in {view_name}: {exc}", exc_info=exc)
    message = str(exc) if settings.DEBUG else 'An unexpected error occurred'
    return Response({'error': message}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
