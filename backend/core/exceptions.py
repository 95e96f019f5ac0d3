"""
API error envelope

Every error response leaving the API has the shape
``{"error": CODE, "message": str, "details": ..., "status_code": int}``.
Views raise DRF exceptions (or the ones below) and this handler formats them.
"""
import logging
from django.db.models import ProtectedError
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback

logger = logging.getLogger('backend.core')

ERROR_CODES = {
    status.HTTP_400_BAD_REQUEST: 'VALIDATION_ERROR',
    status.HTTP_401_UNAUTHORIZED: 'UNAUTHORIZED',
    status.HTTP_403_FORBIDDEN: 'FORBIDDEN',
    status.HTTP_404_NOT_FOUND: 'NOT_FOUND',
    status.HTTP_405_METHOD_NOT_ALLOWED: 'METHOD_NOT_ALLOWED',
    status.HTTP_409_CONFLICT: 'CONFLICT',
    status.HTTP_415_UNSUPPORTED_MEDIA_TYPE: 'UNSUPPORTED_MEDIA_TYPE',
    status.HTTP_429_TOO_MANY_REQUESTS: 'TOO_MANY_REQUESTS',
}


class Conflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The request conflicts with the current state of the resource.'
    default_code = 'conflict'


class ApiError(APIException):
    """APIException carrying an explicit error code, e.g. EMAIL_EXISTS"""

    def __init__(self, message, error, status_code=status.HTTP_400_BAD_REQUEST, details=None):
        super().__init__(detail=message)
        self.status_code = status_code
        self.error = error
        self.details = details


def _message_for(exc, response):
    if isinstance(exc, ValidationError):
        if isinstance(exc.detail, list) and len(exc.detail) == 1:
            return str(exc.detail[0]), None
        return 'Invalid request data', response.data
    detail = getattr(exc, 'detail', None)
    if isinstance(detail, (list, dict)):
        return 'Request failed', response.data
    return str(detail) if detail else 'Request failed', None


def api_exception_handler(exc, context):
    """Format every API error into the project-wide envelope"""
    if isinstance(exc, ProtectedError):
        exc = Conflict('This record is referenced by other records and cannot be deleted')

    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        view_name = getattr(view, '__class__', type(None)).__name__
        logger.error(f"Unhandled error in {view_name}: {str(exc)}", exc_info=exc)
        set_rollback()
        return Response({
            'error': 'INTERNAL_ERROR',
            'message': 'An unexpected error occurred',
            'status_code': status.HTTP_500_INTERNAL_SERVER_ERROR,
        }, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    message, details = _message_for(exc, response)
    payload = {
        'error': getattr(exc, 'error', None) or ERROR_CODES.get(response.status_code, 'ERROR'),
        'message': message,
        'status_code': response.status_code,
    }
    details = getattr(exc, 'details', None) or details
    if details:
        payload['details'] = details
    response.data = payload
    return response
