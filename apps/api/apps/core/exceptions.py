"""
Domain error taxonomy and the DRF exception handler.

Services raise these directly; the handler renders every error response
with the same envelope:

    {"error": {"code": "conflict", "message": "...", "details": {...}, "status": 409}}
"""
import logging

from django.core.exceptions import ObjectDoesNotExist
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError as DRFValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from apps.core.observability.correlation import get_request_id

logger = logging.getLogger(__name__)


class DomainError(APIException):
    """Base class for business-rule failures raised by service modules."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Operación inválida.'
    default_code = 'domain_error'

    def __init__(self, detail=None, code=None, details=None):
        super().__init__(detail=detail, code=code)
        self.message = str(self.detail)
        self.details = details or {}


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Recurso no encontrado.'
    default_code = 'not_found'


class ValidationFailed(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Datos inválidos.'
    default_code = 'validation_error'


class Conflict(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflicto con el estado actual del recurso.'
    default_code = 'conflict'


class Forbidden(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'No tiene permisos sobre este recurso.'
    default_code = 'forbidden'


def _error_body(code, message, details, status_code):
    return {
        'error': {
            'code': code,
            'message': message,
            'details': details,
            'status': status_code,
        }
    }


def api_exception_handler(exc, context):
    """
    Normalize every API error into a single envelope.

    Django's Http404/ObjectDoesNotExist become not_found, DRF serializer
    errors become validation_error with per-field details, anything DRF
    cannot handle is logged and returned as a 500.
    """
    if isinstance(exc, ObjectDoesNotExist):
        exc = NotFound(str(exc) or None)

    if isinstance(exc, DomainError):
        code = exc.get_codes() if isinstance(exc.detail, str) else exc.default_code
        return Response(
            _error_body(code, exc.message, exc.details, exc.status_code),
            status=exc.status_code,
        )

    response = drf_exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.error(
            'Unhandled API exception',
            exc_info=exc,
            extra={
                'event': 'api_unhandled_exception',
                'exception_type': exc.__class__.__name__,
                'view': view.__class__.__name__ if view else None,
                'request_id': get_request_id(),
            },
        )
        return Response(
            _error_body('server_error', 'Error interno del servidor.', {}, 500),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, DRFValidationError):
        code, message, details = 'validation_error', 'Datos inválidos.', response.data
    elif isinstance(exc, Http404):
        code, message, details = 'not_found', 'Recurso no encontrado.', {}
    else:
        data = response.data if isinstance(response.data, dict) else {}
        detail = data.get('detail', response.data)
        code = getattr(detail, 'code', None) or getattr(exc, 'default_code', 'api_error')
        message, details = str(detail), {}

    response.data = _error_body(code, message, details, response.status_code)
    return response
