"""
API error handling shared by every app.

Every error response carries an ``error`` key with a single readable
message, next to the usual DRF field details.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import ProtectedError
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class InsufficientStock(ValidationError):
    default_detail = 'Insufficient stock.'
    default_code = 'insufficient_stock'


class ResourceInUse(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'This record is in use and cannot be deleted.'
    default_code = 'in_use'


def error_message(data):
    """Flatten a DRF error payload into one human readable line."""
    if isinstance(data, (list, tuple)):
        return error_message(data[0]) if data else 'Invalid request'
    if isinstance(data, dict):
        if not data:
            return 'Invalid request'
        if 'detail' in data:
            return str(data['detail'])
        field, value = next(iter(data.items()))
        message = error_message(value)
        if field == 'non_field_errors':
            return message
        return f"{field}: {message}"
    return str(data)


def api_exception_handler(exc, context):
    if isinstance(exc, DjangoValidationError):
        if hasattr(exc, 'error_dict'):
            exc = ValidationError(detail=exc.message_dict)
        else:
            exc = ValidationError(detail=exc.messages)
    elif isinstance(exc, ProtectedError):
        exc = ResourceInUse()

    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.error(
            f"[API ERROR] Unhandled {exc.__class__.__name__} in "
            f"{view.__class__.__name__ if view else 'unknown view'}: {exc}",
            exc_info=exc,
        )
        return None

    if isinstance(response.data, dict):
        response.data['error'] = error_message(response.data)
    else:
        response.data = {
            'error': error_message(response.data),
            'errors': response.data,
        }

    if response.status_code >= 500:
        logger.error(f"[API ERROR] {response.status_code}: {response.data['error']}")

    return response
