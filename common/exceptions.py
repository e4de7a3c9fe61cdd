"""
Domain exceptions and the custom exception handler for Django REST Framework.
"""
import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    ValidationError as DRFValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ResourceNotFound(APIException):
    """A group, product, request or invite does not exist."""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'The requested resource was not found.'
    default_code = 'not_found'


class Conflict(APIException):
    """Duplicate membership, duplicate approval, already finalized, etc."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The request conflicts with the current state.'
    default_code = 'conflict'


class GroupFull(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'This group has reached its member limit.'
    default_code = 'group_full'


class Expired(APIException):
    status_code = status.HTTP_410_GONE
    default_detail = 'This group is no longer open.'
    default_code = 'expired'


class ActionForbidden(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You are not allowed to perform this action.'
    default_code = 'forbidden'


class TierValidationError(APIException):
    """
    A discount tier configuration was rejected.

    ``tier_number`` is the 1-based position of the offending tier in the
    submitted list, or ``None`` when the list as a whole is invalid.
    """
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = 'Invalid discount tier configuration.'
    default_code = 'validation_error'

    def __init__(self, detail=None, tier_number=None):
        super().__init__(detail=detail)
        self.tier_number = tier_number


def custom_exception_handler(exc, context):
    """
    Custom exception handler that returns consistent JSON error responses.

    Response format:
    {
        "success": false,
        "error": {
            "code": "error_code",
            "message": "Human-readable message",
            "details": { ... }  // optional, for field-level validation errors
        }
    }
    """
    # Convert Django ValidationError to DRF ValidationError
    if isinstance(exc, DjangoValidationError):
        exc = DRFValidationError(detail=exc.message_dict if hasattr(exc, 'message_dict') else exc.messages)

    # Call DRF's default exception handler first
    response = exception_handler(exc, context)

    if response is None:
        # Unhandled exception
        logger.exception(
            'Unhandled exception in %s',
            context.get('view', 'unknown view'),
            exc_info=exc,
        )
        return Response(
            {
                'success': False,
                'error': {
                    'code': 'internal_error',
                    'message': 'An unexpected error occurred. Please try again later.',
                },
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    response.data = {
        'success': False,
        'error': _format_error(exc, response),
    }
    return response


def error_payload(exc):
    """Serialize an ``APIException`` for embedding in a batch result."""
    payload = {
        'code': exc.default_code if isinstance(exc, APIException) else 'error',
        'message': str(getattr(exc, 'detail', exc)),
    }
    if isinstance(exc, TierValidationError) and exc.tier_number is not None:
        payload['details'] = {'tierNumber': exc.tier_number}
    return payload


def _format_error(exc, response):
    """Format the error payload based on exception type."""
    if isinstance(exc, DRFValidationError):
        return {
            'code': 'validation_error',
            'message': 'Invalid input.',
            'details': response.data,
        }

    if isinstance(exc, Http404):
        return {
            'code': 'not_found',
            'message': 'The requested resource was not found.',
        }

    if isinstance(exc, APIException):
        return error_payload(exc)

    return {
        'code': 'error',
        'message': 'An error occurred.',
    }
