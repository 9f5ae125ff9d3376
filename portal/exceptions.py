"""
Error types raised by the portal services and the project-wide DRF
exception handler that renders them.

Every error leaves the API as ``{"success": false, "error": "..."}``.
Unexpected exceptions are logged with their traceback and answered with
a generic message so that internal details never reach the client.
"""
from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class ValidationError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid data format'
    default_code = 'invalid'


class NotFoundError(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found'
    default_code = 'not_found'


class ConflictError(APIException):
    """The caller's version of the pricing data is stale."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Pricing data was modified by another session; reload and retry'
    default_code = 'conflict'


class PersistenceError(APIException):
    """Reading or writing the pricing document failed.

    The detail sent to the client is always the generic default; the
    underlying ``OSError`` is chained and logged server-side.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Failed to process pricing data'
    default_code = 'persistence_error'


def _message(data) -> str:
    if isinstance(data, dict):
        if 'detail' in data:
            return str(data['detail'])
        parts = []
        for key, value in data.items():
            if isinstance(value, (list, tuple)):
                value = '; '.join(str(v) for v in value)
            parts.append(f'{key}: {value}')
        return ', '.join(parts)
    if isinstance(data, (list, tuple)):
        return '; '.join(str(v) for v in data)
    return str(data)


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.error('Unhandled error in %s', context.get('view'), exc_info=exc)
        return Response({'success': False, 'error': 'Internal server error'}, status=500)
    if isinstance(exc, PersistenceError):
        logger.error('Pricing persistence failure: %s', exc.__cause__ or exc, exc_info=exc)
    headers = {name: resp[name] for name in ('WWW-Authenticate', 'Retry-After') if name in resp}
    return Response({'success': False, 'error': _message(resp.data)}, status=resp.status_code, headers=headers)
