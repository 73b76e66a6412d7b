"""Response envelopes shared by every endpoint.

Successful responses look like ``{"success": true, "data": ...}`` and failures
like ``{"success": false, "message": ..., "code": ...}``.
"""
import logging
import math
import traceback

from django.conf import settings
from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


def envelope(data=None, message=None, status_code=status.HTTP_200_OK):
    body = {'success': True, 'data': data}
    if message:
        body['message'] = message
    return Response(body, status=status_code)


class EnvelopePagination(PageNumberPagination):
    page_size_query_param = 'limit'

    @property
    def max_page_size(self):
        return getattr(settings, 'LEAVE_MAX_PAGE_SIZE', 100)

    def get_paginated_response(self, data):
        limit = self.page.paginator.per_page
        total = self.page.paginator.count
        return Response({
            'success': True,
            'data': data,
            'pagination': {
                'page': self.page.number,
                'limit': limit,
                'total': total,
                'pages': math.ceil(total / limit) if limit else 0,
            },
        })


def _flatten_errors(detail, prefix=''):
    if isinstance(detail, dict):
        errors = []
        for field, value in detail.items():
            name = f'{prefix}.{field}' if prefix else str(field)
            errors.extend(_flatten_errors(value, name))
        return errors
    if isinstance(detail, list):
        errors = []
        for item in detail:
            errors.extend(_flatten_errors(item, prefix))
        return errors
    return [{'field': prefix or 'non_field_errors', 'message': str(detail)}]


def exception_handler(exc, context):
    if isinstance(exc, Http404):
        exc = exceptions.NotFound()
    elif isinstance(exc, DjangoPermissionDenied):
        exc = exceptions.PermissionDenied()

    response = drf_exception_handler(exc, context)
    if response is None:
        view = context.get('view')
        logger.exception('Unhandled error in %s', view.__class__.__name__ if view else 'unknown view')
        body = {'success': False, 'message': 'Internal server error', 'code': 'internal_error'}
        if settings.DEBUG:
            body['stack'] = traceback.format_exception(type(exc), exc, exc.__traceback__)
        return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, exceptions.ValidationError):
        response.data = {
            'success': False,
            'message': 'Validation failed',
            'code': 'invalid',
            'errors': _flatten_errors(exc.detail),
        }
        return response

    detail = getattr(exc, 'detail', None)
    codes = exc.get_codes() if hasattr(exc, 'get_codes') else None
    response.data = {
        'success': False,
        'message': str(detail) if detail is not None else str(exc),
        'code': codes if isinstance(codes, str) else 'error',
    }
    return response
