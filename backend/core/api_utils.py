"""
JSON envelope helpers shared by every app.

Success: {"success": true, "data": ..., "message"?: ...}
Error:   {"success": false, "error": {"code": ..., "message": ..., "details"?: ...}}
"""
import logging
from django.core.paginator import Paginator
from django.http import Http404
from rest_framework import status, exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class ApiError(Exception):
    """Raise from a view to return an error envelope"""

    def __init__(self, code, message, status_code=status.HTTP_400_BAD_REQUEST, details=None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details


def error_response(code, message, status_code=status.HTTP_400_BAD_REQUEST, details=None):
    error = {'code': code, 'message': message}
    if details is not None:
        error['details'] = details
    return Response({'success': False, 'error': error}, status=status_code)


def success_response(data=None, message=None, status_code=status.HTTP_200_OK):
    body = {'success': True, 'data': data}
    if message:
        body['message'] = message
    return Response(body, status=status_code)


def validation_error(errors, message='Invalid request data'):
    """Wrap serializer.errors in the error envelope"""
    return error_response('VALIDATION_ERROR', message, status.HTTP_400_BAD_REQUEST, details=errors)


def parse_int_param(request, name, default, minimum=None, maximum=None):
    """Read an integer query parameter, raising ApiError on garbage"""
    raw = request.query_params.get(name)
    if raw in (None, ''):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ApiError('INVALID_PARAMS', f'{name} must be an integer')
    if minimum is not None and value < minimum:
        raise ApiError('INVALID_PARAMS', f'{name} must be at least {minimum}')
    if maximum is not None:
        value = min(value, maximum)
    return value


def paginate(request, queryset, default_limit=20):
    """
    Paginate a queryset with ?page=&limit=.
    Returns (page_obj, pagination_dict).
    """
    page = parse_int_param(request, 'page', 1, minimum=1)
    limit = parse_int_param(request, 'limit', default_limit, minimum=1, maximum=MAX_PAGE_SIZE)

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)
    pagination = {
        'page': page_obj.number,
        'limit': limit,
        'total': paginator.count,
        'totalPages': paginator.num_pages,
        'hasNext': page_obj.has_next(),
        'hasPrev': page_obj.has_previous(),
    }
    return page_obj, pagination


def paginated_response(request, queryset, serializer_class, default_limit=20, context=None):
    page_obj, pagination = paginate(request, queryset, default_limit)
    serializer = serializer_class(page_obj.object_list, many=True, context=context or {})
    return Response({
        'success': True,
        'data': serializer.data,
        'pagination': pagination,
    })


_DRF_CODES = {
    exceptions.NotAuthenticated: 'UNAUTHORIZED',
    exceptions.AuthenticationFailed: 'UNAUTHORIZED',
    exceptions.PermissionDenied: 'FORBIDDEN',
    exceptions.NotFound: 'NOT_FOUND',
    exceptions.MethodNotAllowed: 'METHOD_NOT_ALLOWED',
    exceptions.ValidationError: 'VALIDATION_ERROR',
    exceptions.ParseError: 'INVALID_REQUEST',
    exceptions.UnsupportedMediaType: 'UNSUPPORTED_MEDIA_TYPE',
    exceptions.Throttled: 'RATE_LIMITED',
}


def api_exception_handler(exc, context):
    """DRF exception handler that renders every error in the envelope"""
    if isinstance(exc, ApiError):
        return error_response(exc.code, exc.message, exc.status_code, exc.details)

    if isinstance(exc, Http404):
        return error_response('NOT_FOUND', str(exc) or 'Not found', status.HTTP_404_NOT_FOUND)

    response = exception_handler(exc, context)
    if response is None:
        # Unhandled: let Django's 500 handling take over
        return None

    code = 'API_ERROR'
    for exc_class, exc_code in _DRF_CODES.items():
        if isinstance(exc, exc_class):
            code = exc_code
            break

    if isinstance(exc, exceptions.ValidationError):
        message = 'Invalid request data'
        details = response.data
    else:
        message = str(getattr(exc, 'detail', exc))
        details = None

    error = {'code': code, 'message': message}
    if details is not None:
        error['details'] = details
    response.data = {'success': False, 'error': error}
    return response
