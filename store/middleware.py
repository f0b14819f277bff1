# store/middleware.py
import logging

from django.contrib.auth.models import AnonymousUser
from django.core.exceptions import PermissionDenied
from django.http import Http404, JsonResponse
from django.utils.deprecation import MiddlewareMixin

from .exceptions import AuthenticationFailed, InvalidPayload, StoreError
from .tokens import user_from_access_token

logger = logging.getLogger(__name__)

API_PREFIX = '/api/'


class DisableCSRFForApi(MiddlewareMixin):
    """
    The JSON API authenticates with bearer tokens, not session cookies,
    so CSRF checks are skipped for it.
    """
    def process_request(self, request):
        if request.path.startswith(API_PREFIX):
            setattr(request, '_dont_enforce_csrf_checks', True)


class TokenAuthenticationMiddleware(MiddlewareMixin):
    """
    Resolves request.user from an ``Authorization: Bearer <token>`` header
    or an ``access_token`` cookie. Must come after AuthenticationMiddleware.
    """
    def process_request(self, request):
        request.auth_error = None
        token = self._get_token(request)
        if not token:
            return
        try:
            request.user = user_from_access_token(token)
        except AuthenticationFailed as e:
            request.user = AnonymousUser()
            request.auth_error = e.message

    def _get_token(self, request):
        header = request.META.get('HTTP_AUTHORIZATION', '')
        if header:
            scheme, _, token = header.partition(' ')
            if scheme.lower() == 'bearer' and token.strip():
                return token.strip()
            return None
        return request.COOKIES.get('access_token')


class JsonExceptionMiddleware(MiddlewareMixin):
    """
    Answers API errors as JSON. Business-rule failures keep their own
    status and message; anything else becomes a generic 500.
    """
    def process_exception(self, request, exception):
        if isinstance(exception, StoreError):
            logger.warning(
                "%s %s rejected: %s", request.method, request.path, exception.message
            )
            body = {'error': exception.message}
            if isinstance(exception, InvalidPayload) and exception.fields:
                body['fields'] = exception.fields
            return JsonResponse(body, status=exception.status_code)

        if not request.path.startswith(API_PREFIX):
            return None

        if isinstance(exception, Http404):
            return JsonResponse({'error': 'Not found'}, status=404)

        if isinstance(exception, PermissionDenied):
            return JsonResponse({'error': str(exception) or 'Forbidden'}, status=403)

        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return JsonResponse({'error': 'Internal server error'}, status=500)
