from functools import wraps

from django.core.exceptions import PermissionDenied

from .exceptions import AuthenticationFailed


def login_required_json(view):
    """Rejects anonymous callers with a 401 instead of redirecting to a login page."""
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            raise AuthenticationFailed(getattr(request, 'auth_error', None) or "Missing token")
        return view(request, *args, **kwargs)
    return wrapper


def role_required(*roles):
    def deco(view):
        @wraps(view)
        @login_required_json
        def wrapper(request, *args, **kwargs):
            if request.user.role not in roles:
                raise PermissionDenied("Forbidden")
            return view(request, *args, **kwargs)
        return wrapper
    return deco
