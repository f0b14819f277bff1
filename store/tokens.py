"""
Access and refresh tokens.

Tokens are signed, timestamped payloads produced with ``django.core.signing``
under the project's SECRET_KEY. Access and refresh tokens use different salts
so one can never be replayed as the other.
"""
import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core import signing

from .exceptions import AuthenticationFailed

logger = logging.getLogger(__name__)

ACCESS_SALT = "store.tokens.access"
REFRESH_SALT = "store.tokens.refresh"


def issue_access_token(user):
    return signing.dumps({"id": str(user.pk), "role": user.role}, salt=ACCESS_SALT, compress=True)


def issue_refresh_token(user):
    return signing.dumps({"id": str(user.pk)}, salt=REFRESH_SALT, compress=True)


def issue_token_pair(user):
    return {
        "access_token": issue_access_token(user),
        "refresh_token": issue_refresh_token(user),
    }


def _load(token, salt, max_age):
    try:
        return signing.loads(token, salt=salt, max_age=max_age)
    except signing.SignatureExpired:
        raise AuthenticationFailed("Token expired")
    except signing.BadSignature:
        raise AuthenticationFailed("Invalid token")


def _user_for(payload):
    User = get_user_model()
    try:
        return User.objects.get(pk=payload.get("id"), is_active=True)
    except (User.DoesNotExist, ValueError, TypeError):
        raise AuthenticationFailed("Invalid token")


def user_from_access_token(token):
    payload = _load(token, ACCESS_SALT, settings.ACCESS_TOKEN_MAX_AGE)
    return _user_for(payload)


def user_from_refresh_token(token):
    payload = _load(token, REFRESH_SALT, settings.REFRESH_TOKEN_MAX_AGE)
    return _user_for(payload)
