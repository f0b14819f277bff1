"""Registration, login and saved addresses."""
import logging

from django.contrib.auth import authenticate, get_user_model
from django.db import transaction

from .exceptions import AddressNotFoundError, AuthenticationFailed, EmailAlreadyRegistered
from .models import Address
from .tokens import issue_token_pair, user_from_refresh_token

logger = logging.getLogger(__name__)


# -------------------------------
# AUTH
# -------------------------------
def register_user(name, email, password, phone=''):
    User = get_user_model()
    if User.objects.filter(email__iexact=email).exists():
        raise EmailAlreadyRegistered()
    user = User.objects.create_user(
        username=email,
        email=email,
        password=password,
        first_name=name,
        phone=phone or '',
    )
    logger.info("Registered user %s", user.pk)
    return user


def login_user(email, password):
    user = authenticate(username=email, password=password)
    if user is None:
        raise AuthenticationFailed("Invalid credentials")
    return user, issue_token_pair(user)


def refresh_tokens(refresh_token):
    user = user_from_refresh_token(refresh_token)
    return user, issue_token_pair(user)


# -------------------------------
# ADDRESSES
# -------------------------------
def _lock_addresses(user):
    # Serialises default-address changes for one user.
    return list(Address.objects.select_for_update().filter(user=user).order_by('pk'))


def get_addresses(user):
    return list(Address.objects.filter(user=user))


def get_address(user, address_id):
    address = Address.objects.filter(pk=address_id, user=user).first()
    if address is None:
        raise AddressNotFoundError()
    return address


def get_default_address(user):
    addresses = Address.objects.filter(user=user)
    return addresses.filter(is_default=True).first() or addresses.first()


@transaction.atomic
def add_address(user, address):
    """Saves an unsaved Address for ``user``."""
    _lock_addresses(user)
    if address.is_default:
        Address.objects.filter(user=user, is_default=True).update(is_default=False)
    address.user = user
    address.save()
    return address


@transaction.atomic
def update_address(user, address_id, data):
    _lock_addresses(user)
    address = Address.objects.filter(pk=address_id, user=user).first()
    if address is None:
        raise AddressNotFoundError()
    if data.get('is_default'):
        Address.objects.filter(user=user, is_default=True).exclude(pk=address.pk).update(is_default=False)
    for name, value in data.items():
        setattr(address, name, value)
    address.save()
    return address


def delete_address(user, address_id):
    deleted, _ = Address.objects.filter(pk=address_id, user=user).delete()
    if not deleted:
        raise AddressNotFoundError()
