# store/store_utils.py
import json
from decimal import Decimal, InvalidOperation

from django.conf import settings

from .exceptions import InvalidPayload

CENTS = Decimal('0.01')


def to_money(value):
    """
    Converts a number or numeric string to a two-place Decimal.
    Floats go through str() so 10.1 stays 10.10 and not 10.0999...
    """
    if isinstance(value, float):
        value = str(value)
    try:
        return Decimal(value).quantize(CENTS)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidPayload(f"Invalid amount: {value!r}")


def format_money(amount, currency=None):
    currency = currency or getattr(settings, "STORE_CURRENCY", "USD")
    return f"{to_money(amount)} {currency}"


def parse_json_body(request):
    """
    Returns the decoded JSON object sent with the request, {} for an empty body.
    """
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        raise InvalidPayload("Request body is not valid JSON")
    if not isinstance(data, dict):
        raise InvalidPayload("Request body must be a JSON object")
    return data


def get_cart_count(user):
    """
    Returns the total item count in the user's cart.
    """
    cart = getattr(user, 'cart', None)
    if cart is None:
        return 0
    return sum(item.quantity for item in cart.items.all())
