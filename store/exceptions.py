"""
Business-rule failures raised by the store services.

Each error carries the HTTP status it is answered with; the JSON exception
middleware turns them into ``{"error": message}`` responses.
"""


class StoreError(Exception):
    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidPayload(StoreError):
    default_message = "Invalid request data"

    def __init__(self, message=None, fields=None):
        super().__init__(message)
        self.fields = fields or {}


class AuthenticationFailed(StoreError):
    status_code = 401
    default_message = "Authentication required"


class EmailAlreadyRegistered(StoreError):
    status_code = 409
    default_message = "Email already registered"


# -------------------------------
# Not found
# -------------------------------
class NotFoundError(StoreError):
    status_code = 404
    default_message = "Not found"


class ProductNotFoundError(NotFoundError):
    default_message = "Product not found"


class CategoryNotFoundError(NotFoundError):
    default_message = "Category not found"


class AddressNotFoundError(NotFoundError):
    default_message = "Address not found"


class OrderNotFoundError(NotFoundError):
    default_message = "Order not found"


class CartItemNotFoundError(NotFoundError):
    default_message = "Item not found in cart"


class WishlistItemNotFoundError(NotFoundError):
    default_message = "Product not found in wishlist"


class ReviewNotFoundError(NotFoundError):
    default_message = "Review not found"


# -------------------------------
# Checkout
# -------------------------------
class CartEmptyError(StoreError):
    default_message = "Cart is empty"


class InsufficientStockError(StoreError):
    default_message = "Insufficient stock"

    def __init__(self, product_name=None, message=None):
        self.product_name = product_name
        if message is None and product_name:
            message = f"Insufficient stock for {product_name}"
        super().__init__(message)


class MissingShippingInfoError(StoreError):
    default_message = "Either address_id or both contact and shipping details are required"


class AlreadyCancelledError(StoreError):
    default_message = "Order already cancelled"


class AlreadyCompletedError(StoreError):
    default_message = "Cannot cancel an order that has already shipped"


# -------------------------------
# Wishlist / reviews
# -------------------------------
class AlreadyInWishlistError(StoreError):
    default_message = "Product already in wishlist"


class ReviewNotAllowedError(StoreError):
    default_message = "User cannot review a product they haven't purchased"


# -------------------------------
# Payment processor
# -------------------------------
class PaymentProcessorError(StoreError):
    default_message = "Payment processor error"


class PaymentsNotConfigured(StoreError):
    status_code = 503
    default_message = "Payments are not configured"
