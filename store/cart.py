"""Cart and wishlist operations."""
import logging

from django.db import transaction

from .exceptions import (
    AlreadyInWishlistError,
    CartItemNotFoundError,
    InsufficientStockError,
    InvalidPayload,
    ProductNotFoundError,
    WishlistItemNotFoundError,
)
from .models import Cart, CartItem, Product, Wishlist, WishlistItem

logger = logging.getLogger(__name__)


def _get_product(product_id):
    try:
        return Product.objects.get(pk=product_id)
    except Product.DoesNotExist:
        raise ProductNotFoundError(f"Product with ID {product_id} does not exist")


# -------------------------------
# CART
# -------------------------------
def get_or_create_cart(user):
    cart, _ = Cart.objects.get_or_create(user=user)
    return cart


def _lock_cart(user):
    # Same lock checkout takes before reading the lines.
    get_or_create_cart(user)
    return Cart.objects.select_for_update().get(user=user)


def get_cart_items(user):
    """Returns the user's cart lines joined with their products."""
    return list(
        CartItem.objects.filter(cart__user=user)
        .select_related('product')
        .prefetch_related('product__images')
    )


@transaction.atomic
def add_to_cart(user, product_id, quantity=1):
    if quantity < 1:
        raise InvalidPayload("Quantity must be greater than zero")

    product = _get_product(product_id)
    cart = _lock_cart(user)
    item = CartItem.objects.select_for_update().filter(cart=cart, product=product).first()

    current = item.quantity if item else 0
    if not product.has_stock_for(current + quantity):
        available = max(product.stock - current, 0)
        raise InsufficientStockError(
            product.name,
            message=f"Cannot add {quantity} items. Only {available} more in stock.",
        )

    if item:
        item.quantity = current + quantity
        item.save(update_fields=['quantity'])
    else:
        item = CartItem.objects.create(cart=cart, product=product, quantity=quantity)
    return item


@transaction.atomic
def reduce_cart_item(user, product_id, quantity=1):
    """
    Lowers a line's quantity, deleting the line when it would drop below 1.
    Returns the updated item, or None when it was removed.
    """
    if quantity < 1:
        raise InvalidPayload("Quantity to reduce must be greater than zero")

    _lock_cart(user)
    item = (
        CartItem.objects.select_for_update()
        .filter(cart__user=user, product_id=product_id)
        .first()
    )
    if item is None:
        raise CartItemNotFoundError()

    remaining = item.quantity - quantity
    if remaining < 1:
        item.delete()
        return None
    item.quantity = remaining
    item.save(update_fields=['quantity'])
    return item


def remove_from_cart(user, product_id):
    deleted, _ = CartItem.objects.filter(cart__user=user, product_id=product_id).delete()
    if not deleted:
        raise CartItemNotFoundError()


def clear_cart(user):
    deleted, _ = CartItem.objects.filter(cart__user=user).delete()
    return deleted


# -------------------------------
# WISHLIST
# -------------------------------
def get_wishlist_items(user):
    return list(
        WishlistItem.objects.filter(wishlist__user=user)
        .select_related('product')
        .prefetch_related('product__images')
    )


@transaction.atomic
def add_to_wishlist(user, product_id):
    product = _get_product(product_id)
    wishlist, _ = Wishlist.objects.get_or_create(user=user)
    if WishlistItem.objects.filter(wishlist=wishlist, product=product).exists():
        raise AlreadyInWishlistError()
    return WishlistItem.objects.create(wishlist=wishlist, product=product)


def remove_from_wishlist(user, product_id):
    deleted, _ = WishlistItem.objects.filter(wishlist__user=user, product_id=product_id).delete()
    if not deleted:
        raise WishlistItemNotFoundError()


def clear_wishlist(user):
    deleted, _ = WishlistItem.objects.filter(wishlist__user=user).delete()
    return deleted
