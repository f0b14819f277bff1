"""Categories, products, product search and reviews."""
import logging

from django.core.exceptions import PermissionDenied
from django.db import transaction
from django.db.models import Avg, Count

from .exceptions import (
    CategoryNotFoundError,
    ProductNotFoundError,
    ReviewNotAllowedError,
    ReviewNotFoundError,
)
from .models import Category, Order, OrderItem, Product, ProductImage, Review, User

logger = logging.getLogger(__name__)


# -------------------------------
# CATEGORIES
# -------------------------------
def get_category(category_id):
    try:
        return Category.objects.get(pk=category_id)
    except Category.DoesNotExist:
        raise CategoryNotFoundError()


def delete_category(category_id):
    get_category(category_id).delete()


# -------------------------------
# PRODUCTS
# -------------------------------
def products_with_ratings():
    return (
        Product.objects.select_related('category')
        .prefetch_related('images')
        .annotate(average_rating=Avg('reviews__rating'), review_count=Count('reviews', distinct=True))
    )


def get_product(product_id):
    product = products_with_ratings().filter(pk=product_id).first()
    if product is None:
        raise ProductNotFoundError()
    return product


def check_can_manage(user, product):
    """Admins manage every product, sellers only their own."""
    if user.role == User.ROLE_ADMIN:
        return
    if user.role == User.ROLE_SELLER and product.seller_id == user.pk:
        return
    raise PermissionDenied("You can only manage your own products")


@transaction.atomic
def create_product(user, product, images=()):
    product.seller = user
    product.save()
    replace_images(product, images)
    logger.info("Product %s created by %s", product.pk, user.pk)
    return product


@transaction.atomic
def replace_images(product, images):
    """``images`` is an iterable of {"url", "alt_text"} dicts."""
    product.images.all().delete()
    ProductImage.objects.bulk_create([
        ProductImage(product=product, image=img['url'], alt_text=img.get('alt_text') or '')
        for img in images
    ])


def delete_product(user, product_id):
    product = Product.objects.filter(pk=product_id).first()
    if product is None:
        raise ProductNotFoundError()
    check_can_manage(user, product)
    product.delete()
    logger.info("Product %s deleted by %s", product_id, user.pk)


def products_for_seller(user, seller_id=None):
    """Sellers list their own products; admins may name any seller."""
    if seller_id is None or user.role != User.ROLE_ADMIN:
        seller_id = user.pk
    return list(products_with_ratings().filter(seller_id=seller_id))


def search_products(keyword=None, category_id=None, min_price=None, max_price=None,
                    stock_min=None, stock_max=None):
    qs = products_with_ratings()
    if keyword:
        qs = qs.filter(name__icontains=keyword)
    if category_id is not None:
        qs = qs.filter(category_id=category_id)
    if min_price is not None:
        qs = qs.filter(price__gte=min_price)
    if max_price is not None:
        qs = qs.filter(price__lte=max_price)
    if stock_min is not None:
        qs = qs.filter(stock__gte=stock_min)
    if stock_max is not None:
        qs = qs.filter(stock__lte=stock_max)
    return list(qs)


# -------------------------------
# REVIEWS
# -------------------------------
def has_purchased(user, product_id):
    return (
        OrderItem.objects
        .filter(product_id=product_id, order__user=user)
        .exclude(order__status=Order.STATUS_CANCELLED)
        .exists()
    )


@transaction.atomic
def add_or_update_review(user, product_id, rating, comment=''):
    if not Product.objects.filter(pk=product_id).exists():
        raise ProductNotFoundError()
    if not has_purchased(user, product_id):
        raise ReviewNotAllowedError()

    review, created = Review.objects.update_or_create(
        user=user,
        product_id=product_id,
        defaults={'rating': rating, 'comment': comment or ''},
    )
    logger.info("Review %s %s by user %s", review.pk, "created" if created else "updated", user.pk)
    return review


def get_product_reviews(product_id):
    return list(Review.objects.filter(product_id=product_id).select_related('user'))


def get_user_review(user, product_id):
    review = Review.objects.filter(user=user, product_id=product_id).first()
    if review is None:
        raise ReviewNotFoundError()
    return review


def delete_review(user, product_id):
    deleted, _ = Review.objects.filter(user=user, product_id=product_id).delete()
    if not deleted:
        raise ReviewNotFoundError()
