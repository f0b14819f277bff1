import uuid
from decimal import Decimal

import pytest
from django.core.exceptions import PermissionDenied

from store import catalog, checkout
from store.checkout import InlineAddress, OrderOptions
from store.exceptions import (
    CategoryNotFoundError,
    ProductNotFoundError,
    ReviewNotAllowedError,
    ReviewNotFoundError,
)
from store.models import Category, Product, Review

pytestmark = pytest.mark.django_db


@pytest.fixture
def purchase(contact, shipping):
    def buy(owner, product, quantity=1):
        address = InlineAddress(contact=contact, shipping=shipping)
        return checkout.buy_now(owner, product.pk, quantity, OrderOptions(address=address))
    return buy


# -------------------------------
# Search
# -------------------------------
def test_search_filters(make_product, category):
    lamp = make_product(name="Desk lamp", price="25.00", stock=3, category=category)
    make_product(name="Floor lamp", price="80.00", stock=10)
    make_product(name="Chair", price="45.00", stock=0)

    def names(**filters):
        return sorted(p.name for p in catalog.search_products(**filters))

    assert names(keyword="LAMP") == ["Desk lamp", "Floor lamp"]
    assert names(min_price=Decimal("30"), max_price=Decimal("50")) == ["Chair"]
    assert names(category_id=category.pk) == [lamp.name]
    assert names(stock_min=1, stock_max=5) == ["Desk lamp"]
    assert len(catalog.search_products()) == 3


def test_unknown_ids(make_product):
    with pytest.raises(ProductNotFoundError):
        catalog.get_product(uuid.uuid4())
    with pytest.raises(CategoryNotFoundError):
        catalog.get_category(999)


# -------------------------------
# Products
# -------------------------------
def test_create_product_assigns_seller(seller):
    product = catalog.create_product(seller, Product(name="Mug", price=Decimal("8.50"), stock=12))

    assert product.seller == seller
    assert catalog.get_product(product.pk).review_count == 0


def test_sellers_manage_only_their_products(make_product, seller, admin_user, user):
    product = make_product()
    other_seller = type(seller).objects.create_user(
        username="other@example.com", email="other@example.com", password="x", role="seller"
    )

    catalog.check_can_manage(seller, product)
    catalog.check_can_manage(admin_user, product)
    with pytest.raises(PermissionDenied):
        catalog.check_can_manage(other_seller, product)
    with pytest.raises(PermissionDenied):
        catalog.delete_product(user, product.pk)

    catalog.delete_product(admin_user, product.pk)
    assert not Product.objects.filter(pk=product.pk).exists()


def test_delete_category_keeps_products(make_product, category):
    product = make_product(category=category)

    catalog.delete_category(category.pk)

    product.refresh_from_db()
    assert product.category is None
    assert not Category.objects.exists()


# -------------------------------
# Reviews
# -------------------------------
def test_review_requires_purchase(user, make_product):
    product = make_product()

    with pytest.raises(ReviewNotAllowedError):
        catalog.add_or_update_review(user, product.pk, 5)


def test_cancelled_purchase_does_not_allow_review(user, make_product, purchase):
    product = make_product()
    result = purchase(user, product)
    checkout.cancel_order(user, result.order_id)

    assert not catalog.has_purchased(user, product.pk)


def test_review_is_added_then_updated(user, make_product, purchase):
    product = make_product()
    purchase(user, product)

    catalog.add_or_update_review(user, product.pk, 3, "fine")
    review = catalog.add_or_update_review(user, product.pk, 5, "great after all")

    assert Review.objects.filter(user=user, product=product).count() == 1
    assert review.rating == 5
    assert catalog.get_user_review(user, product.pk).comment == "great after all"


def test_ratings_are_aggregated(user, other_user, make_product, purchase):
    product = make_product(stock=10)
    for owner, rating in ((user, 4), (other_user, 1)):
        purchase(owner, product)
        catalog.add_or_update_review(owner, product.pk, rating)

    annotated = catalog.get_product(product.pk)
    assert annotated.review_count == 2
    assert annotated.average_rating == pytest.approx(2.5)
    assert len(catalog.get_product_reviews(product.pk)) == 2


def test_delete_review(user, make_product, purchase):
    product = make_product()
    purchase(user, product)
    catalog.add_or_update_review(user, product.pk, 4)

    catalog.delete_review(user, product.pk)

    with pytest.raises(ReviewNotFoundError):
        catalog.delete_review(user, product.pk)
    with pytest.raises(ReviewNotFoundError):
        catalog.get_user_review(user, product.pk)


def test_review_unknown_product(user):
    with pytest.raises(ProductNotFoundError):
        catalog.add_or_update_review(user, uuid.uuid4(), 4)


def test_products_for_seller(make_product, seller, admin_user):
    own = make_product(name="Own")
    other_seller = type(seller).objects.create_user(
        username="other@example.com", email="other@example.com", password="x", role="seller"
    )
    make_product(name="Theirs", seller=other_seller)

    assert [p.name for p in catalog.products_for_seller(seller)] == [own.name]
    # Only admins may look at another seller's listings.
    assert [p.name for p in catalog.products_for_seller(seller, other_seller.pk)] == [own.name]
    assert [p.name for p in catalog.products_for_seller(admin_user, other_seller.pk)] == ["Theirs"]
    assert catalog.products_for_seller(admin_user) == []
