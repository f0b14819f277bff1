from decimal import Decimal

import pytest
from django.test import Client

from store.models import Address, Cart, CartItem, Category, Product, User
from store.tokens import issue_access_token


@pytest.fixture(autouse=True)
def store_settings(settings):
    settings.ORDER_EMAILS_ASYNC = False
    settings.AUTO_MIGRATE = False
    settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
    settings.PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]
    settings.STORE_CURRENCY = "USD"


def _create_user(email, role=User.ROLE_CUSTOMER, **extra):
    return User.objects.create_user(
        username=email,
        email=email,
        password="pass12345",
        first_name=email.split("@")[0].title(),
        role=role,
        **extra
    )


@pytest.fixture
def user(db):
    return _create_user("alice@example.com")


@pytest.fixture
def other_user(db):
    return _create_user("bob@example.com")


@pytest.fixture
def seller(db):
    return _create_user("seller@example.com", role=User.ROLE_SELLER)


@pytest.fixture
def admin_user(db):
    return _create_user("admin@example.com", role=User.ROLE_ADMIN)


@pytest.fixture
def category(db):
    return Category.objects.create(name="Desk", slug="desk")


@pytest.fixture
def make_product(db, seller):
    def make(name="Widget", price="10.00", stock=5, track_stock=True, **extra):
        extra.setdefault("seller", seller)
        return Product.objects.create(
            name=name,
            price=Decimal(price),
            stock=stock,
            track_stock=track_stock,
            **extra
        )
    return make


@pytest.fixture
def fill_cart(db):
    def fill(owner, *lines):
        cart, _ = Cart.objects.get_or_create(user=owner)
        for product, quantity in lines:
            CartItem.objects.create(cart=cart, product=product, quantity=quantity)
        return cart
    return fill


@pytest.fixture
def contact():
    return {
        "first_name": "Alice",
        "last_name": "Liddell",
        "email": "alice@example.com",
        "phone": "555-0100",
    }


@pytest.fixture
def shipping():
    return {
        "street_address": "1 Rabbit Hole",
        "city": "Oxford",
        "state": "Oxfordshire",
        "zip": "OX1 1AA",
        "country": "UK",
    }


@pytest.fixture
def saved_address(user, contact, shipping):
    return Address.objects.create(user=user, is_default=True, **contact, **shipping)


@pytest.fixture
def client_for():
    """Returns a test client that authenticates as the given user."""
    def build(owner):
        return Client(headers={"Authorization": f"Bearer {issue_access_token(owner)}"})
    return build


@pytest.fixture
def api(client_for, user):
    return client_for(user)
