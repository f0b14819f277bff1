import json
import uuid

import pytest
from django.test import Client

from store.models import Address, Category, Order, Product
from store.tokens import issue_access_token

pytestmark = pytest.mark.django_db


def post(client, path, data=None):
    return client.post(path, json.dumps(data or {}), content_type="application/json")


def put(client, path, data):
    return client.put(path, json.dumps(data), content_type="application/json")


# -------------------------------
# Health & auth
# -------------------------------
def test_health(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_register_login_me(client):
    response = post(client, "/api/auth/register", {
        "name": "Dora", "email": "Dora@Example.com", "password": "long-enough",
    })
    assert response.status_code == 201
    assert response.json()["user"]["email"] == "dora@example.com"

    response = post(client, "/api/auth/login", {"email": "dora@example.com", "password": "long-enough"})
    assert response.status_code == 200
    body = response.json()
    assert body["access_token"] and body["refresh_token"]
    assert response.cookies["access_token"].value == body["access_token"]

    me = Client(headers={"Authorization": f"Bearer {body['access_token']}"}).get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["user"]["name"] == "Dora"

    response = post(client, "/api/auth/refresh-token", {"refresh_token": body["refresh_token"]})
    assert response.status_code == 200
    assert response.json()["user"]["email"] == "dora@example.com"


def test_register_validation_and_conflict(client, user):
    response = post(client, "/api/auth/register", {"name": "X", "email": "not-an-email", "password": "short"})
    assert response.status_code == 400
    assert set(response.json()["fields"]) == {"email", "password"}

    response = post(client, "/api/auth/register", {
        "name": "Alice", "email": "alice@example.com", "password": "long-enough",
    })
    assert response.status_code == 409
    assert response.json() == {"error": "Email already registered"}


def test_login_bad_credentials(client, user):
    response = post(client, "/api/auth/login", {"email": "alice@example.com", "password": "nope-nope"})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid credentials"}


def test_authentication_errors(client, user):
    assert client.get("/api/auth/me").json() == {"error": "Missing token"}
    assert client.get("/api/auth/me").status_code == 401

    bad = Client(headers={"Authorization": "Bearer not-a-token"}).get("/api/auth/me")
    assert bad.status_code == 401
    assert bad.json() == {"error": "Invalid token"}


def test_cookie_authentication(client, user):
    client.cookies["access_token"] = issue_access_token(user)
    assert client.get("/api/auth/me").json()["user"]["email"] == "alice@example.com"


def test_invalid_json_body(api):
    response = api.post("/api/cart/add", "{not json", content_type="application/json")
    assert response.status_code == 400
    assert response.json() == {"error": "Request body is not valid JSON"}


# -------------------------------
# Addresses
# -------------------------------
def test_address_endpoints(api, contact, shipping):
    response = post(api, "/api/address/", {**contact, **shipping, "is_default": True})
    assert response.status_code == 201
    address_id = response.json()["id"]

    assert api.get("/api/address/default").json()["address"]["id"] == address_id

    response = put(api, f"/api/address/{address_id}", {**contact, **shipping, "city": "Bath"})
    assert response.json()["city"] == "Bath"

    assert api.delete(f"/api/address/{address_id}").json() == {"deleted": True}
    assert api.get("/api/address/").json() == []
    assert api.delete(f"/api/address/{address_id}").status_code == 404


# -------------------------------
# Cart & wishlist
# -------------------------------
def test_cart_endpoints(api, make_product):
    product = make_product(name="Widget", price="10.00", stock=5)

    response = post(api, "/api/cart/add", {"product_id": str(product.pk), "quantity": 2})
    assert response.status_code == 201

    cart = api.get("/api/cart/").json()
    assert cart["count"] == 2
    assert cart["total"] == "20.00"

    response = post(api, "/api/cart/add", {"product_id": str(product.pk), "quantity": 4})
    assert response.status_code == 400
    assert response.json() == {"error": "Cannot add 4 items. Only 3 more in stock."}

    assert post(api, "/api/cart/reduce", {"product_id": str(product.pk), "quantity": 5}).json() == {"removed": True}
    assert api.delete(f"/api/cart/remove/{product.pk}").status_code == 404


def test_wishlist_endpoints(api, make_product):
    product = make_product()

    assert post(api, "/api/wishlist/add", {"product_id": str(product.pk)}).status_code == 201
    assert post(api, "/api/wishlist/add", {"product_id": str(product.pk)}).status_code == 400
    assert len(api.get("/api/wishlist/").json()["items"]) == 1
    assert api.delete("/api/wishlist/clear").json() == {"deleted": 1}


# -------------------------------
# Catalog
# -------------------------------
def test_category_admin_only(client_for, user, admin_user):
    response = post(client_for(user), "/api/categories/", {"name": "Home Office"})
    assert response.status_code == 403

    response = post(client_for(admin_user), "/api/categories/", {"name": "Home Office"})
    assert response.status_code == 201
    assert response.json()["slug"] == "home-office"

    category_id = response.json()["id"]
    response = put(client_for(admin_user), f"/api/categories/{category_id}", {"description": "Desks and chairs"})
    assert response.json()["name"] == "Home Office"
    assert response.json()["description"] == "Desks and chairs"
    assert Client().get("/api/categories/").json()[0]["slug"] == "home-office"


def test_product_crud(client_for, seller, user, category):
    seller_api = client_for(seller)

    response = post(seller_api, "/api/products/", {
        "name": "Lamp", "price": "19.99", "stock": 4, "category": category.pk,
    })
    assert response.status_code == 201
    body = response.json()
    assert body["price"] == "19.99"
    assert body["seller_id"] == str(seller.pk)
    assert body["rating"] == {"average": None, "count": 0}

    product_id = body["id"]
    assert post(client_for(user), "/api/products/", {"name": "Nope", "price": "1.00"}).status_code == 403

    response = put(seller_api, f"/api/products/{product_id}", {"price": "17.50"})
    assert response.status_code == 200
    assert response.json()["price"] == "17.50"
    assert response.json()["stock"] == 4
    assert response.json()["track_stock"] is True

    assert Client().get(f"/api/products/{product_id}").json()["name"] == "Lamp"
    assert seller_api.delete(f"/api/products/{product_id}").json() == {"deleted": True}
    assert Client().get(f"/api/products/{product_id}").status_code == 404


def test_search_endpoint(client, make_product):
    make_product(name="Desk lamp", price="25.00")
    make_product(name="Chair", price="45.00")

    response = client.get("/api/search/", {"keyword": "lamp", "max_price": "30"})
    assert [p["name"] for p in response.json()] == ["Desk lamp"]

    assert client.get("/api/search/", {"min_price": "cheap"}).status_code == 400


# -------------------------------
# Orders
# -------------------------------
def test_place_order_endpoint(api, user, make_product, fill_cart, contact, shipping):
    product = make_product(name="A", price="10.00", stock=5)
    fill_cart(user, (product, 2))

    response = post(api, "/api/order/place", {
        "contact": contact, "shipping": shipping, "shipping_cost": "3.00",
    })

    assert response.status_code == 201
    body = response.json()
    assert body["total_amount"] == "23.00"
    assert body["status"] == "pending"

    detail = api.get(f"/api/order/{body['order_id']}").json()
    assert detail["shipping"]["cost"] == "3.00"
    assert detail["shipping"]["city"] == "Oxford"
    assert detail["items"][0]["price"] == "10.00"
    assert [o["id"] for o in api.get("/api/order/").json()] == [body["order_id"]]
    assert Product.objects.get(pk=product.pk).stock == 3


def test_place_order_with_saved_address_and_payment(api, user, make_product, fill_cart, saved_address):
    fill_cart(user, (make_product(price="12.00"), 1))

    response = post(api, "/api/order/place", {
        "address_id": str(saved_address.pk),
        "shipping_method": "overnight",
        "payment": {
            "processor_payment_id": "pi_42", "method": "card", "amount": "12.00",
            "currency": "USD", "status": "succeeded",
        },
    })

    assert response.status_code == 201
    assert response.json()["status"] == "paid"
    order = Order.objects.get(pk=response.json()["order_id"])
    assert order.shipping_method == "overnight"
    assert order.payments.get().currency == "usd"


def test_checkout_errors(api, user, make_product, fill_cart, contact, shipping):
    response = post(api, "/api/order/place", {"contact": contact, "shipping": shipping})
    assert response.status_code == 400
    assert response.json() == {"error": "Cart is empty"}

    product = make_product(name="B", price="50.00", stock=1)
    response = post(api, "/api/order/buy-now", {
        "product_id": str(product.pk), "quantity": 2, "contact": contact, "shipping": shipping,
    })
    assert response.status_code == 400
    assert response.json() == {"error": "Insufficient stock for B"}
    assert Product.objects.get(pk=product.pk).stock == 1

    fill_cart(user, (product, 1))
    response = post(api, "/api/order/place", {"contact": contact})
    assert response.status_code == 400
    assert "address_id" in response.json()["error"]

    response = post(api, "/api/order/place", {"address_id": str(uuid.uuid4())})
    assert response.status_code == 404
    assert Order.objects.count() == 0
    assert Address.objects.count() == 0


def test_cancel_endpoint(api, client_for, other_user, make_product, contact, shipping):
    product = make_product(stock=2)
    response = post(api, "/api/order/buy-now", {
        "product_id": str(product.pk), "contact": contact, "shipping": shipping,
    })
    order_id = response.json()["order_id"]

    assert post(client_for(other_user), f"/api/order/cancel/{order_id}").status_code == 404

    response = post(api, f"/api/order/cancel/{order_id}")
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert Product.objects.get(pk=product.pk).stock == 2

    response = post(api, f"/api/order/cancel/{order_id}")
    assert response.status_code == 400
    assert response.json() == {"error": "Order already cancelled"}


def test_payment_endpoints(api, make_product, contact, shipping):
    product = make_product(price="10.00")
    order_id = post(api, "/api/order/buy-now", {
        "product_id": str(product.pk), "contact": contact, "shipping": shipping,
    }).json()["order_id"]

    response = post(api, "/api/payment/", {
        "order_id": order_id, "processor_payment_id": "pi_7", "method": "card",
        "amount": "10.00", "currency": "eur", "status": "succeeded", "metadata": {"attempt": 1},
    })
    assert response.status_code == 201
    assert response.json()["payment"]["amount"] == "10.00"

    payments = api.get(f"/api/payment/order/{order_id}").json()["payments"]
    assert [p["processor_payment_id"] for p in payments] == ["pi_7"]
    assert Order.objects.get(pk=order_id).status == "paid"


def test_review_endpoints(api, client, make_product, contact, shipping):
    product = make_product()
    response = post(api, "/api/review/", {"product_id": str(product.pk), "rating": 5})
    assert response.status_code == 400

    post(api, "/api/order/buy-now", {"product_id": str(product.pk), "contact": contact, "shipping": shipping})
    response = post(api, "/api/review/", {"product_id": str(product.pk), "rating": 5, "comment": "Solid"})
    assert response.status_code == 201

    assert len(client.get(f"/api/review/product/{product.pk}").json()) == 1
    assert api.get(f"/api/review/product/{product.pk}/user").json()["comment"] == "Solid"
    assert post(api, "/api/review/", {"product_id": str(product.pk), "rating": 9}).status_code == 400


def test_refresh_from_login_cookie(client, user):
    response = post(client, "/api/auth/login", {"email": "alice@example.com", "password": "pass12345"})
    assert response.cookies["refresh_token"]["httponly"]
    assert response.cookies["refresh_token"].value == response.json()["refresh_token"]

    response = post(client, "/api/auth/refresh-token")
    assert response.status_code == 200
    assert response.json()["user"]["email"] == "alice@example.com"


def test_partial_address_update_keeps_default(api, saved_address):
    response = put(api, f"/api/address/{saved_address.pk}", {"city": "Bath"})

    assert response.status_code == 200
    assert response.json()["city"] == "Bath"
    assert response.json()["is_default"] is True
    assert response.json()["street_address"] == "1 Rabbit Hole"


def test_my_products(client_for, user, seller, admin_user, make_product):
    make_product(name="Lamp")

    assert [p["name"] for p in client_for(seller).get("/api/products/mine").json()] == ["Lamp"]
    assert client_for(admin_user).get("/api/products/mine").json() == []
    response = client_for(admin_user).get("/api/products/mine", {"seller_id": str(seller.pk)})
    assert [p["name"] for p in response.json()] == ["Lamp"]
    assert client_for(user).get("/api/products/mine").status_code == 403
