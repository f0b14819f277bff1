import logging

from django.conf import settings
from django.forms.models import model_to_dict
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from . import accounts, cart, catalog, checkout, payment_intents
from .checkout import AddressByReference, InlineAddress, OrderOptions, PaymentConfirmation
from .decorators import login_required_json, role_required
from .exceptions import InvalidPayload, ProductNotFoundError
from .forms import (
    AddressForm, BuyNowForm, CartItemForm, CategoryForm, ContactForm, LoginForm,
    OrderOptionsForm, PaymentForm, PaymentIntentForm, ProductForm, ProductImageForm,
    RecordPaymentForm, RefreshForm, RegisterForm, ReviewForm, SearchForm,
    SellerProductsForm, ShippingForm, WishlistItemForm, validate, validate_instance,
)
from .models import Category, Product, User
from .serializers import (
    address_to_dict, cart_item_to_dict, cart_to_dict, category_to_dict, order_to_dict,
    payment_to_dict, product_to_dict, review_to_dict, user_to_dict, wishlist_to_dict,
)
from .store_utils import parse_json_body

logger = logging.getLogger(__name__)

SELLER_ROLES = (User.ROLE_SELLER, User.ROLE_ADMIN)


@require_GET
def health(request):
    return JsonResponse({"status": "ok", "service": "storefront"})


# -------------------------------
# AUTH
# -------------------------------
def _token_response(user, tokens):
    response = JsonResponse({"user": user_to_dict(user), **tokens})
    response.set_cookie(
        'access_token', tokens['access_token'],
        max_age=settings.ACCESS_TOKEN_MAX_AGE, httponly=True, samesite='Lax',
    )
    response.set_cookie(
        'refresh_token', tokens['refresh_token'],
        max_age=settings.REFRESH_TOKEN_MAX_AGE, path='/api/auth/', httponly=True, samesite='Lax',
    )
    return response


@require_POST
def register(request):
    data = validate(RegisterForm, parse_json_body(request))
    user = accounts.register_user(data['name'], data['email'], data['password'], data['phone'])
    return JsonResponse({"user": user_to_dict(user)}, status=201)


@require_POST
def login(request):
    data = validate(LoginForm, parse_json_body(request))
    user, tokens = accounts.login_user(data['email'], data['password'])
    return _token_response(user, tokens)


@require_POST
def refresh_token(request):
    body = parse_json_body(request)
    if 'refresh_token' not in body and request.COOKIES.get('refresh_token'):
        body['refresh_token'] = request.COOKIES['refresh_token']
    data = validate(RefreshForm, body)
    user, tokens = accounts.refresh_tokens(data['refresh_token'])
    return _token_response(user, tokens)


@require_GET
@login_required_json
def me(request):
    return JsonResponse({"user": user_to_dict(request.user)})


# -------------------------------
# ADDRESSES
# -------------------------------
@require_http_methods(["GET", "POST"])
@login_required_json
def addresses(request):
    if request.method == 'POST':
        address = validate_instance(AddressForm, parse_json_body(request))
        address = accounts.add_address(request.user, address)
        return JsonResponse(address_to_dict(address), status=201)

    items = accounts.get_addresses(request.user)
    return JsonResponse([address_to_dict(a) for a in items], safe=False)


@require_GET
@login_required_json
def default_address(request):
    address = accounts.get_default_address(request.user)
    return JsonResponse({"address": address_to_dict(address) if address else None})


@require_http_methods(["PUT", "DELETE"])
@login_required_json
def address_detail(request, address_id):
    if request.method == 'DELETE':
        accounts.delete_address(request.user, address_id)
        return JsonResponse({"deleted": True})

    address = accounts.get_address(request.user, address_id)
    body = parse_json_body(request)
    data = validate(AddressForm, {**model_to_dict(address, fields=AddressForm._meta.fields), **body})
    address = accounts.update_address(request.user, address_id, data)
    return JsonResponse(address_to_dict(address))


# -------------------------------
# CART
# -------------------------------
@require_GET
@login_required_json
def cart_view(request):
    items = cart.get_cart_items(request.user)
    return JsonResponse(cart_to_dict(request.user, items))


@require_POST
@login_required_json
def cart_add(request):
    data = validate(CartItemForm, parse_json_body(request))
    item = cart.add_to_cart(request.user, data['product_id'], data['quantity'])
    return JsonResponse(cart_item_to_dict(item), status=201)


@require_POST
@login_required_json
def cart_reduce(request):
    data = validate(CartItemForm, parse_json_body(request))
    item = cart.reduce_cart_item(request.user, data['product_id'], data['quantity'])
    if item is None:
        return JsonResponse({"removed": True})
    return JsonResponse(cart_item_to_dict(item))


@require_http_methods(["DELETE"])
@login_required_json
def cart_remove(request, product_id):
    cart.remove_from_cart(request.user, product_id)
    return JsonResponse({"removed": True})


@require_http_methods(["DELETE"])
@login_required_json
def cart_clear(request):
    deleted = cart.clear_cart(request.user)
    return JsonResponse({"deleted": deleted})


# -------------------------------
# WISHLIST
# -------------------------------
@require_GET
@login_required_json
def wishlist_view(request):
    return JsonResponse(wishlist_to_dict(cart.get_wishlist_items(request.user)))


@require_POST
@login_required_json
def wishlist_add(request):
    data = validate(WishlistItemForm, parse_json_body(request))
    item = cart.add_to_wishlist(request.user, data['product_id'])
    return JsonResponse({"id": item.pk, "product_id": str(item.product_id)}, status=201)


@require_http_methods(["DELETE"])
@login_required_json
def wishlist_remove(request, product_id):
    cart.remove_from_wishlist(request.user, product_id)
    return JsonResponse({"removed": True})


@require_http_methods(["DELETE"])
@login_required_json
def wishlist_clear(request):
    deleted = cart.clear_wishlist(request.user)
    return JsonResponse({"deleted": deleted})


# -------------------------------
# CATEGORIES
# -------------------------------
@require_http_methods(["GET", "POST"])
def categories(request):
    if request.method == 'POST':
        return _create_category(request)
    items = Category.objects.all()
    return JsonResponse([category_to_dict(c) for c in items], safe=False)


@role_required(User.ROLE_ADMIN)
def _create_category(request):
    category = validate_instance(CategoryForm, parse_json_body(request))
    category.save()
    return JsonResponse(category_to_dict(category), status=201)


@require_http_methods(["GET", "PUT", "DELETE"])
def category_detail(request, category_id):
    if request.method == 'PUT':
        return _update_category(request, category_id)
    if request.method == 'DELETE':
        return _delete_category(request, category_id)
    return JsonResponse(category_to_dict(catalog.get_category(category_id)))


@role_required(User.ROLE_ADMIN)
def _update_category(request, category_id):
    category = catalog.get_category(category_id)
    data = {**model_to_dict(category, fields=['name', 'slug', 'description']), **parse_json_body(request)}
    category = validate_instance(CategoryForm, data, instance=category)
    category.save()
    return JsonResponse(category_to_dict(category))


@role_required(User.ROLE_ADMIN)
def _delete_category(request, category_id):
    catalog.delete_category(category_id)
    return JsonResponse({"deleted": True})


# -------------------------------
# PRODUCTS
# -------------------------------
def _image_payload(data):
    images = data.get('images')
    if images is None:
        return None
    if not isinstance(images, list):
        raise InvalidPayload("images must be a list")
    return [validate(ProductImageForm, img if isinstance(img, dict) else {}) for img in images]


@require_http_methods(["GET", "POST"])
def products(request):
    if request.method == 'POST':
        return _create_product(request)
    items = catalog.products_with_ratings()
    return JsonResponse([product_to_dict(p) for p in items], safe=False)


@role_required(*SELLER_ROLES)
def _create_product(request):
    data = parse_json_body(request)
    product = validate_instance(ProductForm, data)
    product = catalog.create_product(request.user, product, _image_payload(data) or ())
    return JsonResponse(product_to_dict(catalog.get_product(product.pk)), status=201)


@require_GET
@role_required(*SELLER_ROLES)
def my_products(request):
    filters = validate(SellerProductsForm, request.GET)
    items = catalog.products_for_seller(request.user, filters['seller_id'])
    return JsonResponse([product_to_dict(p) for p in items], safe=False)


@require_http_methods(["GET", "PUT", "DELETE"])
def product_detail(request, product_id):
    if request.method == 'PUT':
        return _update_product(request, product_id)
    if request.method == 'DELETE':
        return _delete_product(request, product_id)
    return JsonResponse(product_to_dict(catalog.get_product(product_id)))


def _managed_product(request, product_id):
    product = Product.objects.filter(pk=product_id).first()
    if product is None:
        raise ProductNotFoundError()
    catalog.check_can_manage(request.user, product)
    return product


@role_required(*SELLER_ROLES)
def _update_product(request, product_id):
    product = _managed_product(request, product_id)
    body = parse_json_body(request)
    data = {**model_to_dict(product, fields=ProductForm._meta.fields), **body}
    product = validate_instance(ProductForm, data, instance=product)
    product.save()
    images = _image_payload(body)
    if images is not None:
        catalog.replace_images(product, images)
    return JsonResponse(product_to_dict(catalog.get_product(product.pk)))


@role_required(*SELLER_ROLES)
def _delete_product(request, product_id):
    catalog.delete_product(request.user, product_id)
    return JsonResponse({"deleted": True})


@require_http_methods(["PUT"])
@role_required(*SELLER_ROLES)
def product_images(request, product_id):
    product = _managed_product(request, product_id)
    images = _image_payload(parse_json_body(request)) or []
    catalog.replace_images(product, images)
    return JsonResponse(product_to_dict(catalog.get_product(product.pk)))


# -------------------------------
# SEARCH
# -------------------------------
@require_GET
def search(request):
    filters = validate(SearchForm, request.GET)
    results = catalog.search_products(**filters)
    return JsonResponse([product_to_dict(p) for p in results], safe=False)


# -------------------------------
# REVIEWS
# -------------------------------
@require_POST
@login_required_json
def reviews(request):
    data = validate(ReviewForm, parse_json_body(request))
    review = catalog.add_or_update_review(
        request.user, data['product_id'], data['rating'], data['comment']
    )
    return JsonResponse(review_to_dict(review), status=201)


@require_GET
def product_reviews(request, product_id):
    items = catalog.get_product_reviews(product_id)
    return JsonResponse([review_to_dict(r) for r in items], safe=False)


@require_http_methods(["GET", "DELETE"])
@login_required_json
def user_review(request, product_id):
    if request.method == 'DELETE':
        catalog.delete_review(request.user, product_id)
        return JsonResponse({"deleted": True})
    return JsonResponse(review_to_dict(catalog.get_user_review(request.user, product_id)))


# -------------------------------
# ORDERS
# -------------------------------
def _order_options(data):
    """
    Builds OrderOptions from a checkout payload: either ``address_id`` or
    both ``contact`` and ``shipping``, plus shipping method/cost and an
    optional ``payment`` confirmation.
    """
    opts = validate(OrderOptionsForm, data)

    contact, shipping = data.get('contact'), data.get('shipping')
    if opts['address_id']:
        address = AddressByReference(opts['address_id'])
    elif contact and shipping:
        if not isinstance(contact, dict) or not isinstance(shipping, dict):
            raise InvalidPayload("contact and shipping must be objects")
        address = InlineAddress(
            contact=validate(ContactForm, contact),
            shipping=validate(ShippingForm, shipping),
        )
    else:
        address = None

    payment = None
    if data.get('payment'):
        if not isinstance(data['payment'], dict):
            raise InvalidPayload("payment must be an object")
        payment = PaymentConfirmation(**validate(PaymentForm, data['payment']))

    return OrderOptions(
        address=address,
        shipping_method=opts['shipping_method'],
        shipping_cost=opts['shipping_cost'],
        payment=payment,
    )


@require_GET
@login_required_json
def orders(request):
    items = checkout.list_orders(request.user)
    return JsonResponse([order_to_dict(o) for o in items], safe=False)


@require_GET
@login_required_json
def order_detail(request, order_id):
    return JsonResponse(order_to_dict(checkout.get_order(request.user, order_id)))


@require_POST
@login_required_json
def place_order(request):
    options = _order_options(parse_json_body(request))
    result = checkout.place_order(request.user, options)
    return JsonResponse(result.as_dict(), status=201)


@require_POST
@login_required_json
def buy_now(request):
    data = parse_json_body(request)
    item = validate(BuyNowForm, data)
    result = checkout.buy_now(request.user, item['product_id'], item['quantity'], _order_options(data))
    return JsonResponse(result.as_dict(), status=201)


@require_POST
@login_required_json
def cancel_order(request, order_id):
    order = checkout.cancel_order(request.user, order_id)
    return JsonResponse(order_to_dict(order))


# -------------------------------
# PAYMENTS
# -------------------------------
@require_POST
@login_required_json
def payments(request):
    data = validate(RecordPaymentForm, parse_json_body(request))
    order_id = data.pop('order_id')
    payment = checkout.record_payment(request.user, order_id, PaymentConfirmation(**data))
    return JsonResponse({"payment": payment_to_dict(payment)}, status=201)


@require_GET
@login_required_json
def order_payments(request, order_id):
    items = checkout.payments_for_order(request.user, order_id)
    return JsonResponse({"payments": [payment_to_dict(p) for p in items]})


@require_POST
@login_required_json
def create_payment_intent(request):
    data = validate(PaymentIntentForm, parse_json_body(request))
    client_secret = payment_intents.create_payment_intent(data['amount'], data['currency'])
    return JsonResponse({"clientSecret": client_secret})
