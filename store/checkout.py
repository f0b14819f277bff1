"""
Order placement, cancellation and payment recording.

Every mutating operation here runs inside a single ``transaction.atomic``
block: either all of its writes (stock, address, order, order items,
payment, cart) commit together or none of them do.

Stock is guarded twice. Product rows are locked with ``select_for_update``
(in primary-key order, so two checkouts touching the same products cannot
deadlock), and each decrement is a conditional ``UPDATE ... WHERE stock >= q``
whose affected-row count is checked.
"""
import logging
import uuid
from collections import namedtuple
from dataclasses import dataclass, field
from decimal import Decimal
from functools import partial
from typing import Optional, Union

from django.db import transaction
from django.db.models import F

from . import notifications
from .exceptions import (
    AddressNotFoundError,
    AlreadyCancelledError,
    AlreadyCompletedError,
    CartEmptyError,
    InsufficientStockError,
    InvalidPayload,
    MissingShippingInfoError,
    OrderNotFoundError,
    ProductNotFoundError,
)
from .models import Address, Cart, Order, OrderItem, Payment, Product
from .store_utils import CENTS

logger = logging.getLogger(__name__)

SNAPSHOT_FIELDS = (
    'first_name', 'last_name', 'email', 'phone',
    'street_address', 'city', 'state', 'zip', 'country',
)


# -------------------------------
# Checkout inputs / outputs
# -------------------------------
@dataclass(frozen=True)
class AddressByReference:
    address_id: uuid.UUID


@dataclass(frozen=True)
class InlineAddress:
    contact: dict
    shipping: dict


AddressChoice = Union[AddressByReference, InlineAddress]


@dataclass(frozen=True)
class PaymentConfirmation:
    """A payment already confirmed by the processor; it is only persisted here."""
    processor_payment_id: str
    method: str
    amount: Decimal
    currency: str
    status: str
    metadata: Optional[dict] = None

    @property
    def succeeded(self):
        return self.status == Payment.STATUS_SUCCEEDED


@dataclass(frozen=True)
class OrderOptions:
    address: Optional[AddressChoice] = None
    shipping_method: str = 'standard'
    shipping_cost: Decimal = Decimal('0.00')
    payment: Optional[PaymentConfirmation] = None


@dataclass(frozen=True)
class OrderResult:
    order_id: uuid.UUID
    total_amount: Decimal
    status: str = field(default=Order.STATUS_PENDING)

    def as_dict(self):
        return {
            'order_id': str(self.order_id),
            'total_amount': str(self.total_amount),
            'status': self.status,
        }


Line = namedtuple('Line', ['product', 'quantity'])


# -------------------------------
# Building blocks
# -------------------------------
def _lock_products(product_ids):
    products = (
        Product.objects.select_for_update()
        .filter(pk__in=product_ids)
        .order_by('pk')
    )
    return {p.pk: p for p in products}


def _check_stock(lines):
    for line in lines:
        if not line.product.has_stock_for(line.quantity):
            raise InsufficientStockError(line.product.name)


def _order_total(lines, shipping_cost):
    subtotal = sum((line.product.price * line.quantity for line in lines), Decimal('0.00'))
    return (subtotal + shipping_cost).quantize(CENTS)


def resolve_address(user, choice):
    """Turns an AddressChoice into a saved Address row owned by ``user``."""
    if isinstance(choice, AddressByReference):
        try:
            return Address.objects.get(pk=choice.address_id, user=user)
        except Address.DoesNotExist:
            raise AddressNotFoundError()
    if isinstance(choice, InlineAddress):
        return Address.objects.create(user=user, **choice.contact, **choice.shipping)
    raise MissingShippingInfoError()


def _take_stock(product, quantity):
    if not product.track_stock:
        return
    updated = (
        Product.objects
        .filter(pk=product.pk, stock__gte=quantity)
        .update(stock=F('stock') - quantity)
    )
    if not updated:
        raise InsufficientStockError(product.name)


def _record_payment(order, confirmation):
    return Payment.objects.create(
        order=order,
        processor_payment_id=confirmation.processor_payment_id,
        method=confirmation.method,
        amount=confirmation.amount,
        currency=confirmation.currency,
        status=confirmation.status,
        metadata=confirmation.metadata,
    )


def _write_order(user, lines, options):
    _check_stock(lines)
    total = _order_total(lines, options.shipping_cost)
    address = resolve_address(user, options.address)

    for line in lines:
        _take_stock(line.product, line.quantity)

    paid = options.payment is not None and options.payment.succeeded
    order = Order.objects.create(
        user=user,
        total_amount=total,
        status=Order.STATUS_PAID if paid else Order.STATUS_PENDING,
        shipping_method=options.shipping_method,
        shipping_cost=options.shipping_cost,
        **{name: getattr(address, name) for name in SNAPSHOT_FIELDS}
    )
    OrderItem.objects.bulk_create([
        OrderItem(
            order=order,
            product=line.product,
            product_name=line.product.name,
            quantity=line.quantity,
            price=line.product.price,
        )
        for line in lines
    ])

    if options.payment is not None:
        _record_payment(order, options.payment)

    transaction.on_commit(partial(notifications.send_order_confirmation, order.pk))
    return order


# -------------------------------
# Operations
# -------------------------------
@transaction.atomic
def place_order(user, options):
    """Converts the user's cart into an order."""
    # Cart writers take the same row lock, so the lines read here stay put.
    cart = Cart.objects.select_for_update().filter(user=user).first()
    if cart is None:
        raise CartEmptyError()

    cart_lines = list(cart.items.values_list('pk', 'product_id', 'quantity'))
    if not cart_lines:
        raise CartEmptyError()

    products = _lock_products([product_id for _, product_id, _ in cart_lines])
    lines = []
    for _, product_id, quantity in cart_lines:
        product = products.get(product_id)
        if product is None:
            raise ProductNotFoundError(f"Product {product_id} not found")
        lines.append(Line(product, quantity))

    order = _write_order(user, lines, options)
    cart.items.filter(pk__in=[pk for pk, _, _ in cart_lines]).delete()

    logger.info("Order %s placed by user %s for %s", order.pk, user.pk, order.total_amount)
    return OrderResult(order.pk, order.total_amount, order.status)


@transaction.atomic
def buy_now(user, product_id, quantity, options):
    """Orders a single product directly, leaving the cart alone."""
    if quantity < 1:
        raise InvalidPayload("Quantity must be at least 1")

    product = _lock_products([product_id]).get(product_id)
    if product is None:
        raise ProductNotFoundError()

    order = _write_order(user, [Line(product, quantity)], options)

    logger.info("Buy-now order %s placed by user %s for %s", order.pk, user.pk, order.total_amount)
    return OrderResult(order.pk, order.total_amount, order.status)


@transaction.atomic
def cancel_order(user, order_id):
    order = Order.objects.select_for_update().filter(pk=order_id, user=user).first()
    if order is None:
        raise OrderNotFoundError()
    if order.status == Order.STATUS_CANCELLED:
        raise AlreadyCancelledError()
    if order.status in Order.COMPLETED_STATUSES:
        raise AlreadyCompletedError()

    for item in order.items.exclude(product__isnull=True).order_by('product_id'):
        # Deleted or untracked products have no stock to restore.
        Product.objects.filter(pk=item.product_id, track_stock=True).update(
            stock=F('stock') + item.quantity
        )

    order.status = Order.STATUS_CANCELLED
    order.save(update_fields=['status', 'updated_at'])

    logger.info("Order %s cancelled by user %s", order.pk, user.pk)
    return order


def list_orders(user):
    return list(
        Order.objects.filter(user=user).prefetch_related('items', 'payments')
    )


def get_order(user, order_id):
    order = (
        Order.objects.filter(pk=order_id, user=user)
        .prefetch_related('items', 'payments')
        .first()
    )
    if order is None:
        raise OrderNotFoundError()
    return order


@transaction.atomic
def record_payment(user, order_id, confirmation):
    """
    Stores a processor-confirmed payment. A succeeded payment settles a
    pending order.
    """
    order = Order.objects.select_for_update().filter(pk=order_id, user=user).first()
    if order is None:
        raise OrderNotFoundError()

    payment = _record_payment(order, confirmation)
    if confirmation.succeeded and order.status == Order.STATUS_PENDING:
        order.status = Order.STATUS_PAID
        order.save(update_fields=['status', 'updated_at'])

    logger.info(
        "Payment %s (%s %s, %s) recorded for order %s",
        payment.processor_payment_id, payment.amount, payment.currency, payment.status, order.pk,
    )
    return payment


def payments_for_order(user, order_id):
    order = Order.objects.filter(pk=order_id, user=user).first()
    if order is None:
        raise OrderNotFoundError()
    return list(order.payments.all())
