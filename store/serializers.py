"""
Plain-dict representations of the store models for JsonResponse.

Money is always rendered as a string so clients never see a float.
"""
from decimal import Decimal

from .store_utils import get_cart_count


def _money(value):
    return None if value is None else str(value)


def user_to_dict(user):
    return {
        'id': str(user.pk),
        'name': user.first_name,
        'email': user.email,
        'phone': user.phone,
        'role': user.role,
    }


def category_to_dict(category):
    return {
        'id': category.pk,
        'name': category.name,
        'slug': category.slug,
        'description': category.description,
    }


def image_to_dict(image):
    return {
        'id': image.pk,
        'url': image.image.url if image.image else None,
        'alt_text': image.alt_text,
    }


def product_to_dict(product):
    data = {
        'id': str(product.pk),
        'name': product.name,
        'description': product.description,
        'price': _money(product.price),
        'stock': product.stock,
        'track_stock': product.track_stock,
        'category_id': product.category_id,
        'seller_id': str(product.seller_id) if product.seller_id else None,
        'images': [image_to_dict(img) for img in product.images.all()],
        'created_at': product.created_at,
        'updated_at': product.updated_at,
    }
    if hasattr(product, 'average_rating'):
        avg = product.average_rating
        data['rating'] = {
            'average': None if avg is None else round(float(avg), 2),
            'count': product.review_count,
        }
    return data


def address_to_dict(address):
    return {
        'id': str(address.pk),
        'first_name': address.first_name,
        'last_name': address.last_name,
        'email': address.email,
        'phone': address.phone,
        'street_address': address.street_address,
        'city': address.city,
        'state': address.state,
        'zip': address.zip,
        'country': address.country,
        'is_default': address.is_default,
    }


def cart_to_dict(user, items):
    lines = []
    total = Decimal('0.00')
    for item in items:
        subtotal = item.product.price * item.quantity
        total += subtotal
        lines.append({
            'id': item.pk,
            'quantity': item.quantity,
            'subtotal': _money(subtotal),
            'product': product_to_dict(item.product),
        })
    return {
        'items': lines,
        'count': get_cart_count(user),
        'total': _money(total),
    }


def cart_item_to_dict(item):
    return {
        'id': item.pk,
        'product_id': str(item.product_id),
        'quantity': item.quantity,
    }


def wishlist_to_dict(items):
    return {
        'items': [
            {'id': item.pk, 'product': product_to_dict(item.product), 'added_at': item.created_at}
            for item in items
        ],
    }


def payment_to_dict(payment):
    return {
        'id': str(payment.pk),
        'order_id': str(payment.order_id),
        'processor_payment_id': payment.processor_payment_id,
        'method': payment.method,
        'amount': _money(payment.amount),
        'currency': payment.currency,
        'status': payment.status,
        'metadata': payment.metadata,
        'created_at': payment.created_at,
    }


def order_to_dict(order):
    return {
        'id': str(order.pk),
        'total_amount': _money(order.total_amount),
        'status': order.status,
        'created_at': order.created_at,
        'updated_at': order.updated_at,
        'contact': {
            'first_name': order.first_name,
            'last_name': order.last_name,
            'email': order.email,
            'phone': order.phone,
        },
        'shipping': {
            'street_address': order.street_address,
            'city': order.city,
            'state': order.state,
            'zip': order.zip,
            'country': order.country,
            'method': order.shipping_method,
            'cost': _money(order.shipping_cost),
        },
        'items': [
            {
                'id': str(item.pk),
                'product_id': str(item.product_id) if item.product_id else None,
                'product_name': item.product_name,
                'quantity': item.quantity,
                'price': _money(item.price),
                'subtotal': _money(item.subtotal),
            }
            for item in order.items.all()
        ],
        'payments': [payment_to_dict(p) for p in order.payments.all()],
    }


def review_to_dict(review):
    return {
        'id': str(review.pk),
        'user_id': str(review.user_id),
        'product_id': str(review.product_id),
        'rating': review.rating,
        'comment': review.comment,
        'created_at': review.created_at,
        'updated_at': review.updated_at,
    }
