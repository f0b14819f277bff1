import logging
import threading

from anymail.message import AnymailMessage
from django.conf import settings
from django.template.loader import render_to_string

from .models import Order

logger = logging.getLogger(__name__)


def _send_order_confirmation(order_id):
    try:
        o = Order.objects.prefetch_related('items').get(pk=order_id)
        if not o.email:
            return

        ctx = {
            "order": o,
            "name": o.first_name or "Customer",
            "currency": settings.STORE_CURRENCY,
            "site_url": settings.SITE_URL,
        }

        plain = render_to_string("store/emails/order_confirmation.txt", ctx)
        html = render_to_string("store/emails/order_confirmation.html", ctx)

        msg = AnymailMessage(
            subject=f"Order confirmation #{o.pk}",
            body=plain,
            from_email=settings.DEFAULT_FROM_EMAIL,
            to=[o.email],
        )
        msg.tags = ["order-confirmation"]
        msg.metadata = {"order_id": str(o.pk)}
        msg.attach_alternative(html, "text/html")
        msg.send()
        logger.info("Order confirmation sent for order %s", order_id)

    except Exception:
        logger.exception("Order confirmation send failed for order %s", order_id)


def send_order_confirmation(order_id):
    """
    Emails the customer once the order has been committed. Runs on a daemon
    thread unless ORDER_EMAILS_ASYNC is off.
    """
    if not getattr(settings, "ORDER_EMAILS_ASYNC", True):
        _send_order_confirmation(order_id)
        return
    try:
        threading.Thread(target=_send_order_confirmation, args=(order_id,), daemon=True).start()
        logger.info("Started customer confirmation thread for order %s", order_id)
    except Exception:
        logger.exception("Failed to start customer confirmation thread for order %s", order_id)
