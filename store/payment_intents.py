"""Starts the client-side card flow by creating Stripe PaymentIntents."""
import logging

import stripe
from django.conf import settings

from .exceptions import PaymentProcessorError, PaymentsNotConfigured

logger = logging.getLogger(__name__)


def create_payment_intent(amount, currency):
    """
    Creates a PaymentIntent for ``amount`` (in the currency's smallest unit)
    and returns its client secret. The confirmed payment comes back later
    through ``checkout.record_payment`` or the checkout payload.
    """
    api_key = getattr(settings, "STRIPE_SECRET_KEY", "")
    if not api_key:
        raise PaymentsNotConfigured()

    try:
        intent = stripe.PaymentIntent.create(
            api_key=api_key,
            stripe_version=settings.STRIPE_API_VERSION,
            amount=amount,
            currency=currency,
            automatic_payment_methods={"enabled": True},
        )
    except stripe.StripeError as e:
        logger.warning("PaymentIntent for %s %s rejected: %s", amount, currency, e)
        raise PaymentProcessorError(e.user_message or str(e))

    logger.info("PaymentIntent %s created for %s %s", intent.id, amount, currency)
    return intent.client_secret
