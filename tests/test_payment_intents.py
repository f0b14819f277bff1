from unittest import mock

import pytest
import stripe

from store import payment_intents
from store.exceptions import PaymentProcessorError, PaymentsNotConfigured

pytestmark = pytest.mark.django_db


@pytest.fixture
def stripe_key(settings):
    settings.STRIPE_SECRET_KEY = "sk_test_123"
    settings.STRIPE_API_VERSION = "2024-06-20"


@pytest.fixture
def create_intent():
    with mock.patch.object(payment_intents.stripe.PaymentIntent, "create") as create:
        create.return_value = mock.Mock(id="pi_1", client_secret="pi_1_secret_abc")
        yield create


def test_creates_intent_with_automatic_methods(stripe_key, create_intent):
    assert payment_intents.create_payment_intent(2300, "usd") == "pi_1_secret_abc"

    create_intent.assert_called_once_with(
        api_key="sk_test_123",
        stripe_version="2024-06-20",
        amount=2300,
        currency="usd",
        automatic_payment_methods={"enabled": True},
    )


def test_processor_error_is_reported(stripe_key, create_intent):
    create_intent.side_effect = stripe.StripeError("Invalid currency: zzz")

    with pytest.raises(PaymentProcessorError, match="Invalid currency"):
        payment_intents.create_payment_intent(100, "zzz")


def test_missing_secret_key(settings, create_intent):
    settings.STRIPE_SECRET_KEY = ""

    with pytest.raises(PaymentsNotConfigured):
        payment_intents.create_payment_intent(100, "usd")
    create_intent.assert_not_called()


def test_create_payment_intent_endpoint(api, client, stripe_key, create_intent):
    response = api.post(
        "/api/payment/create-payment-intent",
        {"amount": 2300, "currency": "USD"},
        content_type="application/json",
    )

    assert response.status_code == 200
    assert response.json() == {"clientSecret": "pi_1_secret_abc"}
    assert create_intent.call_args.kwargs["currency"] == "usd"

    response = api.post("/api/payment/create-payment-intent", {"currency": "usd"}, content_type="application/json")
    assert response.status_code == 400
    assert "amount" in response.json()["fields"]

    response = client.post("/api/payment/create-payment-intent", {}, content_type="application/json")
    assert response.status_code == 401
