import pytest
import stripe

from errors import UpstreamFailure
from gateway import StripeGateway

API_KEY = "sk_test_123"


def _intent(**overrides):
    values = {
        "id": "pi_abc",
        "object": "payment_intent",
        "status": "requires_payment_method",
        "amount": 1500,
        "currency": "usd",
        "client_secret": "pi_abc_secret_xyz",
    }
    values.update(overrides)
    return stripe.PaymentIntent.construct_from(values, API_KEY)


def _raise_stripe_error(*args, **kwargs):
    raise stripe.StripeError("boom")


def test_create_intent_returns_snapshot(monkeypatch):
    calls = []

    def fake_create(**kwargs):
        calls.append(kwargs)
        return _intent()

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)
    snapshot = StripeGateway(API_KEY).create_intent(
        1500, "usd", "Policy payment", {"applicationId": "app1"}
    )

    assert snapshot.id == "pi_abc"
    assert snapshot.status == "requires_payment_method"
    assert snapshot.amount == 1500
    assert snapshot.currency == "usd"
    assert snapshot.client_secret == "pi_abc_secret_xyz"
    assert snapshot.succeeded is False
    assert calls == [
        {
            "api_key": API_KEY,
            "amount": 1500,
            "currency": "usd",
            "description": "Policy payment",
            "metadata": {"applicationId": "app1"},
        }
    ]


def test_create_intent_stripe_error_is_500(monkeypatch):
    monkeypatch.setattr(stripe.PaymentIntent, "create", _raise_stripe_error)
    with pytest.raises(UpstreamFailure) as exc:
        StripeGateway(API_KEY).create_intent(1500, "usd", "Policy payment", {})
    assert exc.value.status_code == 500
    assert exc.value.message == "Stripe error"


def test_retrieve_intent_returns_snapshot(monkeypatch):
    calls = []

    def fake_retrieve(payment_intent_id, **kwargs):
        calls.append((payment_intent_id, kwargs))
        return _intent(status="succeeded", client_secret=None)

    monkeypatch.setattr(stripe.PaymentIntent, "retrieve", fake_retrieve)
    snapshot = StripeGateway(API_KEY).retrieve_intent("pi_abc")

    assert snapshot.succeeded is True
    assert snapshot.amount == 1500
    assert snapshot.currency == "usd"
    assert snapshot.client_secret is None
    assert calls == [("pi_abc", {"api_key": API_KEY})]


def test_retrieve_intent_stripe_error_is_400(monkeypatch):
    monkeypatch.setattr(stripe.PaymentIntent, "retrieve", _raise_stripe_error)
    with pytest.raises(UpstreamFailure) as exc:
        StripeGateway(API_KEY).retrieve_intent("pi_missing")
    assert exc.value.status_code == 400
    assert exc.value.message == "Cannot verify Stripe PaymentIntent"
