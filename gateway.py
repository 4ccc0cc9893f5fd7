"""
Stripe payment-intent adapter.

The gateway's own view of an intent is the only source of truth for whether
money was received; callers get back an ``IntentSnapshot`` rather than the raw
SDK object.
"""

import logging
from typing import Any, Dict, Optional

import stripe
from pydantic import BaseModel

from errors import UpstreamFailure

logger = logging.getLogger(__name__)

SUCCEEDED = "succeeded"


class IntentSnapshot(BaseModel):
    id: str
    status: str
    amount: Optional[int] = None
    currency: Optional[str] = None
    client_secret: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCEEDED


def _snapshot(intent: Any) -> IntentSnapshot:
    return IntentSnapshot(
        id=intent["id"],
        status=intent["status"],
        amount=intent.get("amount"),
        currency=intent.get("currency"),
        client_secret=intent.get("client_secret"),
    )


class StripeGateway:
    def __init__(self, api_key: Optional[str]):
        self.api_key = api_key

    def create_intent(
        self,
        amount: int,
        currency: str,
        description: str,
        metadata: Dict[str, str],
    ) -> IntentSnapshot:
        try:
            intent = stripe.PaymentIntent.create(
                api_key=self.api_key,
                amount=amount,
                currency=currency,
                description=description,
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.error("Error creating payment intent: %s", e)
            raise UpstreamFailure("Stripe error", status_code=500) from e
        return _snapshot(intent)

    def retrieve_intent(self, payment_intent_id: str) -> IntentSnapshot:
        try:
            intent = stripe.PaymentIntent.retrieve(payment_intent_id, api_key=self.api_key)
        except stripe.StripeError as e:
            logger.error("Stripe PI retrieve failed: %s", e)
            raise UpstreamFailure("Cannot verify Stripe PaymentIntent") from e
        return _snapshot(intent)
