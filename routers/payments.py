import logging
from typing import Optional

from fastapi import APIRouter, Depends

import services
from database import Store
from dependencies import get_gateway, get_store
from gateway import StripeGateway
from schemas import ConfirmPaymentRequest, CreateIntentRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/payments", tags=["Payments"])


@router.get("")
def list_payments(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    email: Optional[str] = None,
    store: Store = Depends(get_store),
):
    return services.list_payments(store, page=page, limit=limit, email=email)


# Declared before /{payment_id} so "summary" is not taken for an id.
@router.get("/summary")
def payment_summary(store: Store = Depends(get_store)):
    return services.payment_summary(store)


@router.get("/{payment_id}")
def get_payment(payment_id: str, store: Store = Depends(get_store)):
    return services.get_payment(store, payment_id)


@router.post("/create-intent")
def create_intent(
    payload: CreateIntentRequest,
    store: Store = Depends(get_store),
    gateway: StripeGateway = Depends(get_gateway),
):
    client_secret = services.create_payment_intent(
        store,
        gateway,
        payload.applicationId,
        payload.amountUsdCents,
        currency=payload.currency,
        amount_usd=payload.amountUSD,
        amount_bdt=payload.amountBDT,
        frequency=payload.frequency,
    )
    return {"clientSecret": client_secret}


@router.post("/confirm")
def confirm(
    payload: ConfirmPaymentRequest,
    store: Store = Depends(get_store),
    gateway: StripeGateway = Depends(get_gateway),
):
    payment_id = services.confirm_payment(
        store,
        gateway,
        payload.applicationId,
        payload.paymentIntentId,
        payload.amountUSD,
        payload.amountBDT,
        payload.frequency,
        payload.status,
    )
    logger.info("Payment %s recorded for application %s", payment_id, payload.applicationId)
    return {"ok": True, "message": "Payment confirmed & application updated"}
