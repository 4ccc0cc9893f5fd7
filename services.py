"""
Core operations: application status lifecycle, payment intent / confirmation,
claims and payment views.

Every function takes the ``Store`` (and gateway where needed) explicitly.
None of the multi-step sequences here are transactional:

* ``set_status_as_agent`` reads the previous status before writing the new
  one, so two concurrent approvals can both bump popularity.
* ``confirm_payment`` updates the application and then inserts the payment;
  if the insert fails the application stays marked as paid.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from bson import ObjectId

from database import Store, exact_ci, is_valid_oid, now, serialize, to_oid
from errors import InvalidArgument, InvalidState, NotFound, PaymentNotVerified
from gateway import StripeGateway
from schemas import ApplicationStatus, Claim, Payment, StripeSnapshot

logger = logging.getLogger(__name__)

PAYMENTS_DEFAULT_LIMIT = 20
PAYMENTS_MAX_LIMIT = 100
ENRICHED_FIELDS = ("coverageAmount", "termDuration", "policyType")


def parse_status(value: Optional[str]) -> ApplicationStatus:
    try:
        return ApplicationStatus(value)
    except ValueError:
        raise InvalidArgument("Invalid status")


def parse_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def paginate(page: Any, limit: Any, default_limit: int, max_limit: int, zero_is_default: bool = False):
    page_num = parse_int(page)
    page_num = max(1, page_num) if page_num is not None else 1
    limit_num = parse_int(limit)
    if zero_is_default and limit_num == 0:
        limit_num = None
    limit_num = min(max(1, limit_num), max_limit) if limit_num is not None else default_limit
    return page_num, limit_num


# ---------- Application lifecycle ----------

def set_status_as_admin(
    store: Store,
    application_id: str,
    status: Optional[str],
    rejection_feedback: Optional[str] = None,
) -> None:
    """Admin status change. Manages rejection feedback, never popularity."""
    oid = to_oid(application_id, "Invalid application id")
    new_status = parse_status(status)

    feedback = (rejection_feedback or "").strip()
    if new_status is ApplicationStatus.REJECTED and not feedback:
        raise InvalidArgument("Rejection feedback is required when rejecting")

    update = {
        "status": new_status.value,
        "rejectionFeedback": feedback if new_status is ApplicationStatus.REJECTED else "",
    }
    result = store.applications.update_one({"_id": oid}, {"$set": update})
    if result.matched_count == 0:
        raise NotFound("Application not found")


def _policy_filter(policy_id: Any) -> Dict[str, Any]:
    if is_valid_oid(policy_id):
        return {"_id": ObjectId(policy_id)}
    return {"id": str(policy_id)}


def set_status_as_agent(store: Store, application_id: str, status: Optional[str]) -> int:
    """
    Agent status change. Leaves rejection feedback alone; bumps the policy's
    popularity once when the application moves into Approved.
    """
    oid = to_oid(application_id, "Invalid application id")
    new_status = parse_status(status)

    app_doc = store.applications.find_one({"_id": oid})
    if not app_doc:
        raise NotFound("Application not found")

    prev_status = app_doc.get("status")
    result = store.applications.update_one({"_id": oid}, {"$set": {"status": new_status.value}})

    if (
        prev_status != ApplicationStatus.APPROVED.value
        and new_status is ApplicationStatus.APPROVED
        and app_doc.get("policyId")
    ):
        store.policies.update_one(_policy_filter(app_doc["policyId"]), {"$inc": {"popularity": 1}})
        logger.info("Popularity bumped for policy %s", app_doc["policyId"])

    return result.matched_count


def assign_agent(store: Store, application_id: str, agent_id: Optional[str]) -> None:
    if not is_valid_oid(application_id) or not is_valid_oid(agent_id):
        raise InvalidArgument("Invalid id(s)")

    agent = store.users.find_one({"_id": ObjectId(agent_id), "role": {"$regex": "^agent$", "$options": "i"}})
    if not agent:
        raise NotFound("Agent not found")

    update = {"assignedAgent": {"id": agent["_id"], "name": agent.get("name"), "email": agent.get("email")}}
    result = store.applications.update_one({"_id": ObjectId(application_id)}, {"$set": update})
    if result.matched_count == 0:
        raise NotFound("Application not found")


# ---------- Payments ----------

def _find_application(store: Store, application_id: str) -> Dict[str, Any]:
    app_doc = store.applications.find_one({"_id": to_oid(application_id, "Invalid applicationId")})
    if not app_doc:
        raise NotFound("Application not found")
    return app_doc


def create_payment_intent(
    store: Store,
    gateway: StripeGateway,
    application_id: Optional[str],
    amount_minor_units: Optional[int],
    currency: str = "usd",
    amount_usd: Optional[float] = None,
    amount_bdt: Optional[float] = None,
    frequency: Optional[str] = None,
) -> str:
    if not application_id or not amount_minor_units:
        raise InvalidArgument("applicationId & amountUsdCents are required")

    app_doc = _find_application(store, application_id)
    if app_doc.get("status") != ApplicationStatus.APPROVED.value:
        raise InvalidState("Application is not approved for payment")

    intent = gateway.create_intent(
        amount=amount_minor_units,
        currency=currency,
        description=f"Premium payment for application {application_id}",
        metadata={
            "applicationId": application_id,
            "amountBDT": str(amount_bdt if amount_bdt is not None else 0),
            "amountUSD": str(amount_usd if amount_usd is not None else 0),
            "frequency": frequency or "",
        },
    )
    return intent.client_secret


def confirm_payment(
    store: Store,
    gateway: StripeGateway,
    application_id: Optional[str],
    payment_intent_id: Optional[str],
    amount_usd: Optional[float],
    amount_bdt: Optional[float],
    frequency: Optional[str],
    status: Optional[str],
) -> str:
    """Verify the intent with the gateway, then record the payment. Returns the payment id."""
    if not application_id or not payment_intent_id or not status:
        raise InvalidArgument("applicationId, paymentIntentId & status are required")

    app_doc = _find_application(store, application_id)

    intent = gateway.retrieve_intent(payment_intent_id)
    if not intent.succeeded:
        raise PaymentNotVerified("PaymentIntent not succeeded on Stripe")

    stamp = now()
    update = {
        "paymentStatus": status,
        "frequency": frequency,
        "activatedAt": stamp,
        "paymentInfo": {
            "paymentIntentId": payment_intent_id,
            "amountBDT": amount_bdt,
            "amountUSD": amount_usd,
            "stripeCurrency": intent.currency,
            "stripeAmount": intent.amount,
            "createdAt": stamp,
        },
    }
    store.applications.update_one({"_id": app_doc["_id"]}, {"$set": update})

    payment = Payment(
        applicationId=app_doc["_id"],
        userEmail=app_doc.get("email"),
        paymentIntentId=payment_intent_id,
        amountBDT=amount_bdt,
        amountUSD=amount_usd,
        frequency=frequency,
        stripe=StripeSnapshot(
            id=intent.id,
            amount=intent.amount,
            currency=intent.currency,
            status=intent.status,
        ),
        createdAt=stamp,
    )
    return store.create_document("payments", payment)


_PAYMENT_VIEW = {
    "_id": 1,
    "transactionId": "$paymentIntentId",
    "email": "$userEmail",
    "policyName": {"$ifNull": ["$application.policyTitle", "$application.policyType"]},
    "amountUSD": 1,
    "amountBDT": 1,
    "frequency": 1,
    "status": "$stripe.status",
    "stripeAmount": "$stripe.amount",
    "stripeCurrency": "$stripe.currency",
    "createdAt": 1,
}

_APPLICATION_LOOKUP = [
    {
        "$lookup": {
            "from": "applications",
            "localField": "applicationId",
            "foreignField": "_id",
            "as": "application",
        }
    },
    {"$unwind": {"path": "$application", "preserveNullAndEmptyArrays": True}},
]


def list_payments(store: Store, page: Any = None, limit: Any = None, email: Optional[str] = None) -> Dict[str, Any]:
    page_num, limit_num = paginate(
        page, limit, PAYMENTS_DEFAULT_LIMIT, PAYMENTS_MAX_LIMIT, zero_is_default=True
    )
    skip = (page_num - 1) * limit_num

    match: Dict[str, Any] = {}
    if email:
        match["userEmail"] = exact_ci(email)

    pipeline = (
        [{"$match": match}, {"$sort": {"createdAt": -1}}]
        + _APPLICATION_LOOKUP
        + [{"$project": _PAYMENT_VIEW}, {"$skip": skip}, {"$limit": limit_num}]
    )
    data = list(store.payments.aggregate(pipeline))
    total = store.payments.count_documents(match)
    return {"total": total, "page": page_num, "limit": limit_num, "data": serialize(data)}


def get_payment(store: Store, payment_id: str) -> Dict[str, Any]:
    oid = to_oid(payment_id, "Invalid payment id")
    view = dict(_PAYMENT_VIEW, rawStripe="$stripe", application=1)
    pipeline = [{"$match": {"_id": oid}}] + _APPLICATION_LOOKUP + [{"$project": view}]
    docs = list(store.payments.aggregate(pipeline))
    if not docs:
        raise NotFound("Payment not found")
    return serialize(docs[0])


def payment_summary(store: Store) -> Dict[str, Any]:
    pipeline = [
        {
            "$group": {
                "_id": None,
                "totalUSD": {"$sum": "$amountUSD"},
                "totalBDT": {"$sum": "$amountBDT"},
                "count": {"$sum": 1},
            }
        }
    ]
    summary = list(store.payments.aggregate(pipeline))
    if not summary:
        return {"totalUSD": 0, "totalBDT": 0, "count": 0}
    return {
        "totalUSD": summary[0]["totalUSD"],
        "totalBDT": summary[0]["totalBDT"],
        "count": summary[0]["count"],
    }


# ---------- Claims ----------

def create_claim(
    store: Store,
    application_id: Optional[str],
    policy_name: Optional[str],
    email: Optional[str],
    reason: Optional[str],
    save_file: Optional[Callable[[], str]] = None,
) -> str:
    """
    Snapshot coverage details from the application into a new claim.
    ``save_file`` writes the attachment and is only called once the
    application is known to exist.
    """
    if not application_id or not policy_name or not email or not reason:
        raise InvalidArgument("All fields are required")
    oid = to_oid(application_id, "Invalid applicationId")

    app_doc = store.applications.find_one({"_id": oid}, {f: 1 for f in ENRICHED_FIELDS})
    if not app_doc:
        raise NotFound("Application not found")

    claim = Claim(
        applicationId=oid,
        policyName=policy_name,
        email=email,
        reason=reason,
        coverageAmount=app_doc.get("coverageAmount"),
        termDuration=app_doc.get("termDuration"),
        policyType=app_doc.get("policyType"),
        filePath=save_file() if save_file else None,
    )
    return store.create_document("claims", claim)


def list_claims(store: Store, email: Optional[str] = None, application_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """List claims, filling coverage fields on legacy rows from their application (response only)."""
    query: Dict[str, Any] = {}
    if email:
        query["email"] = exact_ci(email)
    if application_id and is_valid_oid(application_id):
        query["applicationId"] = ObjectId(application_id)

    claims = list(store.claims.find(query).sort("createdAt", -1))

    missing = [c for c in claims if c.get("coverageAmount") is None and c.get("applicationId")]
    if not missing:
        return serialize(claims)

    app_ids = list({c["applicationId"] for c in missing})
    apps = store.applications.find({"_id": {"$in": app_ids}}, {f: 1 for f in ENRICHED_FIELDS})
    app_map = {str(a["_id"]): a for a in apps}

    enriched = []
    for claim in claims:
        parent = app_map.get(str(claim.get("applicationId")))
        if claim.get("coverageAmount") is not None or parent is None:
            enriched.append(claim)
            continue
        view = dict(claim)
        for field in ENRICHED_FIELDS:
            view[field] = parent.get(field)
        enriched.append(view)
    return serialize(enriched)


def set_claim_status(store: Store, claim_id: str, status: Optional[str]) -> None:
    oid = to_oid(claim_id, "Invalid claim id")
    new_status = parse_status(status)
    result = store.claims.update_one(
        {"_id": oid},
        {"$set": {"status": new_status.value, "updatedAt": now()}},
    )
    if result.matched_count == 0:
        raise NotFound("Claim not found")
