from fastapi import APIRouter, Depends

from database import Store, to_oid
from dependencies import get_store
from errors import InvalidArgument
from schemas import Review, ReviewRequest

router = APIRouter(prefix="/reviews", tags=["Reviews"])

LATEST_REVIEWS = 5


@router.post("", status_code=201)
def submit_review(payload: ReviewRequest, store: Store = Depends(get_store)):
    fields = payload.model_dump()
    if not all(fields.values()):
        raise InvalidArgument("All fields are required")

    review = Review(
        email=payload.email,
        name=payload.name,
        photo=payload.photo,
        policyId=to_oid(payload.policyId, "Invalid policyId"),
        policyTitle=payload.policyTitle,
        rating=payload.rating,
        feedback=payload.feedback,
    )
    review_id = store.create_document("reviews", review)
    return {"message": "Review submitted", "insertedId": review_id}


@router.get("")
def latest_reviews(store: Store = Depends(get_store)):
    return store.get_documents("reviews", sort=[("createdAt", -1)], limit=LATEST_REVIEWS)
