import re
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends

from database import Store, now, serialize, to_oid
from dependencies import get_store
from errors import NotFound
from policy_builder import build_policy_document
from schemas import PolicyPage
from services import paginate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/policies", tags=["Policies"])

DEFAULT_LIMIT = 9
MAX_LIMIT = 50


@router.get("", response_model=PolicyPage)
def list_policies(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
    store: Store = Depends(get_store),
):
    page_num, limit_num = paginate(page, limit, DEFAULT_LIMIT, MAX_LIMIT)
    skip = (page_num - 1) * limit_num

    query: Dict[str, Any] = {}
    if category and category != "All":
        query["category"] = category
    if search:
        query["title"] = {"$regex": re.escape(search), "$options": "i"}

    total = store.policies.count_documents(query)
    data = store.policies.find(query).skip(skip).limit(limit_num)
    return {"total": total, "page": page_num, "limit": limit_num, "data": serialize(list(data))}


@router.get("/{policy_id}")
def get_policy(policy_id: str, store: Store = Depends(get_store)):
    policy = store.policies.find_one({"_id": to_oid(policy_id, "Invalid policy ID format")})
    if not policy:
        raise NotFound("Policy not found")
    return serialize(policy)


@router.post("", status_code=201)
def create_policy(body: Dict[str, Any] = Body(...), store: Store = Depends(get_store)):
    doc = build_policy_document(body, is_update=False)
    doc["createdAt"] = now()
    doc["updatedAt"] = doc["createdAt"]
    policy_id = store.create_document("policies", doc)
    logger.info("Created policy %s", policy_id)
    return {"message": "Policy created", "insertedId": policy_id}


@router.put("/{policy_id}")
def update_policy(policy_id: str, body: Dict[str, Any] = Body(...), store: Store = Depends(get_store)):
    oid = to_oid(policy_id, "Invalid policy ID format")
    doc = build_policy_document(body, is_update=True)
    doc["updatedAt"] = now()

    result = store.policies.update_one({"_id": oid}, {"$set": doc})
    if result.matched_count == 0:
        raise NotFound("Policy not found")
    return {"message": "Policy updated successfully"}


@router.delete("/{policy_id}")
def delete_policy(policy_id: str, store: Store = Depends(get_store)):
    result = store.policies.delete_one({"_id": to_oid(policy_id, "Invalid policy ID format")})
    if result.deleted_count == 0:
        raise NotFound("Policy not found")
    return {"message": "Policy deleted successfully"}
