import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends

import services
from database import Store, exact_ci, is_valid_oid, now, serialize, to_oid
from dependencies import get_store
from errors import InvalidArgument, NotFound
from schemas import ApplicationStatus, AssignAgentRequest, StatusUpdateRequest

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Applications"])


@router.post("/applications", status_code=201)
def submit_application(body: Dict[str, Any] = Body(...), store: Store = Depends(get_store)):
    if not body.get("fullName") or not body.get("email"):
        raise InvalidArgument("Full Name and Email are required")

    application = dict(body)
    application["submittedAt"] = application.get("submittedAt") or now()
    application["status"] = application.get("status") or ApplicationStatus.PENDING.value
    application.pop("_id", None)

    application_id = store.create_document("applications", application)
    logger.info("Application %s submitted by %s", application_id, body["email"])
    return {"message": "Application submitted", "insertedId": application_id}


@router.get("/applications")
def list_applications(email: Optional[str] = None, store: Store = Depends(get_store)):
    query = {"email": exact_ci(email)} if email else {}
    return store.get_documents("applications", query, sort=[("submittedAt", -1)])


@router.get("/applications/{application_id}")
def get_application(application_id: str, store: Store = Depends(get_store)):
    oid = to_oid(application_id, "Invalid application ID format")
    application = store.applications.find_one({"_id": oid})
    if not application:
        raise NotFound("Application not found")
    return serialize(application)


@router.patch("/applications/{application_id}/status")
def update_status(application_id: str, payload: StatusUpdateRequest, store: Store = Depends(get_store)):
    services.set_status_as_admin(store, application_id, payload.status, payload.rejectionFeedback)
    return {"message": "Status updated successfully"}


@router.patch("/applications/{application_id}/assign-agent")
def assign_agent(application_id: str, payload: AssignAgentRequest, store: Store = Depends(get_store)):
    services.assign_agent(store, application_id, payload.agentId)
    return {"message": "Agent assigned successfully"}


# ---------- Agent endpoints ----------

@router.get("/agent/applications")
def list_assigned(agentId: Optional[str] = None, email: Optional[str] = None, store: Store = Depends(get_store)):
    if not agentId and not email:
        raise InvalidArgument("agentId or email is required")

    if agentId:
        if not is_valid_oid(agentId):
            raise InvalidArgument("Invalid agentId")
        query = {"assignedAgent.id": to_oid(agentId)}
    else:
        query = {"assignedAgent.email": exact_ci(email)}
    return store.get_documents("applications", query, sort=[("submittedAt", -1)])


@router.patch("/agent/applications/{application_id}/status")
def agent_update_status(application_id: str, payload: StatusUpdateRequest, store: Store = Depends(get_store)):
    matched = services.set_status_as_agent(store, application_id, payload.status)
    return {"message": "Status updated", "matched": matched}
