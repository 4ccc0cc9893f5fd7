from functools import partial
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

import services
from config import Settings
from database import Store
from dependencies import get_settings, get_store
from schemas import StatusUpdateRequest
from uploads import read_upload, write_upload

router = APIRouter(prefix="/claims", tags=["Claims"])


@router.post("", status_code=201)
async def submit_claim(
    applicationId: Optional[str] = Form(None),
    policyName: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    reason: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    store: Store = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    attachment = await read_upload(file, settings.MAX_UPLOAD_SIZE, settings.ALLOWED_UPLOAD_TYPES)
    save_file = partial(write_upload, settings.UPLOAD_DIR, attachment) if attachment else None

    claim_id = services.create_claim(store, applicationId, policyName, email, reason, save_file)
    return {"message": "Claim submitted", "insertedId": claim_id}


@router.get("")
def list_claims(email: Optional[str] = None, applicationId: Optional[str] = None, store: Store = Depends(get_store)):
    return services.list_claims(store, email=email, application_id=applicationId)


@router.patch("/{claim_id}/status")
def update_claim_status(claim_id: str, payload: StatusUpdateRequest, store: Store = Depends(get_store)):
    services.set_claim_status(store, claim_id, payload.status)
    return {"message": "Claim status updated"}
