import logging
from typing import Optional

from fastapi import APIRouter, Depends

from database import Store, exact_ci, now, serialize, to_oid
from dependencies import get_store
from errors import Conflict, InvalidArgument, NotFound
from schemas import ProfileUpdateRequest, RoleUpdateRequest, User, UserCreateRequest, UserRole

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Users"])


@router.get("/agents")
def list_agents(store: Store = Depends(get_store)):
    return store.get_documents("users", {"role": "agent"}, limit=3)


@router.get("/users")
def list_users(role: Optional[str] = None, store: Store = Depends(get_store)):
    query = {"role": exact_ci(role)} if role else {}
    return store.get_documents("users", query, sort=[("createdAt", -1)])


@router.post("/users", status_code=201)
def create_user(payload: UserCreateRequest, store: Store = Depends(get_store)):
    if not payload.email or not payload.name:
        raise InvalidArgument("Name and email are required")

    if store.users.find_one({"email": payload.email}):
        raise Conflict("User already exists")

    user = User(email=payload.email, name=payload.name, role=payload.role, photo=payload.photo)
    user_id = store.create_document("users", user)
    logger.info("Created user %s", payload.email)
    return {"message": "User created", "insertedId": user_id}


@router.get("/users/{email}/role")
def get_user_role(email: str, store: Store = Depends(get_store)):
    user = store.users.find_one({"email": email})
    if not user:
        raise NotFound("User not found")
    return {"role": user.get("role") or "user"}


@router.patch("/users/{user_id}/role")
def update_user_role(user_id: str, payload: RoleUpdateRequest, store: Store = Depends(get_store)):
    oid = to_oid(user_id, "Invalid user id")
    try:
        role = UserRole(payload.role)
    except ValueError:
        raise InvalidArgument("Invalid role")

    result = store.users.update_one({"_id": oid}, {"$set": {"role": role.value}})
    if result.matched_count == 0:
        raise NotFound("User not found")
    return {"message": "Role updated successfully"}


@router.patch("/users/{email}")
def update_profile(email: str, payload: ProfileUpdateRequest, store: Store = Depends(get_store)):
    updates = payload.model_dump(exclude_unset=True)
    updates["updatedAt"] = now()

    result = store.users.update_one({"email": email}, {"$set": updates})
    if result.matched_count == 0:
        logger.warning("No user found with email %s", email)
        raise NotFound("User not found")
    return {"message": "Profile updated successfully"}


@router.get("/users/{email}")
def get_user(email: str, store: Store = Depends(get_store)):
    user = store.users.find_one({"email": email})
    if not user:
        raise NotFound("User not found")
    return serialize(user)


@router.delete("/users/{user_id}")
def delete_user(user_id: str, store: Store = Depends(get_store)):
    result = store.users.delete_one({"_id": to_oid(user_id, "Invalid user id")})
    if result.deleted_count == 0:
        raise NotFound("User not found")
    return {"message": "User deleted successfully"}
