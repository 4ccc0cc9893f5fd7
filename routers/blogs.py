import logging
from typing import Optional

from fastapi import APIRouter, Depends

from database import Store, exact_ci, now, to_oid
from dependencies import get_store
from errors import Conflict, InvalidArgument, NotFound
from schemas import Blog, BlogCreateRequest, BlogUpdateRequest, NewsletterRequest, NewsletterSubscriber

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Blogs"])


@router.get("/blogs")
def list_blogs(authorEmail: Optional[str] = None, store: Store = Depends(get_store)):
    query = {"authorEmail": exact_ci(authorEmail)} if authorEmail else {}
    return store.get_documents("blogs", query, sort=[("publishDate", -1)])


@router.post("/blogs", status_code=201)
def create_blog(payload: BlogCreateRequest, store: Store = Depends(get_store)):
    if not payload.title or not payload.content or not payload.authorEmail:
        raise InvalidArgument("title, content and authorEmail are required")

    blog = Blog(
        title=payload.title,
        content=payload.content,
        authorEmail=payload.authorEmail,
        authorName=payload.authorName or "",
        image=payload.image or "",
    )
    blog_id = store.create_document("blogs", blog)
    return {"message": "Blog created", "insertedId": blog_id}


@router.patch("/blogs/{blog_id}")
def update_blog(blog_id: str, payload: BlogUpdateRequest, store: Store = Depends(get_store)):
    oid = to_oid(blog_id, "Invalid blog ID")

    updates = payload.model_dump(include={"title", "content", "image"}, exclude_none=True)
    if payload.republish:
        updates["publishDate"] = now()
    if not updates:
        raise InvalidArgument("Nothing to update")
    updates["updatedAt"] = now()

    result = store.blogs.update_one({"_id": oid}, {"$set": updates})
    if result.matched_count == 0:
        raise NotFound("Blog not found")
    return {"message": "Blog updated successfully"}


@router.delete("/blogs/{blog_id}")
def delete_blog(blog_id: str, store: Store = Depends(get_store)):
    result = store.blogs.delete_one({"_id": to_oid(blog_id, "Invalid blog ID")})
    if result.deleted_count == 0:
        raise NotFound("Blog not found")
    return {"message": "Blog deleted successfully"}


@router.patch("/blogs/{blog_id}/visit")
def record_visit(blog_id: str, store: Store = Depends(get_store)):
    result = store.blogs.update_one({"_id": to_oid(blog_id, "Invalid blog ID")}, {"$inc": {"totalVisit": 1}})
    return {"message": "Visit count updated", "matched": result.matched_count}


@router.post("/newsletter", status_code=201)
def subscribe(payload: NewsletterRequest, store: Store = Depends(get_store)):
    if not payload.name or not payload.email:
        raise InvalidArgument("Name and email are required")

    if store.newsletter.find_one({"email": payload.email}):
        raise Conflict("Email already subscribed")

    store.create_document("newsletterSubscribers", NewsletterSubscriber(name=payload.name, email=payload.email))
    return {"message": "Subscribed successfully"}
