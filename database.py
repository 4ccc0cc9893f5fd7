"""
MongoDB access for the life insurance API.

A single ``Store`` wraps the pymongo database and is handed to every request
handler through ``app.state``; nothing here is module-global.
"""

import re
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from errors import InvalidArgument

logger = logging.getLogger(__name__)

USERS = "users"
POLICIES = "policies"
APPLICATIONS = "applications"
REVIEWS = "reviews"
BLOGS = "blogs"
PAYMENTS = "payments"
CLAIMS = "claims"
NEWSLETTER = "newsletterSubscribers"


def now() -> datetime:
    return datetime.now(timezone.utc)


def is_valid_oid(value: Any) -> bool:
    return isinstance(value, (str, ObjectId)) and ObjectId.is_valid(value)


def to_oid(value: Any, message: str = "Invalid id") -> ObjectId:
    if not is_valid_oid(value):
        raise InvalidArgument(message)
    return ObjectId(value)


def exact_ci(value: str) -> Dict[str, str]:
    """Case-insensitive whole-string match."""
    return {"$regex": f"^{re.escape(value)}$", "$options": "i"}


def serialize(value: Any) -> Any:
    """Make a Mongo document JSON friendly (ObjectId -> str, recursively)."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize(v) for v in value]
    return value


class Store:
    def __init__(self, db: Database):
        self.db = db

    @classmethod
    def from_url(cls, url: str, name: str) -> "Store":
        client = MongoClient(url)
        return cls(client[name])

    @property
    def name(self) -> str:
        return self.db.name

    @property
    def users(self):
        return self.db[USERS]

    @property
    def policies(self):
        return self.db[POLICIES]

    @property
    def applications(self):
        return self.db[APPLICATIONS]

    @property
    def reviews(self):
        return self.db[REVIEWS]

    @property
    def blogs(self):
        return self.db[BLOGS]

    @property
    def payments(self):
        return self.db[PAYMENTS]

    @property
    def claims(self):
        return self.db[CLAIMS]

    @property
    def newsletter(self):
        return self.db[NEWSLETTER]

    def create_document(self, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
        """Insert a document, stamping createdAt when the caller did not."""
        if isinstance(data, BaseModel):
            doc = data.model_dump()
        else:
            doc = dict(data)
        doc.setdefault("createdAt", now())
        result = self.db[collection_name].insert_one(doc)
        return str(result.inserted_id)

    def get_documents(
        self,
        collection_name: str,
        filter_dict: Optional[Dict[str, Any]] = None,
        sort: Optional[List] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        cursor = self.db[collection_name].find(filter_dict or {})
        if sort:
            cursor = cursor.sort(sort)
        if limit:
            cursor = cursor.limit(limit)
        return [serialize(doc) for doc in cursor]

    def ensure_indexes(self) -> None:
        try:
            self.applications.create_index("email")
            self.claims.create_index("email")
            self.claims.create_index("applicationId")
        except PyMongoError as e:
            logger.warning("Index creation failed: %s", e)
