"""
Database Schemas for the Life Insurance marketplace

Each document model corresponds to a MongoDB collection; field names are the
camelCase keys stored in Mongo. The *Request models describe inbound payloads.
Required-looking fields are Optional on purpose so the route can answer with
its own 400 message.
"""

from enum import Enum
from datetime import datetime, timezone
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ApplicationStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class UserRole(str, Enum):
    CUSTOMER = "customer"
    AGENT = "agent"
    ADMIN = "admin"


# ---------- Collection documents ----------

class User(BaseModel):
    """
    Marketplace account.
    Collection: "users"
    """
    email: str = Field(..., description="Unique login email")
    name: str = Field(...)
    role: str = Field(UserRole.CUSTOMER.value, description="customer|agent|admin")
    photo: Optional[str] = None
    createdAt: datetime = Field(default_factory=_now)


class Blog(BaseModel):
    """
    Collection: "blogs"
    """
    title: str
    content: str
    authorEmail: str
    authorName: str = ""
    image: str = ""
    publishDate: datetime = Field(default_factory=_now)
    createdAt: datetime = Field(default_factory=_now)
    updatedAt: datetime = Field(default_factory=_now)
    totalVisit: int = Field(0, ge=0)


class Review(BaseModel):
    """
    Customer review of a policy.
    Collection: "reviews"
    """
    email: str
    name: str
    photo: str
    policyId: Any = Field(..., description="ObjectId of the reviewed policy")
    policyTitle: str
    rating: int
    feedback: str
    createdAt: datetime = Field(default_factory=_now)


class Claim(BaseModel):
    """
    Claim against an application. Coverage fields are copied from the
    application when the claim is created and never re-synced.
    Collection: "claims"
    """
    applicationId: Any = Field(..., description="ObjectId of the parent application")
    policyName: str
    email: str
    reason: str
    status: str = ApplicationStatus.PENDING.value
    coverageAmount: Optional[Any] = None
    termDuration: Optional[Any] = None
    policyType: Optional[Any] = None
    filePath: Optional[str] = None
    createdAt: datetime = Field(default_factory=_now)
    updatedAt: datetime = Field(default_factory=_now)


class StripeSnapshot(BaseModel):
    id: str
    amount: Optional[int] = None
    currency: Optional[str] = None
    status: str


class Payment(BaseModel):
    """
    Append-only record of a confirmed payment.
    Collection: "payments"
    """
    applicationId: Any
    userEmail: Optional[str] = None
    paymentIntentId: str
    amountBDT: Optional[float] = None
    amountUSD: Optional[float] = None
    frequency: Optional[str] = None
    stripe: StripeSnapshot
    createdAt: datetime = Field(default_factory=_now)


class NewsletterSubscriber(BaseModel):
    """
    Collection: "newsletterSubscribers"
    """
    name: str
    email: str
    subscribedAt: datetime = Field(default_factory=_now)


# ---------- Request payloads ----------

class UserCreateRequest(BaseModel):
    email: Optional[str] = None
    name: Optional[str] = None
    role: str = UserRole.CUSTOMER.value
    photo: Optional[str] = None


class RoleUpdateRequest(BaseModel):
    role: Optional[str] = None


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = None
    photo: Optional[str] = None
    nid: Optional[str] = None
    fatherName: Optional[str] = None
    motherName: Optional[str] = None
    address: Optional[str] = None


class BlogCreateRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    authorEmail: Optional[str] = None
    authorName: Optional[str] = None
    image: Optional[str] = None


class BlogUpdateRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    image: Optional[str] = None
    republish: bool = False


class NewsletterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


class StatusUpdateRequest(BaseModel):
    status: Optional[str] = None
    rejectionFeedback: Optional[str] = None


class AssignAgentRequest(BaseModel):
    agentId: Optional[str] = None


class ReviewRequest(BaseModel):
    email: Optional[str] = None
    name: Optional[str] = None
    photo: Optional[str] = None
    policyId: Optional[str] = None
    policyTitle: Optional[str] = None
    rating: Optional[int] = None
    feedback: Optional[str] = None


class CreateIntentRequest(BaseModel):
    applicationId: Optional[str] = None
    amountUsdCents: Optional[int] = None
    currency: str = "usd"
    amountUSD: Optional[float] = None
    amountBDT: Optional[float] = None
    frequency: Optional[str] = None


class ConfirmPaymentRequest(BaseModel):
    applicationId: Optional[str] = None
    paymentIntentId: Optional[str] = None
    amountBDT: Optional[float] = None
    amountUSD: Optional[float] = None
    frequency: Optional[str] = None
    status: Optional[str] = None


class PolicyPage(BaseModel):
    total: int
    page: int
    limit: int
    data: List[Dict[str, Any]]
