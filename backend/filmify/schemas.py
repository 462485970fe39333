"""
schemas.py

Pydantic schemas for request payloads and ORM-backed responses.
"""
from pydantic import BaseModel, ConfigDict, Field, HttpUrl, model_validator
from typing import Optional, List, Literal
import datetime

from filmify.models import StreamingType, UserRole

NotificationPriority = Literal["low", "normal", "high"]
ReviewPlatformName = Literal["imdb", "google", "rotten_tomatoes", "metacritic"]
TicketingPlatformName = Literal["bookmyshow", "paytm", "insider", "pvr", "inox"]


class MovieSummarySchema(BaseModel):
    id: str
    title: str
    poster_url: Optional[str]
    model_config = ConfigDict(from_attributes=True)


class PurchaseSchema(BaseModel):
    id: str
    movie_id: str
    user_id: str
    amount: float
    currency: str
    status: str
    payment_method: Optional[str]
    transaction_id: Optional[str]
    expires_at: Optional[datetime.datetime]
    created_at: datetime.datetime
    movie: Optional[MovieSummarySchema] = None
    model_config = ConfigDict(from_attributes=True)


class ReviewSchema(BaseModel):
    id: str
    movie_id: str
    user_id: Optional[str]
    rating: float
    title: Optional[str]
    content: str
    source: Optional[str]
    verified: bool
    featured: bool
    created_at: datetime.datetime
    model_config = ConfigDict(from_attributes=True)


class NotificationSchema(BaseModel):
    id: str
    user_id: str
    movie_id: Optional[str]
    title: str
    message: str
    type: str
    priority: str
    action_url: Optional[str]
    read: bool
    created_at: datetime.datetime
    model_config = ConfigDict(from_attributes=True)


class UserSchema(BaseModel):
    id: str
    email: str
    name: str
    role: str
    verified: bool
    studio: Optional[str]
    website: Optional[str]
    created_at: datetime.datetime
    model_config = ConfigDict(from_attributes=True)


# Payloads
class MovieCreate(BaseModel):
    title: str = Field(..., min_length=1)
    synopsis: str = Field(..., min_length=1)
    story: Optional[str] = None
    genre: str = Field(..., min_length=1)
    language: str = Field(..., min_length=1)
    duration: int = Field(..., ge=1)
    certification: Optional[str] = None
    release_date: Optional[datetime.datetime] = None
    director_name: Optional[str] = None
    producer_name: Optional[str] = None
    cast: Optional[List[str]] = None
    crew: Optional[List[str]] = None
    poster_url: Optional[HttpUrl] = None
    trailer_url: Optional[HttpUrl] = None
    streaming_enabled: bool = False
    streaming_type: StreamingType = StreamingType.FREE
    price: Optional[float] = Field(default=None, gt=0)
    producer_id: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def _price_required_for_paid_modes(self):
        if self.streaming_type != StreamingType.FREE and self.price is None:
            raise ValueError("price is required unless streaming_type is FREE")
        if self.streaming_type == StreamingType.FREE:
            self.price = None
        return self


class MovieUpdate(BaseModel):
    title: Optional[str] = None
    synopsis: Optional[str] = None
    story: Optional[str] = None
    genre: Optional[str] = None
    language: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=1)
    certification: Optional[str] = None
    release_date: Optional[datetime.datetime] = None
    director_name: Optional[str] = None
    producer_name: Optional[str] = None
    cast: Optional[List[str]] = None
    crew: Optional[List[str]] = None
    ott_platforms: Optional[List[str]] = None
    poster_url: Optional[str] = None
    trailer_url: Optional[str] = None
    status: Optional[str] = None
    featured: Optional[bool] = None
    streaming_enabled: Optional[bool] = None
    streaming_type: Optional[StreamingType] = None
    price: Optional[float] = Field(default=None, gt=0)


class PurchaseCreate(BaseModel):
    movie_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    currency: Optional[str] = None
    payment_method: Optional[str] = None
    transaction_id: Optional[str] = None


class ReviewCreate(BaseModel):
    movie_id: str = Field(..., min_length=1)
    rating: float = Field(..., ge=1, le=10)
    title: Optional[str] = None
    content: str = Field(..., min_length=1)
    source: Optional[str] = None
    user_id: Optional[str] = None
    verified: bool = False
    featured: bool = False


class ReviewSyncRequest(BaseModel):
    movie_id: str = Field(..., min_length=1)
    platforms: List[ReviewPlatformName]


class TicketingEntry(BaseModel):
    platform: TicketingPlatformName
    url: HttpUrl
    region: str
    showtimes: List[str] = []
    is_active: bool = True


class TicketingUpdate(BaseModel):
    movie_id: str = Field(..., min_length=1)
    platforms: List[TicketingEntry]


class NotificationCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    message: str = Field(..., min_length=1, max_length=500)
    type: str
    user_id: str = Field(..., min_length=1)
    movie_id: Optional[str] = None
    action_url: Optional[str] = None
    image_url: Optional[HttpUrl] = None
    scheduled_for: Optional[datetime.datetime] = None
    priority: NotificationPriority = "normal"


class NotificationBulkUpdate(BaseModel):
    notification_ids: List[str]
    action: Literal["mark_read", "mark_unread", "delete"]


class MovieEventRequest(BaseModel):
    movie_id: str = Field(..., min_length=1)
    event_type: str = Field(..., min_length=1)
    custom_message: Optional[str] = None


class SubscriptionKeys(BaseModel):
    p256dh: str
    auth: str


class SubscribeRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    endpoint: HttpUrl
    keys: SubscriptionKeys


class UnsubscribeRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    endpoint: HttpUrl


class RegisterRequest(BaseModel):
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    name: str = Field(..., min_length=1)
    role: UserRole = UserRole.USER
    studio: Optional[str] = None
    website: Optional[HttpUrl] = None
    bio: Optional[str] = None


class LoginRequest(BaseModel):
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
