"""
models.py

SQLAlchemy models for User, Movie, Purchase, Review, and Notification.
"""
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Float, Text, Index
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import relationship
import enum
import uuid
from filmify.utils.timezone import utc_now

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


class StreamingType(str, enum.Enum):
    """Monetization mode of a movie."""
    FREE = "FREE"
    PAY_PER_VIEW = "PAY_PER_VIEW"
    SUBSCRIPTION = "SUBSCRIPTION"
    LIMITED_TIME = "LIMITED_TIME"


class PurchaseStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class UserRole(str, enum.Enum):
    USER = "USER"
    PRODUCER = "PRODUCER"


class User(Base):
    __tablename__ = "users"
    id = Column(String, primary_key=True, default=_uuid)
    email = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False, default=UserRole.USER.value, index=True)
    verified = Column(Boolean, default=False)
    verification_token = Column(String, nullable=True)
    studio = Column(String, nullable=True)
    website = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utc_now)

    movies = relationship("Movie", back_populates="producer")


class Movie(Base):
    __tablename__ = "movies"
    id = Column(String, primary_key=True, default=_uuid)
    slug = Column(String, unique=True, nullable=False, index=True)
    title = Column(String, nullable=False)
    synopsis = Column(Text, nullable=False)
    story = Column(Text, nullable=True)
    genre = Column(String, nullable=False, index=True)
    language = Column(String, nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    certification = Column(String, nullable=True)
    release_date = Column(DateTime, nullable=True)
    director_name = Column(String, nullable=True)
    producer_name = Column(String, nullable=True)
    cast = Column(Text, nullable=True)  # JSON array of names
    crew = Column(Text, nullable=True)  # JSON array of names
    ott_platforms = Column(Text, nullable=True)  # JSON array
    ticketing_urls = Column(Text, nullable=True)  # JSON object keyed "{platform}_{region}"
    poster_url = Column(String, nullable=True)
    trailer_url = Column(String, nullable=True)
    status = Column(String, default="DRAFT", index=True)
    featured = Column(Boolean, default=False, index=True)
    streaming_enabled = Column(Boolean, default=False)
    streaming_type = Column(String, nullable=False, default=StreamingType.FREE.value)
    price = Column(Float, nullable=True)  # required unless streaming_type is FREE
    views = Column(Integer, default=0)
    purchases = Column(Integer, default=0)
    producer_id = Column(String, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    producer = relationship("User", back_populates="movies")
    reviews = relationship("Review", back_populates="movie", cascade="all, delete-orphan")
    purchase_records = relationship("Purchase", back_populates="movie", cascade="all, delete-orphan")
    notifications = relationship("Notification", cascade="all, delete-orphan")


class Purchase(Base):
    """Entitlement granting one viewer access to one movie, optionally until expires_at."""
    __tablename__ = "purchases"
    id = Column(String, primary_key=True, default=_uuid)
    movie_id = Column(String, ForeignKey("movies.id"), nullable=False)
    user_id = Column(String, nullable=False)  # opaque viewer identifier
    amount = Column(Float, nullable=False)
    currency = Column(String, nullable=False, default="USD")
    status = Column(String, nullable=False, default=PurchaseStatus.PENDING.value)
    payment_method = Column(String, nullable=True)
    transaction_id = Column(String, nullable=True)
    expires_at = Column(DateTime, nullable=True)  # LIMITED_TIME only
    created_at = Column(DateTime, default=utc_now)

    movie = relationship("Movie", back_populates="purchase_records")

    __table_args__ = (
        Index('ix_purchases_movie_user_status', 'movie_id', 'user_id', 'status'),
    )


class Review(Base):
    __tablename__ = "reviews"
    id = Column(String, primary_key=True, default=_uuid)
    movie_id = Column(String, ForeignKey("movies.id"), nullable=False, index=True)
    user_id = Column(String, nullable=True)
    rating = Column(Float, nullable=False)  # always on the 1-10 scale
    title = Column(String, nullable=True)
    content = Column(Text, nullable=False)
    source = Column(String, nullable=True, index=True)  # None/unknown = platform-native review
    verified = Column(Boolean, default=False)
    featured = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utc_now)

    movie = relationship("Movie", back_populates="reviews")


class Notification(Base):
    __tablename__ = "notifications"
    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    movie_id = Column(String, ForeignKey("movies.id"), nullable=True)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String, nullable=False, index=True)
    priority = Column(String, nullable=False, default="normal")
    priority_rank = Column(Integer, nullable=False, default=1)  # low=0, normal=1, high=2; used for ordering
    action_url = Column(String, nullable=True)
    read = Column(Boolean, default=False, index=True)
    created_at = Column(DateTime, default=utc_now)
