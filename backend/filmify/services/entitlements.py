"""
entitlements.py

Streaming access decisions and the purchase transition that grants access.

`decide_access` and `validate_purchase` are pure; `check_access` and
`create_purchase` wrap them with the database lookups they need.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from filmify.core.config import settings
from filmify.crud import MovieNotFound
from filmify.models import Movie, Purchase, PurchaseStatus, StreamingType
from filmify.utils.timezone import utc_now, ensure_utc, format_iso_utc

logger = logging.getLogger(__name__)

REASON_STREAMING_DISABLED = "Streaming not enabled"
REASON_FREE = "Free content"
REASON_VALID_PURCHASE = "Valid purchase"
REASON_PURCHASE_REQUIRED = "Purchase required"

REJECT_DUPLICATE = "User already has an active purchase for this movie"
REJECT_AMOUNT = "Invalid purchase amount"


class PurchaseRejected(Exception):
    """Business-rule rejection of a purchase; `reason` is safe to show to the caller."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


@dataclass
class AccessDecision:
    has_access: bool
    reason: str
    streaming_type: str
    price: Optional[float]
    purchase_id: Optional[str] = None
    expires_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        data = {
            "has_access": self.has_access,
            "reason": self.reason,
            "streaming_type": self.streaming_type,
            "price": self.price,
        }
        if self.purchase_id is not None:
            data["purchase"] = {
                "id": self.purchase_id,
                "expires_at": format_iso_utc(self.expires_at),
            }
        return data


def is_active(purchase: Purchase, now: datetime) -> bool:
    """COMPLETED and either perpetual or not yet expired."""
    if purchase.status != PurchaseStatus.COMPLETED.value:
        return False
    return purchase.expires_at is None or ensure_utc(purchase.expires_at) > ensure_utc(now)


def decide_access(movie: Movie, active_purchase: Optional[Purchase]) -> AccessDecision:
    """Decide playback access; the first matching rule wins.

    `active_purchase` must already satisfy `is_active`, it is only consulted
    for paid modes.
    """
    mode = movie.streaming_type
    # Open titles never report a price
    price = None if mode == StreamingType.FREE.value else movie.price
    if not movie.streaming_enabled:
        return AccessDecision(False, REASON_STREAMING_DISABLED, mode, price)
    if mode == StreamingType.FREE.value:
        return AccessDecision(True, REASON_FREE, mode, price)
    if active_purchase is not None:
        return AccessDecision(
            True,
            REASON_VALID_PURCHASE,
            mode,
            price,
            purchase_id=active_purchase.id,
            expires_at=ensure_utc(active_purchase.expires_at),
        )
    return AccessDecision(False, REASON_PURCHASE_REQUIRED, mode, price)


def find_active_purchase(db: Session, movie_id: str, user_id: str, now: datetime) -> Optional[Purchase]:
    return db.query(Purchase).filter(
        Purchase.movie_id == movie_id,
        Purchase.user_id == user_id,
        Purchase.status == PurchaseStatus.COMPLETED.value,
        or_(Purchase.expires_at.is_(None), Purchase.expires_at > now),
    ).order_by(Purchase.created_at.desc()).first()


def check_access(db: Session, movie: Movie, user_id: str, now: Optional[datetime] = None) -> AccessDecision:
    now = now or utc_now()
    purchase = None
    if movie.streaming_enabled and movie.streaming_type != StreamingType.FREE.value:
        purchase = find_active_purchase(db, movie.id, user_id, now)
    return decide_access(movie, purchase)


def validate_purchase(movie: Movie, amount: float, existing: Optional[Purchase]) -> None:
    """Raise PurchaseRejected unless a new purchase may be recorded."""
    if existing is not None:
        raise PurchaseRejected(REJECT_DUPLICATE)
    if movie.streaming_type == StreamingType.PAY_PER_VIEW.value and movie.price != amount:
        raise PurchaseRejected(REJECT_AMOUNT)


def expiry_for(movie: Movie, created_at: datetime) -> Optional[datetime]:
    if movie.streaming_type == StreamingType.LIMITED_TIME.value:
        return ensure_utc(created_at) + timedelta(hours=settings.limited_time_window_hours)
    return None


def create_purchase(
    db: Session,
    movie_id: str,
    user_id: str,
    amount: float,
    currency: Optional[str] = None,
    payment_method: Optional[str] = None,
    transaction_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Purchase:
    """Record a completed purchase.

    Settlement has already happened by the time this runs. The movie row is
    locked for the duplicate check and insert so concurrent attempts for the
    same title are serialised (row locks are a no-op on SQLite).
    """
    now = now or utc_now()
    try:
        movie = db.query(Movie).filter(Movie.id == movie_id).with_for_update().first()
        if not movie:
            raise MovieNotFound(movie_id)

        existing = find_active_purchase(db, movie_id, user_id, now)
        validate_purchase(movie, amount, existing)

        purchase = Purchase(
            movie_id=movie_id,
            user_id=user_id,
            amount=amount,
            currency=currency or settings.default_currency,
            status=PurchaseStatus.COMPLETED.value,
            payment_method=payment_method,
            transaction_id=transaction_id,
            expires_at=expiry_for(movie, now),
            created_at=now,
        )
        db.add(purchase)
        movie.purchases = (movie.purchases or 0) + 1
        db.commit()
        db.refresh(purchase)
        logger.info(f"Recorded purchase {purchase.id} of movie {movie_id} for user {user_id}")
        return purchase
    except (MovieNotFound, PurchaseRejected) as e:
        db.rollback()
        logger.info(f"Purchase of movie {movie_id} by user {user_id} rejected: {e}")
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create purchase: {e}")
        raise
