"""
notifications.py

Viewer notifications: persistence, movie event fan-out, and web-push delivery.

Push subscriptions live behind a SubscriptionStore (Redis in production) that
callers pass in; nothing here keeps process-wide state. Delivery itself is a
logging stub: payloads are built as a push service would receive them.
"""
import json
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from filmify.core.config import settings
from filmify.crud import get_user, paginate
from filmify.models import Movie, Notification, User, UserRole

logger = logging.getLogger(__name__)

NOTIFICATION_TYPES = {
    "TRAILER_RELEASE": "trailer_release",
    "MOVIE_RELEASE": "movie_release",
    "STREAMING_AVAILABLE": "streaming_available",
    "OTT_RELEASE": "ott_release",
    "ANNOUNCEMENT": "announcement",
    "SYSTEM": "system",
    "REVIEW_ADDED": "review_added",
    "PRICE_DROP": "price_drop",
    "NEW_MOVIE_FROM_PRODUCER": "new_movie_from_producer",
}

PRIORITY_RANK = {"low": 0, "normal": 1, "high": 2}


class InvalidNotificationType(ValueError):
    pass


class SubscriptionStore(ABC):
    """Push subscriptions per viewer, keyed by endpoint."""

    @abstractmethod
    async def add(self, user_id: str, subscription: Dict) -> None:
        ...

    @abstractmethod
    async def remove(self, user_id: str, endpoint: str) -> bool:
        ...

    @abstractmethod
    async def list(self, user_id: str) -> List[Dict]:
        ...


class RedisSubscriptionStore(SubscriptionStore):
    """One Redis hash per viewer: endpoint -> JSON subscription."""

    def __init__(self, redis):
        self.redis = redis

    @staticmethod
    def _key(user_id: str) -> str:
        return f"push_subscriptions:{user_id}"

    async def add(self, user_id: str, subscription: Dict) -> None:
        await self.redis.hset(self._key(user_id), subscription["endpoint"], json.dumps(subscription))

    async def remove(self, user_id: str, endpoint: str) -> bool:
        return bool(await self.redis.hdel(self._key(user_id), endpoint))

    async def list(self, user_id: str) -> List[Dict]:
        raw = await self.redis.hgetall(self._key(user_id))
        subscriptions = []
        for endpoint, data in (raw or {}).items():
            try:
                subscriptions.append(json.loads(data))
            except (json.JSONDecodeError, TypeError) as e:
                logger.warning(f"Dropping unreadable push subscription {endpoint}: {e}")
        return subscriptions


class PushSender:
    def __init__(self, store: SubscriptionStore):
        self.store = store

    async def deliver(self, subscription: Dict, payload: Dict) -> None:
        # No push service is wired up; record what would be sent
        logger.info(f"Push to {subscription.get('endpoint')}: {payload.get('title')}")

    async def send(self, user_id: str, payload: Dict) -> int:
        """Deliver to every subscription of the viewer; returns successful deliveries.

        Push is best effort: an unreachable subscription store or a failed
        delivery is logged and never raised to the caller.
        """
        try:
            subscriptions = await self.store.list(user_id)
        except Exception as e:
            logger.error(f"Could not load push subscriptions for user {user_id}: {e}")
            return 0

        delivered = 0
        for subscription in subscriptions:
            endpoint = subscription.get("endpoint")
            try:
                await self.deliver(subscription, payload)
                delivered += 1
            except Exception as e:
                logger.error(f"Error sending push notification to user {user_id}: {e}")
                try:
                    await self.store.remove(user_id, endpoint)
                except Exception as remove_error:
                    logger.error(f"Could not drop push subscription {endpoint}: {remove_error}")
        return delivered


def push_payload(notification: Notification, action_url: Optional[str] = None, icon: Optional[str] = None) -> Dict:
    return {
        "title": notification.title,
        "message": notification.message,
        "icon": icon or settings.push_icon,
        "badge": settings.push_badge,
        "tag": f"filmify-{notification.type}",
        "data": {
            "movie_id": notification.movie_id,
            "action_url": action_url or notification.action_url,
            "notification_id": notification.id,
        },
    }


def validate_notification(db: Session, user_id: str, type: str) -> None:
    if type not in NOTIFICATION_TYPES.values():
        raise InvalidNotificationType(f"Unknown notification type: {type}")
    get_user(db, user_id)


def create_notification(
    db: Session,
    user_id: str,
    title: str,
    message: str,
    type: str,
    movie_id: Optional[str] = None,
    action_url: Optional[str] = None,
    priority: str = "normal",
    commit: bool = True,
) -> Notification:
    validate_notification(db, user_id, type)
    notification = Notification(
        user_id=user_id,
        movie_id=movie_id,
        title=title,
        message=message,
        type=type,
        priority=priority,
        priority_rank=PRIORITY_RANK.get(priority, 1),
        action_url=action_url,
    )
    db.add(notification)
    if commit:
        try:
            db.commit()
            db.refresh(notification)
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to create notification: {e}")
            raise
    return notification


def list_notifications(
    db: Session,
    user_id: Optional[str] = None,
    type: Optional[str] = None,
    unread: bool = False,
    page: int = 1,
    limit: int = 20,
) -> Dict:
    query = db.query(Notification)
    if user_id:
        query = query.filter(Notification.user_id == user_id)
    if type:
        query = query.filter(Notification.type == type)
    if unread:
        query = query.filter(Notification.read.is_(False))
    total = query.count()
    items = query.order_by(
        Notification.priority_rank.desc(),
        Notification.created_at.desc(),
    ).offset((page - 1) * limit).limit(limit).all()
    return {"notifications": items, "pagination": paginate(page, limit, total)}


def bulk_update(db: Session, notification_ids: List[str], action: str) -> int:
    query = db.query(Notification).filter(Notification.id.in_(notification_ids))
    try:
        if action == "delete":
            count = query.delete(synchronize_session=False)
        elif action in ("mark_read", "mark_unread"):
            count = query.update({Notification.read: action == "mark_read"}, synchronize_session=False)
        else:
            raise ValueError(f"Invalid action: {action}")
        db.commit()
        return count
    except Exception:
        db.rollback()
        raise


def event_notification_content(movie: Movie, event_type: str, custom_message: Optional[str] = None) -> Dict:
    """Title/message/type/priority for a movie event; unknown events become announcements."""
    title = movie.title
    ntype = NOTIFICATION_TYPES.get(event_type.upper(), NOTIFICATION_TYPES["ANNOUNCEMENT"])
    priority = "normal"
    if event_type == "trailer_release":
        heading = f"New Trailer: {title}"
        message = f'The trailer for "{title}" is now available!'
    elif event_type == "movie_release":
        heading = f"Now Playing: {title}"
        message = f'"{title}" is now in theaters!'
        priority = "high"
    elif event_type == "streaming_available":
        heading = f"Now Streaming: {title}"
        message = f'Watch "{title}" now on Filmify!'
        priority = "high"
    elif event_type == "ott_release":
        heading = f"On OTT: {title}"
        message = f'"{title}" is now available on OTT platforms!'
    else:
        heading = f"Update: {title}"
        message = f'New update for "{title}"'
    return {
        "title": heading,
        "message": custom_message or message,
        "type": ntype,
        "priority": priority,
    }


async def notify_movie_event(
    db: Session,
    movie: Movie,
    event_type: str,
    sender: PushSender,
    custom_message: Optional[str] = None,
) -> List[Notification]:
    """Notify every viewer and the movie's producer about a movie event."""
    content = event_notification_content(movie, event_type, custom_message)
    recipients = db.query(User).filter(
        (User.role == UserRole.USER.value) | (User.id == movie.producer_id)
    ).all()
    action_url = f"/movie/{movie.slug}"

    try:
        notifications = [
            create_notification(
                db,
                user_id=user.id,
                movie_id=movie.id,
                action_url=action_url,
                commit=False,
                **content,
            )
            for user in recipients
        ]
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create event notifications for movie {movie.id}: {e}")
        raise

    for notification in notifications:
        await sender.send(notification.user_id, push_payload(notification, action_url, icon=movie.poster_url))
    logger.info(f"Sent {len(notifications)} '{event_type}' notifications for movie {movie.id}")
    return notifications
