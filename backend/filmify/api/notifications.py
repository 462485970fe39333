"""
notifications.py

API endpoints for viewer notifications, movie event broadcasts and web-push
subscriptions.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional
import logging

from ..core.config import settings
from ..core.database import get_db
from ..core.redis_client import get_redis
from ..crud import get_movie, MovieNotFound, UserNotFound
from ..schemas import (
    MovieEventRequest,
    NotificationBulkUpdate,
    NotificationCreate,
    NotificationSchema,
    SubscribeRequest,
    UnsubscribeRequest,
)
from ..services.notifications import (
    InvalidNotificationType,
    PushSender,
    RedisSubscriptionStore,
    SubscriptionStore,
    bulk_update,
    create_notification,
    list_notifications,
    notify_movie_event,
    push_payload,
    validate_notification,
)
from ..services.tasks import send_scheduled_notification
from ..utils.timezone import utc_now, ensure_utc

router = APIRouter()
logger = logging.getLogger(__name__)


def get_subscription_store() -> SubscriptionStore:
    return RedisSubscriptionStore(get_redis())


def get_push_sender(store: SubscriptionStore = Depends(get_subscription_store)) -> PushSender:
    return PushSender(store)


@router.get("")
async def get_notifications(
    user_id: Optional[str] = None,
    type: Optional[str] = None,
    unread: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Paginated notifications, high priority first, then newest."""
    try:
        result = list_notifications(db, user_id=user_id, type=type, unread=unread, page=page, limit=limit)
        return {
            "notifications": [NotificationSchema.model_validate(n).model_dump(mode="json") for n in result["notifications"]],
            "pagination": result["pagination"],
        }
    except Exception as e:
        logger.error(f"Error fetching notifications: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch notifications")


@router.post("", status_code=201)
async def post_notification(
    payload: NotificationCreate,
    db: Session = Depends(get_db),
    sender: PushSender = Depends(get_push_sender),
):
    """Create and push a notification now, or schedule it for later."""
    try:
        if payload.scheduled_for and ensure_utc(payload.scheduled_for) > utc_now():
            # Validate up front; the worker re-checks the recipient on delivery
            validate_notification(db, payload.user_id, payload.type)
            task_payload = _notification_fields(payload)
            send_scheduled_notification.apply_async(args=[task_payload], eta=ensure_utc(payload.scheduled_for))
            logger.info(f"Scheduled notification for user {payload.user_id} at {payload.scheduled_for}")
            return {
                "message": "Notification scheduled successfully",
                "scheduled_for": ensure_utc(payload.scheduled_for).isoformat(),
            }

        notification = create_notification(db, **_notification_fields(payload))
        await sender.send(payload.user_id, push_payload(notification))
        return NotificationSchema.model_validate(notification).model_dump(mode="json")
    except UserNotFound:
        raise HTTPException(status_code=404, detail="User not found")
    except InvalidNotificationType as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating notification: {e}")
        raise HTTPException(status_code=500, detail="Failed to create notification")


def _notification_fields(payload: NotificationCreate) -> dict:
    return {
        "user_id": payload.user_id,
        "title": payload.title,
        "message": payload.message,
        "type": payload.type,
        "movie_id": payload.movie_id,
        "action_url": payload.action_url,
        "priority": payload.priority,
    }


@router.patch("")
async def update_notifications(payload: NotificationBulkUpdate, db: Session = Depends(get_db)):
    """Bulk mark read/unread or delete."""
    try:
        count = bulk_update(db, payload.notification_ids, payload.action)
        if payload.action == "delete":
            return {"message": f"Deleted {count} notifications", "count": count}
        return {"message": f"Updated {count} notifications", "count": count}
    except Exception as e:
        logger.error(f"Error updating notifications: {e}")
        raise HTTPException(status_code=500, detail="Failed to update notifications")


@router.put("/events")
async def broadcast_movie_event(
    payload: MovieEventRequest,
    db: Session = Depends(get_db),
    sender: PushSender = Depends(get_push_sender),
):
    """Fan a movie event (trailer, release, streaming...) out to viewers and the producer."""
    try:
        movie = get_movie(db, payload.movie_id)
        notifications = await notify_movie_event(db, movie, payload.event_type, sender, payload.custom_message)
        return {
            "message": f"Sent {len(notifications)} notifications",
            "event_type": payload.event_type,
            "movie_title": movie.title,
        }
    except MovieNotFound:
        raise HTTPException(status_code=404, detail="Movie not found")
    except Exception as e:
        logger.error(f"Error sending bulk notifications: {e}")
        raise HTTPException(status_code=500, detail="Failed to send notifications")


@router.post("/subscribe")
async def subscribe(payload: SubscribeRequest, store: SubscriptionStore = Depends(get_subscription_store)):
    try:
        subscription = payload.model_dump(mode="json")
        await store.add(payload.user_id, subscription)
        return {
            "message": "Subscribed to push notifications successfully",
            "vapid_public_key": settings.vapid_public_key,
        }
    except Exception as e:
        logger.error(f"Error saving push subscription: {e}")
        raise HTTPException(status_code=500, detail="Failed to subscribe")


@router.post("/unsubscribe")
async def unsubscribe(payload: UnsubscribeRequest, store: SubscriptionStore = Depends(get_subscription_store)):
    try:
        await store.remove(payload.user_id, str(payload.endpoint))
        return {"message": "Unsubscribed successfully"}
    except Exception as e:
        logger.error(f"Error removing push subscription: {e}")
        raise HTTPException(status_code=500, detail="Failed to unsubscribe")
