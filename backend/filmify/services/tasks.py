"""
tasks.py

Celery task definitions. Scheduled notifications are enqueued with an ETA
and materialised (stored + pushed) when the worker picks them up.
"""
import asyncio
import logging

from filmify.core.celery_app import celery_app
from filmify.core.database import SessionLocal
from filmify.core.redis_client import get_redis
from filmify.crud import UserNotFound
from filmify.services.notifications import PushSender, RedisSubscriptionStore, create_notification, push_payload

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3, default_retry_delay=60, name="send_scheduled_notification")
def send_scheduled_notification(self, payload: dict) -> dict:
    """Create and push a notification that was scheduled for later delivery."""
    db = SessionLocal()
    try:
        notification = create_notification(
            db,
            user_id=payload["user_id"],
            title=payload["title"],
            message=payload["message"],
            type=payload["type"],
            movie_id=payload.get("movie_id"),
            action_url=payload.get("action_url"),
            priority=payload.get("priority", "normal"),
        )
    except UserNotFound as e:
        # User was removed after scheduling; nothing to retry
        db.close()
        logger.warning(f"Scheduled notification dropped: {e}")
        return {"status": "dropped", "reason": str(e)}
    except Exception as e:
        db.close()
        logger.error(f"send_scheduled_notification failed: {e}")
        raise self.retry(exc=e)

    # Only persistence retries; delivery below is best effort
    try:
        async def _push():
            sender = PushSender(RedisSubscriptionStore(get_redis()))
            return await sender.send(notification.user_id, push_payload(notification))

        delivered = asyncio.run(_push())
    except Exception as e:
        logger.error(f"Push for scheduled notification {notification.id} failed: {e}")
        delivered = 0
    finally:
        db.close()
    return {"status": "sent", "notification_id": notification.id, "delivered": delivered}
