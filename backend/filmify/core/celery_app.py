from celery import Celery
from filmify.core.config import settings
from filmify.utils.logger import logger
import os

celery_app = Celery(
    "filmify",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["filmify.services.tasks"]
)

celery_app.conf.update(
    result_expires=3600,
    task_acks_late=True,
    worker_prefetch_multiplier=1,

    # Connection settings
    broker_connection_retry_on_startup=True,
    broker_pool_limit=10,

    task_routes={
        'send_scheduled_notification': {'queue': 'notifications'},
    },
    timezone=os.getenv("FILMIFY_TIMEZONE") or os.getenv("TZ") or "UTC",
    enable_utc=True,

    # Task logs go through the filmify console handler
    worker_hijack_root_logger=False,
)

logger.info(f"Celery app configured with broker {settings.redis_url.split('@')[-1]}")
