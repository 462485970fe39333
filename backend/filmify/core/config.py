import os
from pydantic_settings import BaseSettings



class Settings(BaseSettings):
    db_user: str = os.getenv("POSTGRES_USER", "filmify")
    db_password: str = os.getenv("POSTGRES_PASSWORD", "filmify")
    db_name: str = os.getenv("POSTGRES_DB", "filmify")
    database_url: str = os.getenv(
        "DATABASE_URL",
        f"postgresql+psycopg2://{os.getenv('POSTGRES_USER', 'filmify')}:{os.getenv('POSTGRES_PASSWORD', 'filmify')}@db:5432/{os.getenv('POSTGRES_DB', 'filmify')}",
    )
    redis_url: str = os.getenv("REDIS_URL", "redis://redis:6379/0")

    # Purchases
    default_currency: str = os.getenv("FILMIFY_DEFAULT_CURRENCY", "USD")
    # Access window granted by a LIMITED_TIME purchase
    limited_time_window_hours: int = int(os.getenv("FILMIFY_LIMITED_TIME_HOURS", "48"))

    # Review aggregation: weight of platform-native (non-external) reviews
    internal_review_weight: float = float(os.getenv("FILMIFY_INTERNAL_REVIEW_WEIGHT", "0.2"))

    # Simulated latency of the mocked third-party collaborators (seconds)
    review_fetch_delay_seconds: float = float(os.getenv("FILMIFY_REVIEW_FETCH_DELAY", "1.5"))
    showtime_fetch_delay_seconds: float = float(os.getenv("FILMIFY_SHOWTIME_FETCH_DELAY", "1.0"))

    # Web push
    vapid_public_key: str = os.getenv("VAPID_PUBLIC_KEY", "")
    push_icon: str = os.getenv("FILMIFY_PUSH_ICON", "/icons/icon-192x192.png")
    push_badge: str = os.getenv("FILMIFY_PUSH_BADGE", "/icons/badge-72x72.png")

settings = Settings()
