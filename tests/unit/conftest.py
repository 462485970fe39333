import os

# Settings are read at import time; point everything at throwaway local backends
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ["FILMIFY_REVIEW_FETCH_DELAY"] = "0"
os.environ["FILMIFY_SHOWTIME_FETCH_DELAY"] = "0"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from filmify.api.notifications import get_subscription_store
from filmify.core.database import get_db
from filmify.main import app
from filmify.models import Base, Movie, User, UserRole
from filmify.services.notifications import SubscriptionStore
from filmify.services.review_platforms import MockReviewPlatformClient, get_review_platform_client


class InMemorySubscriptionStore(SubscriptionStore):
    def __init__(self):
        self.subscriptions = {}

    async def add(self, user_id, subscription):
        self.subscriptions.setdefault(user_id, {})[subscription["endpoint"]] = subscription

    async def remove(self, user_id, endpoint):
        return self.subscriptions.get(user_id, {}).pop(endpoint, None) is not None

    async def list(self, user_id):
        return list(self.subscriptions.get(user_id, {}).values())


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def subscription_store():
    return InMemorySubscriptionStore()


@pytest.fixture
def client(db, subscription_store):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_subscription_store] = lambda: subscription_store
    app.dependency_overrides[get_review_platform_client] = lambda: MockReviewPlatformClient(delay_seconds=0)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role=UserRole.USER, **kwargs):
        counter["n"] += 1
        user = User(
            email=kwargs.pop("email", f"user{counter['n']}@example.com"),
            name=kwargs.pop("name", f"User {counter['n']}"),
            role=role.value,
            **kwargs,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def producer(make_user):
    return make_user(role=UserRole.PRODUCER, name="Lumen Studios", studio="Lumen")


@pytest.fixture
def make_movie(db, producer):
    counter = {"n": 0}

    def _make(title=None, **kwargs):
        counter["n"] += 1
        title = title or f"Movie {counter['n']}"
        fields = {
            "slug": kwargs.pop("slug", f"movie-{counter['n']}"),
            "title": title,
            "synopsis": "A story.",
            "genre": "Drama",
            "language": "English",
            "duration": 120,
            "streaming_enabled": True,
            "streaming_type": "FREE",
            "producer_id": producer.id,
        }
        fields.update(kwargs)
        movie = Movie(**fields)
        db.add(movie)
        db.commit()
        db.refresh(movie)
        return movie

    return _make
