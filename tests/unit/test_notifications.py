import asyncio
from datetime import timedelta

import pytest
from sqlalchemy.orm import sessionmaker

from filmify.api import notifications as notifications_api
from filmify.main import app
from filmify.models import Notification, UserRole
from filmify.services import tasks
from filmify.services.notifications import (
    PushSender,
    SubscriptionStore,
    create_notification,
    event_notification_content,
)
from filmify.utils.timezone import utc_now

ENDPOINT = "https://push.example.com/send/abc123"
KEYS = {"p256dh": "key", "auth": "secret"}


def notification_body(user_id, **overrides):
    body = {
        "title": "Premiere tonight",
        "message": "Doors open at 7.",
        "type": "announcement",
        "user_id": user_id,
    }
    body.update(overrides)
    return body


class BrokenPushSender(PushSender):
    async def deliver(self, subscription, payload):
        raise ConnectionError("gone")


def test_create_notification_immediately(client, make_user):
    viewer = make_user()

    response = client.post("/api/notifications", json=notification_body(viewer.id, priority="high"))

    assert response.status_code == 201
    assert response.json()["priority"] == "high"
    assert response.json()["read"] is False


def test_create_notification_validation(client, make_user):
    viewer = make_user()

    assert client.post("/api/notifications", json=notification_body("nobody")).status_code == 404
    assert client.post("/api/notifications", json=notification_body(viewer.id, type="spam")).status_code == 400
    assert client.post("/api/notifications", json=notification_body(viewer.id, title="")).status_code == 422


def test_future_notification_is_scheduled(client, make_user, db, monkeypatch):
    viewer = make_user()
    enqueued = []

    class FakeTask:
        def apply_async(self, args=None, eta=None):
            enqueued.append((args, eta))

    monkeypatch.setattr(notifications_api, "send_scheduled_notification", FakeTask())
    when = utc_now() + timedelta(hours=2)

    response = client.post("/api/notifications", json=notification_body(viewer.id, scheduled_for=when.isoformat()))

    assert response.status_code == 201
    assert response.json()["message"] == "Notification scheduled successfully"
    assert len(enqueued) == 1
    args, eta = enqueued[0]
    assert args[0]["user_id"] == viewer.id
    assert eta == when
    assert db.query(Notification).count() == 0


def test_scheduled_task_creates_notification(engine, db, make_user, subscription_store, monkeypatch):
    viewer = make_user()
    monkeypatch.setattr(tasks, "SessionLocal", sessionmaker(bind=engine))
    monkeypatch.setattr(tasks, "get_redis", lambda: None)
    monkeypatch.setattr(tasks, "RedisSubscriptionStore", lambda redis: subscription_store)
    asyncio.run(subscription_store.add(viewer.id, {"endpoint": ENDPOINT, "keys": KEYS}))

    result = tasks.send_scheduled_notification.run(notification_body(viewer.id))

    assert result["status"] == "sent"
    assert result["delivered"] == 1
    assert db.query(Notification).filter(Notification.user_id == viewer.id).count() == 1


def test_scheduled_task_drops_removed_user(engine, monkeypatch):
    monkeypatch.setattr(tasks, "SessionLocal", sessionmaker(bind=engine))

    result = tasks.send_scheduled_notification.run(notification_body("gone"))

    assert result["status"] == "dropped"


def test_listing_orders_by_priority_then_recency(client, db, make_user):
    viewer = make_user()
    for title, priority in [("low", "low"), ("high", "high"), ("normal", "normal")]:
        create_notification(db, viewer.id, title, "msg", "system", priority=priority)

    body = client.get("/api/notifications", params={"user_id": viewer.id}).json()

    assert [n["title"] for n in body["notifications"]] == ["high", "normal", "low"]
    assert body["pagination"]["total"] == 3


def test_bulk_mark_read_and_delete(client, db, make_user):
    viewer = make_user()
    ids = [create_notification(db, viewer.id, f"n{i}", "msg", "system").id for i in range(3)]

    marked = client.patch("/api/notifications", json={"notification_ids": ids[:2], "action": "mark_read"})
    unread = client.get("/api/notifications", params={"user_id": viewer.id, "unread": True}).json()
    deleted = client.patch("/api/notifications", json={"notification_ids": ids, "action": "delete"})

    assert marked.json()["count"] == 2
    assert [n["id"] for n in unread["notifications"]] == [ids[2]]
    assert deleted.json()["count"] == 3
    assert db.query(Notification).count() == 0


def test_movie_event_reaches_viewers_and_producer(client, db, make_user, make_movie, producer):
    viewers = [make_user(), make_user()]
    make_user(role=UserRole.PRODUCER)
    movie = make_movie(title="Night Train", slug="night-train")

    response = client.put("/api/notifications/events", json={"movie_id": movie.id, "event_type": "movie_release"})

    assert response.status_code == 200
    assert response.json()["message"] == "Sent 3 notifications"
    recipients = {n.user_id for n in db.query(Notification)}
    assert recipients == {viewers[0].id, viewers[1].id, producer.id}
    sample = db.query(Notification).first()
    assert sample.title == "Now Playing: Night Train"
    assert sample.priority == "high"
    assert sample.action_url == "/movie/night-train"


def test_movie_event_unknown_movie(client):
    response = client.put("/api/notifications/events", json={"movie_id": "missing", "event_type": "trailer_release"})

    assert response.status_code == 404


def test_unknown_event_becomes_announcement(make_movie):
    movie = make_movie(title="Night Train")

    content = event_notification_content(movie, "behind_the_scenes", "Watch the making-of")

    assert content["type"] == "announcement"
    assert content["title"] == "Update: Night Train"
    assert content["message"] == "Watch the making-of"


def test_subscribe_and_unsubscribe(client, subscription_store, make_user):
    viewer = make_user()

    subscribed = client.post("/api/notifications/subscribe", json={"user_id": viewer.id, "endpoint": ENDPOINT, "keys": KEYS})
    assert subscribed.status_code == 200
    assert [s["endpoint"] for s in asyncio.run(subscription_store.list(viewer.id))] == [ENDPOINT]

    client.post("/api/notifications/unsubscribe", json={"user_id": viewer.id, "endpoint": ENDPOINT})
    assert asyncio.run(subscription_store.list(viewer.id)) == []


def test_failed_delivery_drops_subscription(subscription_store):
    asyncio.run(subscription_store.add("viewer-1", {"endpoint": ENDPOINT, "keys": KEYS}))
    sender = BrokenPushSender(subscription_store)

    delivered = asyncio.run(sender.send("viewer-1", {"title": "hello"}))

    assert delivered == 0
    assert asyncio.run(subscription_store.list("viewer-1")) == []


class UnreachableStore(SubscriptionStore):
    async def add(self, user_id, subscription):
        raise ConnectionError("redis down")

    async def remove(self, user_id, endpoint):
        raise ConnectionError("redis down")

    async def list(self, user_id):
        raise ConnectionError("redis down")


def test_unreachable_store_does_not_fail_creation(client, db, make_user):
    viewer = make_user()
    app.dependency_overrides[notifications_api.get_subscription_store] = lambda: UnreachableStore()

    response = client.post("/api/notifications", json=notification_body(viewer.id))

    assert response.status_code == 201
    assert db.query(Notification).count() == 1


def test_unreachable_store_does_not_stop_event_fan_out(client, db, make_user, make_movie):
    make_user()
    make_user()
    movie = make_movie()
    app.dependency_overrides[notifications_api.get_subscription_store] = lambda: UnreachableStore()

    response = client.put("/api/notifications/events", json={"movie_id": movie.id, "event_type": "trailer_release"})

    assert response.status_code == 200
    assert response.json()["message"] == "Sent 3 notifications"


def test_scheduled_task_stores_once_when_push_fails(engine, db, make_user, monkeypatch):
    viewer = make_user()
    monkeypatch.setattr(tasks, "SessionLocal", sessionmaker(bind=engine))
    monkeypatch.setattr(tasks, "get_redis", lambda: None)
    monkeypatch.setattr(tasks, "RedisSubscriptionStore", lambda redis: UnreachableStore())

    result = tasks.send_scheduled_notification.run(notification_body(viewer.id))

    assert result["status"] == "sent"
    assert result["delivered"] == 0
    assert db.query(Notification).filter(Notification.user_id == viewer.id).count() == 1


def test_unsubscribe_matches_normalised_endpoint(client, subscription_store, make_user):
    viewer = make_user()
    bare = "https://push.example.com"

    client.post("/api/notifications/subscribe", json={"user_id": viewer.id, "endpoint": bare, "keys": KEYS})
    client.post("/api/notifications/unsubscribe", json={"user_id": viewer.id, "endpoint": bare})

    assert asyncio.run(subscription_store.list(viewer.id)) == []


def test_incomplete_store_cannot_be_instantiated():
    class AddOnlyStore(SubscriptionStore):
        async def add(self, user_id, subscription):
            pass

    with pytest.raises(TypeError):
        AddOnlyStore()
