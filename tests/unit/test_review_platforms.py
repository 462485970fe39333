import asyncio

import pytest

from filmify.models import Review
from filmify.services.review_platforms import (
    MockReviewPlatformClient,
    RawReview,
    ReviewPlatformClient,
    sync_platform_reviews,
)


class FlakyClient(ReviewPlatformClient):
    """Google is down; everything else answers with one review."""

    def __init__(self):
        self.calls = []

    async def fetch_reviews(self, platform, movie):
        self.calls.append(platform)
        if platform == "google":
            raise ConnectionError("google unavailable")
        return [RawReview(rating=80 if platform == "rotten_tomatoes" else 8, title=None, content="ok")]


def test_failing_platform_is_skipped(db, make_movie):
    movie = make_movie()
    client = FlakyClient()

    synced = asyncio.run(sync_platform_reviews(db, movie, ["imdb", "google", "rotten_tomatoes"], client))

    assert client.calls == ["imdb", "google", "rotten_tomatoes"]
    assert sorted(r.source for r in synced) == ["imdb", "rotten_tomatoes"]
    stored = {r.source: r.rating for r in db.query(Review).filter(Review.movie_id == movie.id)}
    assert stored == {"imdb": 8.0, "rotten_tomatoes": 8.0}
    assert all(r.verified for r in synced)


def test_canned_reviews_are_normalised(db, make_movie):
    movie = make_movie()

    synced = asyncio.run(sync_platform_reviews(db, movie, ["google"], MockReviewPlatformClient(delay_seconds=0)))

    assert sorted(r.rating for r in synced) == pytest.approx([7.6, 8.4])
    assert {r.source for r in synced} == {"google"}


def test_already_synced_platform_is_not_duplicated(db, make_movie):
    movie = make_movie()
    client = MockReviewPlatformClient(delay_seconds=0)
    asyncio.run(sync_platform_reviews(db, movie, ["imdb"], client))

    again = asyncio.run(sync_platform_reviews(db, movie, ["imdb", "metacritic"], client))

    assert [r.source for r in again] == ["metacritic"]
    assert db.query(Review).filter(Review.source == "imdb").count() == 3


def test_unknown_platform_is_ignored(db, make_movie):
    movie = make_movie()
    client = FlakyClient()

    synced = asyncio.run(sync_platform_reviews(db, movie, ["letterboxd"], client))

    assert synced == []
    assert client.calls == []


def test_client_must_implement_fetch():
    class Unfinished(ReviewPlatformClient):
        pass

    with pytest.raises(TypeError):
        Unfinished()
