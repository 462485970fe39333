"""
review_platforms.py

Review sync from external platforms (IMDb, Google, Rotten Tomatoes, Metacritic).
- Platform access goes through an injectable async client.
- The bundled client serves canned reviews after a simulated delay; no real API calls.
- Scores arrive on the platform's native scale and are stored on 1-10.
- A failing platform is logged and skipped; the rest of the sync continues.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from filmify.core.config import settings
from filmify.models import Movie, Review
from filmify.services.rating_aggregator import REVIEW_PLATFORMS, normalize_platform_score

logger = logging.getLogger(__name__)


@dataclass
class RawReview:
    rating: float  # native platform scale
    title: Optional[str]
    content: str
    featured: bool = False


class ReviewPlatformClient(ABC):
    """Fetches raw reviews for a movie from one external platform."""

    @abstractmethod
    async def fetch_reviews(self, platform: str, movie: Movie) -> List[RawReview]:
        ...


_CANNED_REVIEWS: Dict[str, List[RawReview]] = {
    "imdb": [
        RawReview(8.5, "A Masterpiece of Modern Cinema",
                  "Absolutely brilliant filmmaking with outstanding performances and a compelling narrative.", True),
        RawReview(7.2, "Good but Not Great",
                  "Solid entertainment with some great moments, though it could have been tighter in the second half."),
        RawReview(9.1, "Must-Watch Film of the Year",
                  "This movie is everything cinema should be - thought-provoking, emotional, and visually stunning.", True),
    ],
    "google": [
        RawReview(4.2, "Amazing Experience", "Great movie with excellent visuals and storyline. Highly recommend!"),
        RawReview(3.8, "Good Movie", "Enjoyed watching it with family. Good entertainment value."),
    ],
    "rotten_tomatoes": [
        RawReview(85, "Fresh", "Critics consensus: A triumph of filmmaking that delivers on every level.", True),
    ],
    "metacritic": [
        RawReview(78, "Generally Favorable",
                  "Metacritic score: Strong performances and solid direction make this a worthwhile watch.", True),
    ],
}


class MockReviewPlatformClient(ReviewPlatformClient):
    """Simulated platform responses for development and demos."""

    def __init__(self, delay_seconds: Optional[float] = None):
        self.delay_seconds = settings.review_fetch_delay_seconds if delay_seconds is None else delay_seconds

    async def fetch_reviews(self, platform: str, movie: Movie) -> List[RawReview]:
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        return list(_CANNED_REVIEWS.get(platform, []))


def get_review_platform_client() -> ReviewPlatformClient:
    return MockReviewPlatformClient()


async def sync_platform_reviews(
    db: Session,
    movie: Movie,
    platforms: Iterable[str],
    client: ReviewPlatformClient,
) -> List[Review]:
    """Pull reviews for `movie` from each platform and store new ones.

    Platforms that already have reviews stored for this movie are skipped.
    """
    synced: List[Review] = []
    for platform in platforms:
        if platform not in REVIEW_PLATFORMS:
            logger.warning(f"Skipping unknown review platform: {platform}")
            continue
        try:
            raw_reviews = await client.fetch_reviews(platform, movie)
        except Exception as e:
            logger.error(f"Error syncing reviews from {platform} for movie {movie.id}: {e}")
            continue

        already_synced = db.query(Review.id).filter(
            Review.movie_id == movie.id,
            Review.source == platform,
        ).first()
        if already_synced:
            logger.info(f"Reviews from {platform} already stored for movie {movie.id}")
            continue

        try:
            created = [
                Review(
                    movie_id=movie.id,
                    rating=normalize_platform_score(platform, raw.rating),
                    title=raw.title,
                    content=raw.content,
                    source=platform,
                    verified=True,
                    featured=raw.featured,
                )
                for raw in raw_reviews
            ]
            db.add_all(created)
            db.commit()
            synced.extend(created)
            logger.info(f"Synced {len(created)} reviews from {platform} for movie {movie.id}")
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to store reviews from {platform} for movie {movie.id}: {e}")

    return synced
