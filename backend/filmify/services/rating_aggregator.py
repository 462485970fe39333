"""
rating_aggregator.py

Weighted review aggregation across external review platforms and
platform-native ("users") reviews.

Every stored review is on the 1-10 scale. Reviews are grouped by origin,
each non-empty group contributes its mean times its weight, and the sum is
normalised by the weights of the groups actually present. A group with a
single review is taken at face value; there is no minimum-sample floor.
"""
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from filmify.core.config import settings

INTERNAL_GROUP = "users"
INTERNAL_GROUP_NAME = "User Reviews"

# Origin tag -> display name, native rating scale maximum, weight in the aggregate
REVIEW_PLATFORMS: Dict[str, Dict] = {
    "imdb": {
        "name": "IMDb",
        "base_url": "https://www.imdb.com",
        "max_rating": 10,
        "weight": 0.4,
    },
    "google": {
        "name": "Google Reviews",
        "base_url": "https://www.google.com/search",
        "max_rating": 5,
        "weight": 0.3,
    },
    "rotten_tomatoes": {
        "name": "Rotten Tomatoes",
        "base_url": "https://www.rottentomatoes.com",
        "max_rating": 100,
        "weight": 0.2,
    },
    "metacritic": {
        "name": "Metacritic",
        "base_url": "https://www.metacritic.com",
        "max_rating": 100,
        "weight": 0.1,
    },
}

MIN_SCORE = 1.0
MAX_SCORE = 10.0


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with .5 going up, unlike the builtin's round-half-to-even."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def normalize_platform_score(platform: str, native_score: float) -> float:
    """Map a score on the platform's native scale onto 1-10."""
    max_rating = REVIEW_PLATFORMS[platform]["max_rating"]
    score = float(native_score) * MAX_SCORE / max_rating
    return min(MAX_SCORE, max(MIN_SCORE, score))


def origin_group(source: Optional[str]) -> str:
    return source if source in REVIEW_PLATFORMS else INTERNAL_GROUP


def bucket_for(score: float) -> int:
    """Five-star bucket for a 1-10 score: round(score / 2) half-up, clamped to 1..5."""
    return int(min(5, max(1, round_half_up(score / 2))))


def rating_distribution(scores: Iterable[float]) -> Dict[int, int]:
    distribution = {5: 0, 4: 0, 3: 0, 2: 0, 1: 0}
    for score in scores:
        distribution[bucket_for(score)] += 1
    return distribution


@dataclass
class GroupSummary:
    name: str
    average_rating: float
    count: int
    weight: float

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "average_rating": self.average_rating,
            "count": self.count,
            "weight": self.weight,
        }


@dataclass
class AggregatedRating:
    average_rating: float
    total_reviews: int
    platform_breakdown: Dict[str, GroupSummary] = field(default_factory=dict)
    distribution: Dict[int, int] = field(default_factory=lambda: rating_distribution([]))

    def to_dict(self) -> Dict:
        return {
            "average_rating": self.average_rating,
            "total_reviews": self.total_reviews,
            "platform_breakdown": {k: v.to_dict() for k, v in self.platform_breakdown.items()},
            "distribution": self.distribution,
        }


def aggregate_ratings(reviews: Iterable, internal_weight: Optional[float] = None) -> AggregatedRating:
    """Aggregate reviews (anything with `.rating` and `.source`) for one movie."""
    if internal_weight is None:
        internal_weight = settings.internal_review_weight

    groups: Dict[str, List[float]] = {}
    scores: List[float] = []
    for review in reviews:
        groups.setdefault(origin_group(review.source), []).append(review.rating)
        scores.append(review.rating)

    breakdown: Dict[str, GroupSummary] = {}
    weighted_sum = 0.0
    total_weight = 0.0
    # Platforms first in table order, then the internal group
    for key in [*REVIEW_PLATFORMS, INTERNAL_GROUP]:
        members = groups.get(key)
        if not members:
            continue
        if key == INTERNAL_GROUP:
            name, weight = INTERNAL_GROUP_NAME, internal_weight
        else:
            name, weight = REVIEW_PLATFORMS[key]["name"], REVIEW_PLATFORMS[key]["weight"]
        mean = sum(members) / len(members)
        breakdown[key] = GroupSummary(name=name, average_rating=mean, count=len(members), weight=weight)
        weighted_sum += mean * weight
        total_weight += weight

    average = weighted_sum / total_weight if total_weight > 0 else 0.0
    return AggregatedRating(
        average_rating=round_half_up(average, 1),
        total_reviews=len(scores),
        platform_breakdown=breakdown,
        distribution=rating_distribution(scores),
    )
