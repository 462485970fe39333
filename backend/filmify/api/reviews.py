"""
reviews.py

API endpoints for movie reviews: listing, posting, syncing from external
platforms, and the cross-platform weighted aggregate.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional
import logging

from ..core.database import get_db
from ..crud import get_movie, paginate, MovieNotFound
from ..models import Review
from ..schemas import ReviewCreate, ReviewSchema, ReviewSyncRequest
from ..services.rating_aggregator import aggregate_ratings, rating_distribution
from ..services.review_platforms import (
    ReviewPlatformClient,
    get_review_platform_client,
    sync_platform_reviews,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
async def list_reviews(
    movie_id: Optional[str] = None,
    source: Optional[str] = None,
    featured: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Paginated reviews; with movie_id also a plain average over the page."""
    try:
        query = db.query(Review)
        if movie_id:
            query = query.filter(Review.movie_id == movie_id)
        if source:
            query = query.filter(Review.source == source)
        if featured:
            query = query.filter(Review.featured.is_(True))

        total = query.count()
        reviews = query.order_by(Review.created_at.desc()).offset((page - 1) * limit).limit(limit).all()

        aggregated = None
        if movie_id and reviews:
            ratings = [r.rating for r in reviews]
            aggregated = {
                "average": sum(ratings) / len(ratings),
                "count": len(ratings),
                "distribution": rating_distribution(ratings),
            }

        return {
            "reviews": [ReviewSchema.model_validate(r).model_dump(mode="json") for r in reviews],
            "aggregated_rating": aggregated,
            "pagination": paginate(page, limit, total),
        }
    except Exception as e:
        logger.error(f"Error fetching reviews: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch reviews")


@router.post("", status_code=201)
async def create_review(payload: ReviewCreate, db: Session = Depends(get_db)):
    """Post a review; ratings are already on the 1-10 scale."""
    try:
        get_movie(db, payload.movie_id)
        review = Review(**payload.model_dump())
        db.add(review)
        db.commit()
        db.refresh(review)
        return ReviewSchema.model_validate(review).model_dump(mode="json")
    except MovieNotFound:
        raise HTTPException(status_code=404, detail="Movie not found")
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating review: {e}")
        raise HTTPException(status_code=500, detail="Failed to create review")


@router.put("/sync")
async def sync_reviews(
    payload: ReviewSyncRequest,
    db: Session = Depends(get_db),
    client: ReviewPlatformClient = Depends(get_review_platform_client),
):
    """Pull reviews from the requested external platforms."""
    try:
        movie = get_movie(db, payload.movie_id)
        synced = await sync_platform_reviews(db, movie, payload.platforms, client)
        return {
            "message": "Reviews synced successfully",
            "synced_count": len(synced),
            "platforms": payload.platforms,
        }
    except MovieNotFound:
        raise HTTPException(status_code=404, detail="Movie not found")
    except Exception as e:
        logger.error(f"Error syncing reviews: {e}")
        raise HTTPException(status_code=500, detail="Failed to sync reviews")


@router.get("/aggregate")
async def get_aggregated_rating(movie_id: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    """Weighted rating across platforms plus the five-star distribution."""
    try:
        get_movie(db, movie_id)
        reviews = db.query(Review).filter(Review.movie_id == movie_id).all()
        return aggregate_ratings(reviews).to_dict()
    except MovieNotFound:
        raise HTTPException(status_code=404, detail="Movie not found")
    except Exception as e:
        logger.error(f"Error calculating aggregated rating: {e}")
        raise HTTPException(status_code=500, detail="Failed to calculate aggregated rating")
