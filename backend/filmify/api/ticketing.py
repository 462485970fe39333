"""
ticketing.py

Ticket booking links per platform/region and showtime sync.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional
import logging

from ..core.database import get_db
from ..crud import get_movie, MovieNotFound
from ..schemas import TicketingUpdate
from ..services.ticketing import (
    TICKETING_PLATFORMS,
    UnknownTicketingEntry,
    filter_ticketing_urls,
    load_ticketing_urls,
    sync_showtimes,
    upsert_ticketing_entries,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
async def get_ticketing(
    movie_id: str = Query(..., min_length=1),
    region: Optional[str] = None,
    platform: Optional[str] = None,
    db: Session = Depends(get_db),
):
    try:
        movie = get_movie(db, movie_id)
        urls = filter_ticketing_urls(load_ticketing_urls(movie), region=region, platform=platform)
        return {
            "movie": {
                "id": movie.id,
                "title": movie.title,
                "release_date": movie.release_date.isoformat() if movie.release_date else None,
            },
            "ticketing_urls": urls,
            "platforms": TICKETING_PLATFORMS,
        }
    except MovieNotFound:
        raise HTTPException(status_code=404, detail="Movie not found")
    except Exception as e:
        logger.error(f"Error fetching ticketing info: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch ticketing information")


@router.post("")
async def update_ticketing(payload: TicketingUpdate, db: Session = Depends(get_db)):
    try:
        movie = get_movie(db, payload.movie_id)
        urls = upsert_ticketing_entries(db, movie, payload.platforms)
        return {"movie": {"id": movie.id, "title": movie.title}, "ticketing_urls": urls}
    except MovieNotFound:
        raise HTTPException(status_code=404, detail="Movie not found")
    except Exception as e:
        logger.error(f"Error updating ticketing info: {e}")
        raise HTTPException(status_code=500, detail="Failed to update ticketing information")


@router.put("")
async def sync_ticketing_showtimes(
    movie_id: str = Query(..., min_length=1),
    platform: str = Query(..., min_length=1),
    region: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    try:
        movie = get_movie(db, movie_id)
        showtimes = await sync_showtimes(db, movie, platform, region)
        return {
            "message": "Showtimes synced successfully",
            "platform": platform,
            "region": region,
            "showtimes": showtimes,
        }
    except MovieNotFound:
        raise HTTPException(status_code=404, detail="Movie not found")
    except UnknownTicketingEntry as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Error syncing showtimes: {e}")
        raise HTTPException(status_code=500, detail="Failed to sync showtimes")
