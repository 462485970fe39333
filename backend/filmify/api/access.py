"""
access.py

Streaming access check for a viewer and a movie.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
import logging

from ..core.database import get_db
from ..crud import get_movie, MovieNotFound
from ..services.entitlements import check_access

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
async def get_access(
    movie_id: str = Query(..., min_length=1),
    user_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    """Decide whether the viewer may stream the movie, and why."""
    try:
        movie = get_movie(db, movie_id)
        return check_access(db, movie, user_id).to_dict()
    except MovieNotFound:
        raise HTTPException(status_code=404, detail="Movie not found")
    except Exception as e:
        logger.error(f"Error checking access: {e}")
        raise HTTPException(status_code=500, detail="Failed to check access")
