"""
movies.py

Catalog endpoints: producers publish and edit movie pages, viewers browse them.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional
import logging

from .. import crud
from ..core.database import get_db
from ..crud import MovieNotFound, UserNotFound
from ..schemas import MovieCreate, MovieUpdate

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
async def list_movies(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[str] = None,
    featured: bool = False,
    genre: Optional[str] = None,
    db: Session = Depends(get_db),
):
    try:
        return crud.list_movies(db, page=page, limit=limit, status=status, featured=featured, genre=genre)
    except Exception as e:
        logger.error(f"Error fetching movies: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch movies")


@router.post("", status_code=201)
async def create_movie(payload: MovieCreate, db: Session = Depends(get_db)):
    """Publish a movie page; the slug is derived from the title."""
    try:
        movie = crud.create_movie(db, payload)
        return crud.movie_to_dict(movie)
    except UserNotFound:
        raise HTTPException(status_code=404, detail="Producer not found")
    except Exception as e:
        logger.error(f"Error creating movie: {e}")
        raise HTTPException(status_code=500, detail="Failed to create movie")


@router.get("/{slug}")
async def get_movie(slug: str, db: Session = Depends(get_db)):
    """Movie page with reviews; counts as a view."""
    try:
        movie = crud.get_movie_by_slug(db, slug, count_view=True)
        return crud.movie_to_dict(movie, include_reviews=True)
    except MovieNotFound:
        raise HTTPException(status_code=404, detail="Movie not found")
    except Exception as e:
        logger.error(f"Error fetching movie: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch movie")


@router.put("/{slug}")
async def update_movie(slug: str, payload: MovieUpdate, db: Session = Depends(get_db)):
    try:
        movie = crud.update_movie(db, slug, payload)
        return crud.movie_to_dict(movie)
    except MovieNotFound:
        raise HTTPException(status_code=404, detail="Movie not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error updating movie: {e}")
        raise HTTPException(status_code=500, detail="Failed to update movie")


@router.delete("/{slug}")
async def delete_movie(slug: str, db: Session = Depends(get_db)):
    try:
        crud.delete_movie(db, slug)
        return {"message": "Movie deleted successfully"}
    except MovieNotFound:
        raise HTTPException(status_code=404, detail="Movie not found")
    except Exception as e:
        logger.error(f"Error deleting movie: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete movie")
