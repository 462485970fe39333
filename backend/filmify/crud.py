from . import models
from sqlalchemy.orm import Session, joinedload
from typing import Optional
import json
import logging
import math
import re

logger = logging.getLogger(__name__)

# Columns holding JSON-encoded values
JSON_FIELDS = ("cast", "crew", "ott_platforms", "ticketing_urls")


class MovieNotFound(Exception):
    def __init__(self, key: str):
        super().__init__(f"Movie not found: {key}")
        self.key = key


class UserNotFound(Exception):
    def __init__(self, key: str):
        super().__init__(f"User not found: {key}")
        self.key = key


def slugify(title: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower())
    return slug.strip("-")


def unique_slug(db: Session, title: str) -> str:
    base = slugify(title)
    slug = base
    counter = 1
    while db.query(models.Movie.id).filter(models.Movie.slug == slug).first():
        slug = f"{base}-{counter}"
        counter += 1
    return slug


def _load_json(value, default):
    if not value:
        return default
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring malformed JSON column value: {value!r}")
        return default


def movie_to_dict(movie: models.Movie, include_reviews: bool = False) -> dict:
    data = {
        "id": movie.id,
        "slug": movie.slug,
        "title": movie.title,
        "synopsis": movie.synopsis,
        "story": movie.story,
        "genre": movie.genre,
        "language": movie.language,
        "duration": movie.duration,
        "certification": movie.certification,
        "release_date": movie.release_date.isoformat() if movie.release_date else None,
        "director_name": movie.director_name,
        "producer_name": movie.producer_name,
        "cast": _load_json(movie.cast, []),
        "crew": _load_json(movie.crew, []),
        "ott_platforms": _load_json(movie.ott_platforms, []),
        "ticketing_urls": _load_json(movie.ticketing_urls, {}),
        "poster_url": movie.poster_url,
        "trailer_url": movie.trailer_url,
        "status": movie.status,
        "featured": movie.featured,
        "streaming_enabled": movie.streaming_enabled,
        "streaming_type": movie.streaming_type,
        "price": movie.price,
        "views": movie.views or 0,
        "purchases": movie.purchases or 0,
        "producer": {
            "id": movie.producer.id,
            "name": movie.producer.name,
            "studio": movie.producer.studio,
            "verified": movie.producer.verified,
        } if movie.producer else None,
        "review_count": len(movie.reviews),
    }
    if include_reviews:
        data["reviews"] = [
            {
                "id": r.id,
                "rating": r.rating,
                "title": r.title,
                "content": r.content,
                "source": r.source,
                "verified": r.verified,
                "user_id": r.user_id,
                "created_at": r.created_at.isoformat() if r.created_at else None,
            }
            for r in sorted(movie.reviews, key=lambda r: r.created_at, reverse=True)
        ]
    return data


def _encode_fields(data: dict) -> dict:
    out = dict(data)
    for key in JSON_FIELDS:
        if out.get(key) is not None:
            out[key] = json.dumps(out[key])
    for key in ("poster_url", "trailer_url", "website"):
        if out.get(key) is not None:
            out[key] = str(out[key])
    if out.get("streaming_type") is not None:
        out["streaming_type"] = getattr(out["streaming_type"], "value", out["streaming_type"])
    return out


def create_movie(db: Session, payload) -> models.Movie:
    try:
        if not db.query(models.User.id).filter(models.User.id == payload.producer_id).first():
            raise UserNotFound(payload.producer_id)
        logger.info(f"Creating movie: {payload.title}")
        movie = models.Movie(slug=unique_slug(db, payload.title), **_encode_fields(payload.model_dump()))
        db.add(movie)
        db.commit()
        db.refresh(movie)
        logger.info(f"Successfully created movie {movie.id} with slug {movie.slug}")
        return movie
    except UserNotFound:
        raise
    except Exception as e:
        logger.error(f"Failed to create movie: {e}")
        db.rollback()
        raise


def list_movies(
    db: Session,
    page: int = 1,
    limit: int = 10,
    status: Optional[str] = None,
    featured: Optional[bool] = None,
    genre: Optional[str] = None,
) -> dict:
    query = db.query(models.Movie).options(joinedload(models.Movie.producer))
    if status:
        query = query.filter(models.Movie.status == status)
    if featured:
        query = query.filter(models.Movie.featured.is_(True))
    if genre:
        query = query.filter(models.Movie.genre == genre)

    total = query.count()
    movies = query.order_by(models.Movie.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return {
        "movies": [movie_to_dict(m) for m in movies],
        "pagination": paginate(page, limit, total),
    }


def paginate(page: int, limit: int, total: int) -> dict:
    return {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit) if limit else 0}


def get_movie(db: Session, movie_id: str) -> models.Movie:
    movie = db.query(models.Movie).filter(models.Movie.id == movie_id).first()
    if not movie:
        raise MovieNotFound(movie_id)
    return movie


def get_movie_by_slug(db: Session, slug: str, count_view: bool = False) -> models.Movie:
    movie = db.query(models.Movie).filter(models.Movie.slug == slug).first()
    if not movie:
        raise MovieNotFound(slug)
    if count_view:
        movie.views = (movie.views or 0) + 1
        db.commit()
        db.refresh(movie)
    return movie


def update_movie(db: Session, slug: str, payload) -> models.Movie:
    movie = get_movie_by_slug(db, slug)
    try:
        for key, value in _encode_fields(payload.model_dump(exclude_unset=True)).items():
            setattr(movie, key, value)
        if movie.streaming_type == models.StreamingType.FREE.value:
            movie.price = None
        elif movie.price is None:
            raise ValueError("price is required unless streaming_type is FREE")
        db.commit()
        db.refresh(movie)
        return movie
    except Exception as e:
        logger.error(f"Failed to update movie {slug}: {e}")
        db.rollback()
        raise


def delete_movie(db: Session, slug: str) -> None:
    movie = get_movie_by_slug(db, slug)
    try:
        db.delete(movie)
        db.commit()
    except Exception as e:
        logger.error(f"Failed to delete movie {slug}: {e}")
        db.rollback()
        raise


def get_user(db: Session, user_id: str) -> models.User:
    user = db.query(models.User).filter(models.User.id == user_id).first()
    if not user:
        raise UserNotFound(user_id)
    return user
