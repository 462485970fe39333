"""
ticketing.py

Ticket booking links and showtimes per platform and region, stored on the movie
as JSON keyed "{platform}_{region}".
"""
import asyncio
import json
import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from filmify.core.config import settings
from filmify.models import Movie
from filmify.utils.timezone import utc_now

logger = logging.getLogger(__name__)

_ALL_REGIONS = ["mumbai", "delhi", "bangalore", "hyderabad", "chennai", "kolkata", "pune"]

TICKETING_PLATFORMS: Dict[str, Dict] = {
    "bookmyshow": {
        "name": "BookMyShow",
        "base_url": "https://in.bookmyshow.com",
        "regions": _ALL_REGIONS,
    },
    "paytm": {
        "name": "PayTM Movies",
        "base_url": "https://paytm.com/movies",
        "regions": _ALL_REGIONS,
    },
    "insider": {
        "name": "Insider",
        "base_url": "https://insider.in",
        "regions": ["mumbai", "delhi", "bangalore", "hyderabad", "chennai"],
    },
    "pvr": {
        "name": "PVR Cinemas",
        "base_url": "https://www.pvrcinemas.com",
        "regions": _ALL_REGIONS,
    },
    "inox": {
        "name": "INOX Cinemas",
        "base_url": "https://www.inoxmovies.com",
        "regions": _ALL_REGIONS,
    },
}

BASE_SHOWTIMES = ["09:00 AM", "12:00 PM", "03:00 PM", "06:00 PM", "09:00 PM"]


class UnknownTicketingEntry(Exception):
    pass


def ticketing_key(platform: str, region: str) -> str:
    return f"{platform}_{region}"


def load_ticketing_urls(movie: Movie) -> Dict[str, Dict]:
    if not movie.ticketing_urls:
        return {}
    try:
        return json.loads(movie.ticketing_urls)
    except (TypeError, ValueError) as e:
        logger.error(f"Error parsing ticketing URLs for movie {movie.id}: {e}")
        return {}


def filter_ticketing_urls(urls: Dict[str, Dict], region: Optional[str] = None, platform: Optional[str] = None) -> Dict[str, Dict]:
    if region and platform:
        key = ticketing_key(platform, region)
        return {key: urls[key]} if key in urls else {}
    if region:
        return {k: v for k, v in urls.items() if k.endswith(f"_{region}")}
    if platform:
        return {k: v for k, v in urls.items() if k.startswith(f"{platform}_")}
    return dict(urls)


def upsert_ticketing_entries(db: Session, movie: Movie, entries: Iterable) -> Dict[str, Dict]:
    urls = load_ticketing_urls(movie)
    now = utc_now().isoformat()
    for entry in entries:
        key = ticketing_key(entry.platform, entry.region)
        previous = urls.get(key, {})
        urls[key] = {
            "platform": entry.platform,
            "url": str(entry.url),
            "region": entry.region,
            "showtimes": list(entry.showtimes or []),
            "is_active": entry.is_active,
            "platform_name": TICKETING_PLATFORMS[entry.platform]["name"],
            "updated_at": now,
        }
        if previous.get("last_synced"):
            urls[key]["last_synced"] = previous["last_synced"]
    try:
        movie.ticketing_urls = json.dumps(urls)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to update ticketing URLs for movie {movie.id}: {e}")
        raise
    return urls


async def fetch_showtimes(platform: str, movie_title: str, region: str, delay_seconds: Optional[float] = None) -> List[str]:
    """Simulated showtime listing; each platform exposes a slightly different schedule."""
    delay = settings.showtime_fetch_delay_seconds if delay_seconds is None else delay_seconds
    if delay:
        await asyncio.sleep(delay)

    name = TICKETING_PLATFORMS[platform]["name"]
    if platform == "paytm":
        times = BASE_SHOWTIMES + ["11:30 PM"]
    elif platform == "insider":
        times = BASE_SHOWTIMES[1:4]
    else:
        times = BASE_SHOWTIMES
    return [f"{t} - {name}" for t in times]


async def sync_showtimes(db: Session, movie: Movie, platform: str, region: str, fetcher=fetch_showtimes) -> List[str]:
    """Refresh showtimes of an existing platform/region entry."""
    if platform not in TICKETING_PLATFORMS:
        raise UnknownTicketingEntry(f"Unknown ticketing platform: {platform}")

    urls = load_ticketing_urls(movie)
    key = ticketing_key(platform, region)
    if key not in urls:
        raise UnknownTicketingEntry(f"No ticketing entry for {platform} in {region}")

    showtimes = await fetcher(platform, movie.title, region)
    urls[key]["showtimes"] = showtimes
    urls[key]["last_synced"] = utc_now().isoformat()
    try:
        movie.ticketing_urls = json.dumps(urls)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to store showtimes for movie {movie.id}: {e}")
        raise
    logger.info(f"Synced {len(showtimes)} showtimes from {platform} ({region}) for movie {movie.id}")
    return showtimes
