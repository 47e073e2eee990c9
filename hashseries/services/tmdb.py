"""TMDB service for cross-referencing series, seasons and episodes."""

import asyncio
import logging
from typing import Optional

import requests
import tmdbsimple as tmdb

from hashseries.core.config import get_settings
from hashseries.core.result import Err, ErrorKind, Ok, Result

logger = logging.getLogger(__name__)

IMAGE_BASE_URL = "https://image.tmdb.org/t/p/original"
YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v="

# Initialize TMDB
settings = get_settings()
tmdb.API_KEY = settings.tmdb_api_key
tmdb.REQUESTS_TIMEOUT = settings.catalog_timeout


def image_url(path: Optional[str]) -> Optional[str]:
    return f"{IMAGE_BASE_URL}{path}" if path else None


def _status_message(exc: requests.exceptions.HTTPError) -> Optional[str]:
    """Pull TMDB's ``status_message`` out of an error response."""
    response = exc.response
    if response is None:
        return None
    try:
        return response.json().get("status_message")
    except ValueError:
        return None


def _find_tv_by_imdb_sync(imdb_id: str) -> Result[dict]:
    """Look up a TV show by its IMDb ID (synchronous)."""
    find = tmdb.Find(imdb_id)
    try:
        info = find.info(external_source="imdb_id")
    except requests.exceptions.RequestException as exc:
        logger.error("Error finding TMDB show for %s: %s", imdb_id, exc)
        return Err(ErrorKind.UPSTREAM_FAILURE, f"TMDB lookup failed: {exc}")

    tv_results = info.get("tv_results") or []
    if not tv_results or not tv_results[0].get("id"):
        return Err(ErrorKind.NOT_FOUND, "Could not find TV show on TMDB")
    return Ok(tv_results[0])


async def find_tv_by_imdb(imdb_id: str) -> Result[dict]:
    """Look up a TV show by its IMDb ID (async)."""
    return await asyncio.to_thread(_find_tv_by_imdb_sync, imdb_id)


def select_logo(logos: list) -> Optional[str]:
    """Prefer an English logo, falling back to the first one."""
    if not logos:
        return None
    english = next((logo for logo in logos if logo.get("iso_639_1") == "en"), None)
    return image_url((english or logos[0]).get("file_path"))


def select_trailer(videos: list) -> Optional[str]:
    """Prefer an official YouTube trailer, then any YouTube trailer or video."""
    youtube = [v for v in videos if v.get("site") == "YouTube"]
    trailers = [v for v in youtube if v.get("type") == "Trailer"]
    official = [v for v in trailers if v.get("official") is True]
    for candidates in (official, trailers, youtube):
        if candidates and candidates[0].get("key"):
            return f"{YOUTUBE_WATCH_URL}{candidates[0]['key']}"
    return None


def _get_show_logo_sync(tv_id: int) -> Optional[str]:
    try:
        images = tmdb.TV(tv_id).images(include_image_language="en,null")
    except Exception as exc:
        logger.error("Error fetching show logos for %s: %s", tv_id, exc)
        return None
    return select_logo(images.get("logos") or [])


async def get_show_logo(tv_id: int) -> Optional[str]:
    """Fetch the show's logo URL, or None (async)."""
    return await asyncio.to_thread(_get_show_logo_sync, tv_id)


def _get_trailer_url_sync(tv_id: int) -> Optional[str]:
    try:
        videos = tmdb.TV(tv_id).videos(language="en-US")
    except Exception as exc:
        logger.error("Error fetching trailer URL for %s: %s", tv_id, exc)
        return None
    return select_trailer(videos.get("results") or [])


async def get_trailer_url(tv_id: int) -> Optional[str]:
    """Fetch the show's trailer URL, or None (async)."""
    return await asyncio.to_thread(_get_trailer_url_sync, tv_id)


def _get_season_sync(tv_id: int, season_number: int) -> Result[dict]:
    try:
        return Ok(tmdb.TV_Seasons(tv_id, season_number).info())
    except requests.exceptions.HTTPError as exc:
        message = _status_message(exc) or "Season not found"
        logger.warning("TMDB season %s S%s: %s", tv_id, season_number, message)
        return Err(ErrorKind.NOT_FOUND, message)
    except requests.exceptions.RequestException as exc:
        logger.error(
            "Failed to fetch season for ID %s S%s: %s", tv_id, season_number, exc
        )
        return Err(ErrorKind.UPSTREAM_FAILURE, str(exc))


async def get_season(tv_id: int, season_number: int) -> Result[dict]:
    """Fetch season details (async)."""
    return await asyncio.to_thread(_get_season_sync, tv_id, season_number)


def _get_episode_sync(tv_id: int, season_number: int, episode_number: int) -> Result[dict]:
    episode_api = tmdb.TV_Episodes(tv_id, season_number, episode_number)
    try:
        info = episode_api.info(append_to_response="credits,images,external_ids")
    except requests.exceptions.HTTPError as exc:
        return Err(ErrorKind.NOT_FOUND, _status_message(exc) or "Episode not found")
    except requests.exceptions.RequestException as exc:
        logger.error(
            "Failed to fetch episode for ID %s S%sE%s: %s",
            tv_id,
            season_number,
            episode_number,
            exc,
        )
        return Err(ErrorKind.UPSTREAM_FAILURE, str(exc))

    if info.get("success") is False:
        return Err(ErrorKind.NOT_FOUND, info.get("status_message") or "Episode not found")
    return Ok(info)


async def get_episode(tv_id: int, season_number: int, episode_number: int) -> Result[dict]:
    """Fetch episode details with credits (async)."""
    return await asyncio.to_thread(_get_episode_sync, tv_id, season_number, episode_number)
