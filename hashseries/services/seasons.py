"""Season grouping and aggregation."""

from typing import Dict, List

from hashseries.core.result import Ok, Result
from hashseries.models.media import (
    EpisodeDetails,
    EpisodeRecord,
    EpisodeReference,
    SeasonRecord,
)
from hashseries.services.tmdb import image_url

DEFAULT_SEASON_OVERVIEW = "No season overview available"


def group_by_season(
    refs: List[EpisodeReference],
) -> Dict[int, List[EpisodeReference]]:
    """Group references by season, in order of each season's first appearance."""
    seasons: Dict[int, List[EpisodeReference]] = {}
    for ref in refs:
        seasons.setdefault(ref.season_number, []).append(ref)
    return seasons


def has_usable_download(episodes: List[EpisodeRecord]) -> bool:
    return any(
        isinstance(episode, EpisodeDetails) and episode.download_groups
        for episode in episodes
    )


def build_season_record(
    season_number: int,
    season_info: Result[dict],
    episodes: List[EpisodeRecord],
) -> SeasonRecord:
    """Attach season metadata to resolved episodes.

    A failed season lookup leaves the poster and rating empty and uses the
    placeholder overview.
    """
    poster_url = None
    overview = DEFAULT_SEASON_OVERVIEW
    vote_average = None

    if isinstance(season_info, Ok):
        info = season_info.value
        poster_url = image_url(info.get("poster_path"))
        overview = info.get("overview") or DEFAULT_SEASON_OVERVIEW
        vote_average = info.get("vote_average") or None

    return SeasonRecord(
        season_number=season_number,
        overview=overview,
        poster_url=poster_url,
        vote_average=vote_average,
        episodes=episodes,
        has_usable_download=has_usable_download(episodes),
    )
