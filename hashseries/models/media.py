"""Media models for the aggregated series document.

Field names are snake_case; the JSON keys are the camelCase aliases that the
existing web client consumes.
"""

from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN = "unknown"
DEFAULT_MIME_TYPE = "video/mp4"


class WireModel(BaseModel):
    """Base model accepting both field names and wire aliases."""

    model_config = ConfigDict(populate_by_name=True)


class ProviderType(str, Enum):
    """File hosting providers used as download mirrors."""

    GOOGLE_DRIVE = "google_drive"
    PIXELDRAIN = "pixeldrain"


class EpisodeReference(BaseModel):
    """An episode page discovered on the listing page."""

    url: str
    season_number: int = 1
    episode_number: int


class DownloadLink(BaseModel):
    """A provider link, probed or not yet probed."""

    provider_type: ProviderType
    url: str
    quality: str = UNKNOWN
    size: str = UNKNOWN
    mime_type: str = DEFAULT_MIME_TYPE


class DownloadSource(WireModel):
    provider_type: ProviderType = Field(alias="type")
    url: str


class DownloadGroup(WireModel):
    """Links sharing the same quality and size."""

    quality: str = UNKNOWN
    size: str = UNKNOWN
    mime_type: str = Field(UNKNOWN, alias="mimeType")
    sources: List[DownloadSource] = []


class CrewMember(WireModel):
    id: int
    name: str
    job: Optional[str] = None
    department: Optional[str] = None
    profile_url: Optional[str] = Field(None, alias="profileUrl")


class GuestStar(WireModel):
    id: int
    name: str
    character: Optional[str] = None
    profile_url: Optional[str] = Field(None, alias="profileUrl")


class EpisodeError(WireModel):
    """An episode that could not be resolved."""

    season_number: int = Field(alias="seasonNumber")
    episode_number: int = Field(alias="episodeNumber")
    error: str


class EpisodeDetails(WireModel):
    """A resolved episode with catalog metadata and download options."""

    season_number: int = Field(alias="seasonNumber")
    episode_number: int = Field(alias="episodeNumber")
    title: Optional[str] = Field(None, alias="episodeTitle")
    overview: Optional[str] = None
    air_date: Optional[str] = Field(None, alias="airDate")
    runtime: Optional[int] = None
    production_code: Optional[str] = Field(None, alias="productionCode")
    still_url: Optional[str] = Field(None, alias="stillPath")
    vote_average: Optional[float] = Field(None, alias="voteAverage")
    vote_count: Optional[int] = Field(None, alias="voteCount")
    crew: List[CrewMember] = []
    guest_stars: List[GuestStar] = Field([], alias="guestStars")
    download_groups: List[DownloadGroup] = Field([], alias="downloadLinks")


EpisodeRecord = Union[EpisodeDetails, EpisodeError]


class SeasonRecord(WireModel):
    season_number: int = Field(alias="seasonNumber")
    overview: str = Field(alias="seasonOverview")
    poster_url: Optional[str] = Field(None, alias="seasonPosterPath")
    vote_average: Optional[float] = Field(None, alias="seasonVoteAverage")
    episodes: List[EpisodeRecord] = []
    has_usable_download: bool = Field(False, alias="hasValidDownloadLinks")


class SeriesMetadata(WireModel):
    tv_id: int = Field(alias="tvShowId")
    title: Optional[str] = Field(None, alias="tvShowTitle")
    vote_average: Optional[float] = Field(None, alias="tvShowVoteAverage")
    vote_count: Optional[int] = Field(None, alias="tvShowVoteCount")
    imdb_id: str = Field(alias="imdbId")
    imdb_url: str = Field(alias="imdbUrl")
    tmdb_url: str = Field(alias="tmdbUrl")
    logo_url: Optional[str] = Field(None, alias="logoUrl")
    trailer_url: Optional[str] = Field(None, alias="trailerUrl")
    total_seasons: int = Field(0, alias="totalSeasons")


class SeriesDocument(WireModel):
    """The aggregated response for one series."""

    metadata: SeriesMetadata
    seasons: Dict[int, SeasonRecord] = {}

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
