"""Series pipeline: listing page in, aggregated series document out."""

import asyncio
import logging
from typing import Dict, List, Mapping, Optional, Tuple

from hashseries.core.config import Settings, get_settings
from hashseries.core.result import Err, ErrorKind, Ok, Result
from hashseries.models.media import (
    EpisodeReference,
    ProviderType,
    SeasonRecord,
    SeriesDocument,
    SeriesMetadata,
)
from hashseries.providers.base import ProviderInterface
from hashseries.services.batching import BatchScheduler
from hashseries.services.extractor import (
    EpisodeLinkStrategy,
    external_id_from_link,
    extract_imdb_link,
)
from hashseries.services.resolver import EpisodeResolver
from hashseries.services.seasons import build_season_record, group_by_season
from hashseries.services.site import SiteClient
from hashseries.services.tmdb import (
    find_tv_by_imdb,
    get_season,
    get_show_logo,
    get_trailer_url,
)

logger = logging.getLogger(__name__)

TMDB_TV_URL = "https://www.themoviedb.org/tv/"
HTML_SNIPPET_LENGTH = 1000


class SeriesPipeline:
    """Drives one series request from listing page to response document.

    Stages run in order: fetch the listing page, read the IMDb ID, discover
    episode links, cross-reference TMDB, then process seasons while the show
    artwork is fetched alongside. A series where no season has a usable
    download link is reported as not found.
    """

    def __init__(
        self,
        site: SiteClient,
        providers: Mapping[ProviderType, ProviderInterface],
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        self.site = site
        self.resolver = EpisodeResolver(
            site, providers, timeout=settings.episode_timeout
        )
        self.strategy = EpisodeLinkStrategy.for_site(settings.site_url)
        self.batch_size = settings.batch_size

    async def run(self, target_url: str) -> Result[SeriesDocument]:
        listing = await self.site.fetch_listing(target_url)
        if isinstance(listing, Err):
            return listing
        html = listing.value

        imdb_link = extract_imdb_link(html)
        if not imdb_link:
            return Err(ErrorKind.NOT_FOUND, "Could not find IMDb link on the page")
        imdb_id = external_id_from_link(imdb_link)
        if not imdb_id:
            return Err(ErrorKind.NOT_FOUND, "Invalid IMDb ID format")

        refs = self.strategy.extract(html)
        if not refs:
            logger.warning(f"No episode links found on {target_url}")
            return Err(
                ErrorKind.NOT_FOUND,
                "No episode links found on the series page",
                extra={
                    "details": "No URLs matching the episode pattern were found",
                    "debug": {
                        "targetUrl": target_url,
                        "htmlSnippet": html[:HTML_SNIPPET_LENGTH],
                    },
                },
            )

        show = await find_tv_by_imdb(imdb_id)
        if isinstance(show, Err):
            return show
        tv_id = show.value["id"]
        logger.info(
            f"Resolved {imdb_id} to TMDB {tv_id} with {len(refs)} episode links"
        )

        (logo_url, trailer_url), seasons = await asyncio.gather(
            self.fetch_show_artwork(tv_id),
            self.process_seasons(tv_id, refs),
        )

        if not any(season.has_usable_download for season in seasons.values()):
            return Err(
                ErrorKind.NOT_FOUND,
                "No valid download links found for any episode in any season",
                flagged=True,
            )

        metadata = SeriesMetadata(
            tv_id=tv_id,
            title=show.value.get("name") or None,
            vote_average=show.value.get("vote_average") or None,
            vote_count=show.value.get("vote_count") or None,
            imdb_id=imdb_id,
            imdb_url=imdb_link,
            tmdb_url=f"{TMDB_TV_URL}{tv_id}",
            logo_url=logo_url,
            trailer_url=trailer_url,
            total_seasons=len(seasons),
        )
        return Ok(SeriesDocument(metadata=metadata, seasons=seasons))

    async def fetch_show_artwork(
        self, tv_id: int
    ) -> Tuple[Optional[str], Optional[str]]:
        """Fetch the logo and trailer URLs concurrently."""
        logo_url, trailer_url = await asyncio.gather(
            get_show_logo(tv_id), get_trailer_url(tv_id)
        )
        return logo_url, trailer_url

    async def process_seasons(
        self, tv_id: int, refs: List[EpisodeReference]
    ) -> Dict[int, SeasonRecord]:
        """Resolve every season in discovery order."""
        scheduler = BatchScheduler(self.batch_size)
        seasons: Dict[int, SeasonRecord] = {}

        for season_number, season_refs in group_by_season(refs).items():
            season_info = await get_season(tv_id, season_number)

            async def resolve(ref: EpisodeReference):
                return await self.resolver.resolve(ref, tv_id)

            episodes = await scheduler.run(season_refs, resolve)
            seasons[season_number] = build_season_record(
                season_number, season_info, episodes
            )
            logger.info(
                f"Season {season_number}: {len(episodes)} episodes, "
                f"usable downloads: {seasons[season_number].has_usable_download}"
            )

        return seasons
