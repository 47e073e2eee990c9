"""Episode resolution: catalog metadata plus probed download options."""

import asyncio
import logging
from typing import List, Mapping

from hashseries.core.config import get_settings
from hashseries.core.result import Err, ErrorKind
from hashseries.models.media import (
    CrewMember,
    DownloadLink,
    EpisodeDetails,
    EpisodeError,
    EpisodeRecord,
    EpisodeReference,
    GuestStar,
    ProviderType,
)
from hashseries.providers.base import ProviderInterface
from hashseries.services.extractor import extract_page_post_id, extract_provider_links
from hashseries.services.grouping import group_by_quality_and_size
from hashseries.services.site import SiteClient
from hashseries.services.sizes import normalize_size_unit
from hashseries.services.tmdb import get_episode, image_url

logger = logging.getLogger(__name__)

CREDITS_LIMIT = 5


def episode_error(ref: EpisodeReference, message: str) -> EpisodeError:
    return EpisodeError(
        season_number=ref.season_number,
        episode_number=ref.episode_number,
        error=message,
    )


def describe_failure(err: Err) -> str:
    """Render a stage failure as an episode error message."""
    if err.kind == ErrorKind.UPSTREAM_FAILURE:
        return f"Failed to process episode: {err.message}"
    return err.message


def build_episode_details(
    ref: EpisodeReference, info: dict, links: List[DownloadLink]
) -> EpisodeDetails:
    """Combine a TMDB episode payload with the episode's download links."""
    credits = info.get("credits") or {}
    crew = [
        CrewMember(
            id=member["id"],
            name=member.get("name", ""),
            job=member.get("job"),
            department=member.get("department"),
            profile_url=image_url(member.get("profile_path")),
        )
        for member in (credits.get("crew") or [])[:CREDITS_LIMIT]
    ]
    guest_stars = [
        GuestStar(
            id=star["id"],
            name=star.get("name", ""),
            character=star.get("character"),
            profile_url=image_url(star.get("profile_path")),
        )
        for star in (credits.get("guest_stars") or [])[:CREDITS_LIMIT]
    ]

    return EpisodeDetails(
        season_number=ref.season_number,
        episode_number=ref.episode_number,
        title=info.get("name") or None,
        overview=info.get("overview") or None,
        air_date=info.get("air_date") or None,
        runtime=info.get("runtime") or None,
        production_code=info.get("production_code") or None,
        still_url=image_url(info.get("still_path")),
        vote_average=info.get("vote_average") or None,
        vote_count=info.get("vote_count") or None,
        crew=crew,
        guest_stars=guest_stars,
        download_groups=group_by_quality_and_size(links),
    )


class EpisodeResolver:
    """Resolves one episode reference into an episode record.

    ``resolve`` never raises: catalog misses, page failures, timeouts and
    unexpected errors all become an ``EpisodeError`` for that episode.
    """

    def __init__(
        self,
        site: SiteClient,
        providers: Mapping[ProviderType, ProviderInterface],
        timeout: float | None = None,
    ):
        self.site = site
        self.providers = providers
        self.timeout = timeout or get_settings().episode_timeout

    async def resolve(self, ref: EpisodeReference, tv_id: int) -> EpisodeRecord:
        try:
            return await asyncio.wait_for(
                self._resolve(ref, tv_id), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Timeout resolving S{ref.season_number}E{ref.episode_number} "
                f"after {self.timeout}s"
            )
            return episode_error(ref, "Episode processing timeout")
        except Exception as e:
            logger.error(
                f"Error processing episode S{ref.season_number}E{ref.episode_number}: {e}",
                exc_info=e,
            )
            return episode_error(ref, f"Failed to process episode: {e}")

    async def _resolve(self, ref: EpisodeReference, tv_id: int) -> EpisodeRecord:
        catalog = await get_episode(tv_id, ref.season_number, ref.episode_number)
        if isinstance(catalog, Err):
            return episode_error(ref, describe_failure(catalog))

        page = await self.site.fetch_episode_page(ref.url)
        if isinstance(page, Err):
            logger.warning(
                f"Episode page S{ref.season_number}E{ref.episode_number} failed: "
                f"{page.message}"
            )
            return episode_error(ref, describe_failure(page))

        links = await self.collect_links(page.value, ref.url)
        return build_episode_details(ref, catalog.value, links)

    async def collect_links(self, html: str, page_url: str) -> List[DownloadLink]:
        """Recover and probe the download links of an episode page."""
        page_data = extract_page_post_id(html, page_url)
        if not page_data.post_id:
            logger.info(f"No post id on {page_url}, skipping download links")
            return []

        fragment = await self.site.fetch_download_fragment(
            page_data.ajax_url, page_data.post_id, page_url
        )
        if isinstance(fragment, Err) or not fragment.value:
            return []

        return await self.probe_links(extract_provider_links(fragment.value))

    async def probe_links(self, links: List[DownloadLink]) -> List[DownloadLink]:
        """Probe all links of an episode concurrently, keeping their order."""
        return list(await asyncio.gather(*(self._probe(link) for link in links)))

    async def _probe(self, link: DownloadLink) -> DownloadLink:
        provider = self.providers.get(link.provider_type)
        if provider is None:
            return link
        info = await provider.probe(link.url)
        return link.model_copy(
            update={
                "quality": info.quality,
                "size": normalize_size_unit(info.size),
                "mime_type": info.mime_type,
            }
        )
