"""HTML extraction for listing pages, episode pages and AJAX fragments.

All functions here are pure: they take markup and return references, never
touching the network. Markup that no longer matches yields empty results
rather than errors.
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

from hashseries.models.media import DownloadLink, EpisodeReference, ProviderType

AJAX_PATH = "/wp-admin/admin-ajax.php"

_SEASON_RE = re.compile(r"s(\d{1,2})", re.IGNORECASE)
_EPISODE_RE = re.compile(r"e(\d{1,2})", re.IGNORECASE)
_EXTERNAL_ID_RE = re.compile(r"[a-z]{2}\d+", re.IGNORECASE)
_IMDB_TITLE_RE = re.compile(r"^https://www\.imdb\.com/title/", re.IGNORECASE)
_TRAILING_DEBRIS_RE = re.compile(r"['\">\s]+$")


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def detect_season_and_episode(url: str) -> Tuple[int, Optional[int]]:
    """Read the ``s<N>`` and ``e<N>`` tokens of an episode URL.

    The season defaults to 1; the episode is None when no token is found.
    """
    season_match = _SEASON_RE.search(url)
    season_number = int(season_match.group(1)) if season_match else 1

    episode_match = _EPISODE_RE.search(url)
    episode_number = int(episode_match.group(1)) if episode_match else None

    return season_number, episode_number


@dataclass(frozen=True)
class AnchorPattern:
    """Anchors matched by CSS selector, href pattern and link text pattern."""

    name: str
    selector: str
    href_pattern: re.Pattern
    text_pattern: re.Pattern

    def find_urls(self, soup: BeautifulSoup) -> List[str]:
        urls = []
        for anchor in soup.select(self.selector):
            href = (anchor.get("href") or "").strip()
            text = anchor.get_text(strip=True)
            if self.href_pattern.search(href) and self.text_pattern.search(text):
                urls.append(href)
        return urls


@dataclass(frozen=True)
class EpisodeLinkStrategy:
    """Primary-then-fallback episode link discovery.

    The fallback pattern is only consulted when the primary pattern yields no
    usable references; the two result sets are never merged.
    """

    primary: AnchorPattern
    fallback: AnchorPattern

    @classmethod
    def for_site(cls, site_url: str) -> "EpisodeLinkStrategy":
        origin = re.escape(site_url.rstrip("/"))
        return cls(
            primary=AnchorPattern(
                name="epi_item",
                selector="a.epi_item[href]",
                href_pattern=re.compile(rf"^{origin}/", re.IGNORECASE),
                text_pattern=re.compile(r"^Episode \d+(?:-end)?$", re.IGNORECASE),
            ),
            fallback=AnchorPattern(
                name="episode_token",
                selector="a[href]",
                href_pattern=re.compile(
                    rf"^{origin}/[^\"']*e\d{{1,2}}", re.IGNORECASE
                ),
                text_pattern=re.compile(r"^Episode \d+", re.IGNORECASE),
            ),
        )

    def extract(self, html: str) -> List[EpisodeReference]:
        soup = _soup(html)
        for pattern in (self.primary, self.fallback):
            references = _to_references(pattern.find_urls(soup))
            if references:
                return references
        return []


def _to_references(urls: List[str]) -> List[EpisodeReference]:
    references = []
    for url in urls:
        season_number, episode_number = detect_season_and_episode(url)
        # References without an episode number are dropped, never defaulted
        if episode_number:
            references.append(
                EpisodeReference(
                    url=url,
                    season_number=season_number,
                    episode_number=episode_number,
                )
            )
    return references


DEFAULT_STRATEGY = EpisodeLinkStrategy.for_site("https://cineru.lk")


def extract_episode_references(
    html: str, strategy: Optional[EpisodeLinkStrategy] = None
) -> List[EpisodeReference]:
    """Find all episode pages linked from a series listing page."""
    return (strategy or DEFAULT_STRATEGY).extract(html)


def extract_imdb_link(html: str) -> Optional[str]:
    """Return the IMDb title link of a listing page, if any."""
    for anchor in _soup(html).select("a.btn[href][data-lity]"):
        href = anchor["href"].strip()
        if _IMDB_TITLE_RE.match(href):
            return href
    return None


def extract_external_id(html: str) -> Optional[str]:
    """Return the IMDb ID (e.g. ``tt0944947``) of a listing page, if any."""
    link = extract_imdb_link(html)
    if link is None:
        return None
    return external_id_from_link(link)


def external_id_from_link(link: str) -> Optional[str]:
    match = _EXTERNAL_ID_RE.search(urlparse(link).path)
    return match.group(0) if match else None


@dataclass(frozen=True)
class PageData:
    """Identifiers needed to request an episode's download links."""

    post_id: Optional[str]
    base_domain: str
    ajax_url: str


def extract_page_post_id(html: str, base_url: str) -> PageData:
    """Read the hidden post id of an episode page and derive its AJAX URL."""
    post_id = None
    field = _soup(html).find("input", id="post_id")
    if isinstance(field, Tag):
        value = (field.get("value") or "").strip()
        post_id = value or None

    parsed = urlparse(base_url)
    base_domain = f"{parsed.scheme}://{parsed.netloc}"
    return PageData(
        post_id=post_id,
        base_domain=base_domain,
        ajax_url=f"{base_domain}{AJAX_PATH}",
    )


def _has_classes(*required: str) -> Callable[[Tag], bool]:
    def check(tag: Tag) -> bool:
        classes = tag.get("class") or []
        return tag.name == "span" and all(c in classes for c in required)

    return check


# Markup signatures of each provider's download button
_PROVIDER_SIGNATURES = (
    (
        ProviderType.GOOGLE_DRIVE,
        _has_classes("btn-gdrive", "hc_film"),
        "https://drive.google.com/",
    ),
    (
        ProviderType.PIXELDRAIN,
        _has_classes("btn-pixeldrain"),
        "https://pixeldrain.com/",
    ),
)


def extract_provider_links(html: str) -> List[DownloadLink]:
    """Collect unprobed provider links from a download fragment.

    Only the ``#hc_panel`` container is scanned when it is present. Links are
    deduplicated by exact URL, keeping the first occurrence.
    """
    soup = _soup(html)
    panel = soup.find("div", id="hc_panel")
    scope = panel if isinstance(panel, Tag) else soup

    links: List[DownloadLink] = []
    seen = set()
    for provider_type, matches, prefix in _PROVIDER_SIGNATURES:
        for span in scope.find_all(matches):
            raw = span.get("data-link") or ""
            if not raw.startswith(prefix):
                continue
            url = _TRAILING_DEBRIS_RE.sub("", raw)
            if url in seen:
                continue
            seen.add(url)
            links.append(DownloadLink(provider_type=provider_type, url=url))
    return links
