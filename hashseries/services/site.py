"""HTTP client for the content site."""

import asyncio
import json
import logging
from typing import List, Optional

import niquests
from urllib3.util import Retry

from hashseries.core.config import Settings, get_settings
from hashseries.core.cookies import SessionCookie, cookie_header
from hashseries.core.result import Err, ErrorKind, Ok, Result

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-LK,en;q=0.9,si;q=0.8",
    "Accept-Encoding": "gzip, deflate, br",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}

AJAX_HEADERS = {
    "User-Agent": BROWSER_HEADERS["User-Agent"],
    "Accept-Language": BROWSER_HEADERS["Accept-Language"],
    "X-Requested-With": "XMLHttpRequest",
}

DOWNLOAD_ACTION = "cs_download_data"


class PageTimeout(Exception):
    """Raised internally when a page fetch exceeds its deadline."""


def unwrap_download_payload(body: str) -> Optional[str]:
    """Return the HTML fragment of an AJAX download response.

    The endpoint answers either with a JSON envelope whose ``data`` field holds
    the fragment, or with the fragment itself.
    """
    try:
        parsed = json.loads(body)
    except ValueError:
        return body
    if isinstance(parsed, dict) and isinstance(parsed.get("data"), str):
        return parsed["data"] or None
    return None


class SiteClient:
    """Fetches listing pages, episode pages and download fragments.

    Every request carries the browser header set and the session cookies.
    """

    def __init__(
        self,
        cookies: List[SessionCookie] | None = None,
        settings: Settings | None = None,
        retry_config: Retry | None = None,
    ):
        self._settings = settings or get_settings()
        self.cookie_header = cookie_header(cookies or [])
        if retry_config is None:
            retry_config = Retry(
                total=2,
                backoff_factor=0.5,
                status_forcelist=[429, 502, 503, 504],
                allowed_methods=["HEAD", "GET", "OPTIONS"],
            )
        self.session = niquests.AsyncSession(retries=retry_config)
        if self._settings.proxy:
            self.session.proxies = {
                "http": self._settings.proxy,
                "https": self._settings.proxy,
            }

    async def aclose(self) -> None:
        """Properly close the internal HTTP session."""
        if self.session:
            await self.session.close()

    def _headers(self, base: dict, **extra: str) -> dict:
        headers = dict(base, **extra)
        if self.cookie_header:
            headers["Cookie"] = self.cookie_header
        return headers

    async def _get(self, url: str, timeout: float):
        try:
            return await asyncio.wait_for(
                self.session.get(
                    url, headers=self._headers(BROWSER_HEADERS), timeout=timeout
                ),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, niquests.exceptions.Timeout) as exc:
            raise PageTimeout(url) from exc

    async def fetch_listing(self, url: str) -> Result[str]:
        """Fetch a series listing page."""
        timeout = self._settings.listing_timeout
        try:
            response = await self._get(url, timeout)
        except PageTimeout:
            logger.warning(f"Timeout fetching series page {url} after {timeout}s")
            return Err(ErrorKind.UPSTREAM_FAILURE, "Failed to fetch series page: timeout")
        except niquests.exceptions.RequestException as e:
            logger.error(f"Error fetching series page {url}: {e}")
            return Err(ErrorKind.UPSTREAM_FAILURE, f"Failed to fetch series page: {e}")

        if not response.ok:
            return Err(
                ErrorKind.UPSTREAM_FAILURE,
                f"Failed to fetch series page: {response.status_code}",
                status_code=response.status_code,
            )
        return Ok(response.text or "")

    async def fetch_episode_page(self, url: str) -> Result[str]:
        """Fetch an episode page."""
        timeout = self._settings.episode_page_timeout
        try:
            response = await self._get(url, timeout)
        except PageTimeout:
            return Err(ErrorKind.EPISODE_FAILURE, "Episode page fetch timeout")
        except niquests.exceptions.RequestException as e:
            return Err(ErrorKind.UPSTREAM_FAILURE, str(e))

        if not response.ok:
            return Err(
                ErrorKind.EPISODE_FAILURE,
                f"Failed to fetch episode page: {response.status_code}",
                status_code=response.status_code,
            )
        return Ok(response.text or "")

    async def fetch_download_fragment(
        self, ajax_url: str, post_id: str, referer: str
    ) -> Result[Optional[str]]:
        """Request the download panel of an episode from the AJAX endpoint."""
        timeout = self._settings.ajax_timeout
        try:
            response = await asyncio.wait_for(
                self.session.post(
                    ajax_url,
                    data={"action": DOWNLOAD_ACTION, "post_id": post_id},
                    headers=self._headers(AJAX_HEADERS, Referer=referer),
                    timeout=timeout,
                ),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, niquests.exceptions.Timeout):
            logger.warning(f"Download links fetch timeout for post {post_id}")
            return Err(ErrorKind.EPISODE_FAILURE, "Download links fetch timeout")
        except niquests.exceptions.RequestException as e:
            logger.error(f"Error fetching download links for post {post_id}: {e}")
            return Err(ErrorKind.EPISODE_FAILURE, str(e))

        if not response.ok:
            logger.warning(
                f"Download links request for post {post_id} returned {response.status_code}"
            )
            return Err(
                ErrorKind.EPISODE_FAILURE,
                f"Download links request failed: {response.status_code}",
                status_code=response.status_code,
            )
        return Ok(unwrap_download_payload(response.text or ""))
