"""Provider base classes and interfaces."""

import asyncio
import logging
from abc import ABC, abstractmethod

import niquests
from pydantic import BaseModel
from urllib3.util import Retry

from hashseries.core.config import get_settings
from hashseries.models.media import DEFAULT_MIME_TYPE, UNKNOWN, ProviderType

logger = logging.getLogger(__name__)


class ProbeResult(BaseModel):
    """What a provider reports about a hosted file."""

    quality: str = UNKNOWN
    size: str = UNKNOWN
    mime_type: str = DEFAULT_MIME_TYPE


class ProviderInterface(ABC):
    """Abstract base class for file hosting probers.

    Subclasses implement ``fetch_info``, which may raise freely. Callers use
    ``probe``, which bounds the call with the probe timeout and turns every
    failure into an unknown result.
    """

    def __init__(
        self, retry_config: Retry | None = None, timeout: float | None = None
    ):
        settings = get_settings()
        self._settings = settings
        if retry_config is None:
            retry_config = Retry(
                total=2,
                backoff_factor=0.2,
                status_forcelist=[429, 500, 502, 503, 504],
                allowed_methods=["HEAD", "GET", "OPTIONS"],
            )
        self.timeout = timeout or settings.probe_timeout
        self.session = niquests.AsyncSession(retries=retry_config)
        if settings.proxy:
            self.session.proxies = {"http": settings.proxy, "https": settings.proxy}

    async def aclose(self) -> None:
        """Properly close the internal HTTP session."""
        if hasattr(self, "session") and self.session:
            await self.session.close()

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the unique name of this provider."""
        pass

    @property
    @abstractmethod
    def provider_type(self) -> ProviderType:
        """Return the link type this provider probes."""
        pass

    @abstractmethod
    async def fetch_info(self, url: str) -> ProbeResult:
        """Query the provider's file info API for a link.

        Args:
            url: The provider link as found on the episode page.

        Returns:
            A ProbeResult; unknown fields when the provider has no answer.
        """
        pass

    async def probe(self, url: str) -> ProbeResult:
        """Probe a link, never raising."""
        try:
            return await asyncio.wait_for(self.fetch_info(url), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"{self.name} probe timed out after {self.timeout}s: {url}")
        except Exception as e:
            logger.error(f"Error probing {self.name} link {url}: {e}")
        return ProbeResult()


def parse_byte_count(value) -> int | None:
    """Parse a provider byte count that may arrive as int or numeric string."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
