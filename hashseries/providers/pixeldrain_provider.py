"""Pixeldrain provider."""

import re

from hashseries.models.media import DEFAULT_MIME_TYPE, UNKNOWN, ProviderType
from hashseries.providers.base import ProbeResult, ProviderInterface, parse_byte_count
from hashseries.services.sizes import bytes_to_human

API_URL = "https://pixeldrain.com/api/file/{file_id}/info"

FILE_ID_RE = re.compile(r"/u/([a-zA-Z0-9]+)")

MB = 1024 * 1024

# (byte upper bound, label); Pixeldrain reports no resolution
SIZE_BUCKETS = [
    (100 * MB, "360p"),
    (300 * MB, "480p"),
    (700 * MB, "720p"),
    (1500 * MB, "1080p"),
]


def quality_from_size(size_bytes: int | None) -> str:
    if not size_bytes:
        return UNKNOWN
    for limit, label in SIZE_BUCKETS:
        if size_bytes < limit:
            return label
    return "4K"


class PixeldrainProvider(ProviderInterface):
    """Reads size and mime type from the Pixeldrain file info API."""

    @property
    def name(self) -> str:
        return "Pixeldrain"

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.PIXELDRAIN

    async def fetch_info(self, url: str) -> ProbeResult:
        match = FILE_ID_RE.search(url)
        if not match:
            return ProbeResult()

        response = await self.session.get(
            API_URL.format(file_id=match.group(1)), timeout=self.timeout
        )
        if not response.ok:
            return ProbeResult()

        data = response.json() or {}
        size_bytes = parse_byte_count(data.get("size"))
        return ProbeResult(
            quality=quality_from_size(size_bytes),
            size=bytes_to_human(data.get("size")),
            mime_type=data.get("mime_type") or DEFAULT_MIME_TYPE,
        )
