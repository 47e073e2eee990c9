"""Google Drive provider."""

import logging
import re

from hashseries.models.media import DEFAULT_MIME_TYPE, UNKNOWN, ProviderType
from hashseries.providers.base import ProbeResult, ProviderInterface, parse_byte_count
from hashseries.services.sizes import bytes_to_human

logger = logging.getLogger(__name__)

API_URL = "https://www.googleapis.com/drive/v3/files/{file_id}"
FIELDS = "name,size,mimeType,videoMediaMetadata"

FILE_ID_RE = re.compile(r"/d/([a-zA-Z0-9_-]+)")

# (max height, label), checked in order
HEIGHT_BUCKETS = [
    (360, "360p"),
    (480, "480p"),
    (720, "720p"),
    (1080, "1080p"),
    (1440, "1440p"),
    (2160, "4K"),
]

# (kbps upper bound, label), checked in order
BITRATE_BUCKETS = [
    (800, "360p"),
    (1500, "480p"),
    (3000, "720p"),
    (6000, "1080p"),
]


def quality_from_height(height: int) -> str:
    for limit, label in HEIGHT_BUCKETS:
        if height <= limit:
            return label
    return f"{height}p"


def quality_from_bitrate(size_bytes: int, duration_millis: float) -> str:
    """Estimate quality from the average bitrate in kbps."""
    bitrate = (size_bytes * 8) / (duration_millis / 1000) / 1000
    for limit, label in BITRATE_BUCKETS:
        if bitrate < limit:
            return label
    return "4K+"


class GoogleDriveProvider(ProviderInterface):
    """Reads size, mime type and video resolution from the Drive v3 API."""

    @property
    def name(self) -> str:
        return "GoogleDrive"

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.GOOGLE_DRIVE

    async def fetch_info(self, url: str) -> ProbeResult:
        match = FILE_ID_RE.search(url)
        if not match:
            return ProbeResult()
        file_id = match.group(1)

        api_key = self._settings.google_drive_api_key
        if not api_key:
            logger.debug("No Google Drive API key configured, skipping %s", file_id)
            return ProbeResult()

        response = await self.session.get(
            API_URL.format(file_id=file_id),
            params={"fields": FIELDS, "key": api_key},
            timeout=self.timeout,
        )
        if not response.ok:
            logger.error(
                "Google Drive API error for %s: %s %s",
                file_id,
                response.status_code,
                response.text,
            )
            return ProbeResult()

        data = response.json() or {}
        size_bytes = parse_byte_count(data.get("size"))
        size = bytes_to_human(size_bytes) if size_bytes is not None else UNKNOWN

        quality = UNKNOWN
        metadata = data.get("videoMediaMetadata") or {}
        height = metadata.get("height")
        duration = metadata.get("durationMillis")
        if height:
            quality = quality_from_height(int(height))
        elif duration and size_bytes:
            quality = quality_from_bitrate(size_bytes, float(duration))

        return ProbeResult(
            quality=quality,
            size=size,
            mime_type=data.get("mimeType") or DEFAULT_MIME_TYPE,
        )
