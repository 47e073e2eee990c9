import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from hashseries.providers import ProviderRegistry
from hashseries.providers.base import ProbeResult
from hashseries.providers.google_drive_provider import (
    GoogleDriveProvider,
    quality_from_bitrate,
    quality_from_height,
)
from hashseries.providers.pixeldrain_provider import PixeldrainProvider, quality_from_size

MB = 1024 * 1024


def _response(data, ok=True, status_code=200):
    response = MagicMock()
    response.ok = ok
    response.status_code = status_code
    response.text = ""
    response.json.return_value = data
    return response


def test_quality_from_height_buckets():
    assert quality_from_height(360) == "360p"
    assert quality_from_height(404) == "480p"
    assert quality_from_height(720) == "720p"
    assert quality_from_height(1080) == "1080p"
    assert quality_from_height(1440) == "1440p"
    assert quality_from_height(2160) == "4K"
    assert quality_from_height(4320) == "4320p"


def test_quality_from_bitrate_buckets():
    # 1 hour at the given kbps
    def size_for(kbps):
        return int(kbps * 1000 / 8 * 3600)

    hour = 3600 * 1000
    assert quality_from_bitrate(size_for(700), hour) == "360p"
    assert quality_from_bitrate(size_for(1000), hour) == "480p"
    assert quality_from_bitrate(size_for(2500), hour) == "720p"
    assert quality_from_bitrate(size_for(5000), hour) == "1080p"
    assert quality_from_bitrate(size_for(8000), hour) == "4K+"


def test_quality_from_size_buckets():
    assert quality_from_size(None) == "unknown"
    assert quality_from_size(0) == "unknown"
    assert quality_from_size(50 * MB) == "360p"
    assert quality_from_size(200 * MB) == "480p"
    assert quality_from_size(600 * MB) == "720p"
    assert quality_from_size(1200 * MB) == "1080p"
    assert quality_from_size(2000 * MB) == "4K"


@pytest.mark.asyncio
async def test_google_drive_probe_with_resolution():
    provider = GoogleDriveProvider()
    data = {
        "size": str(1536 * MB),
        "mimeType": "video/x-matroska",
        "videoMediaMetadata": {"height": 1080, "width": 1920},
    }
    with patch.object(
        provider.session, "get", new_callable=AsyncMock, return_value=_response(data)
    ) as mock_get:
        result = await provider.probe("https://drive.google.com/file/d/abc_123/view")

    assert result == ProbeResult(quality="1080p", size="1.50 GB", mime_type="video/x-matroska")
    url = mock_get.call_args.args[0]
    assert url == "https://www.googleapis.com/drive/v3/files/abc_123"
    assert mock_get.call_args.kwargs["params"]["key"] == "test-drive-key"


@pytest.mark.asyncio
async def test_google_drive_probe_estimates_from_bitrate():
    provider = GoogleDriveProvider()
    data = {
        "size": str(450 * MB),
        "videoMediaMetadata": {"durationMillis": "2700000"},
    }
    with patch.object(
        provider.session, "get", new_callable=AsyncMock, return_value=_response(data)
    ):
        result = await provider.probe("https://drive.google.com/file/d/abc/view")

    # 450 MB over 45 minutes is roughly 1400 kbps
    assert result.quality == "480p"
    assert result.size == "450.00 MB"
    assert result.mime_type == "video/mp4"


@pytest.mark.asyncio
async def test_google_drive_probe_without_file_id_skips_request():
    provider = GoogleDriveProvider()
    with patch.object(provider.session, "get", new_callable=AsyncMock) as mock_get:
        result = await provider.probe("https://drive.google.com/open?id=abc")
    assert result == ProbeResult()
    mock_get.assert_not_called()


@pytest.mark.asyncio
async def test_google_drive_probe_api_error():
    provider = GoogleDriveProvider()
    with patch.object(
        provider.session,
        "get",
        new_callable=AsyncMock,
        return_value=_response({}, ok=False, status_code=403),
    ):
        result = await provider.probe("https://drive.google.com/file/d/abc/view")
    assert result == ProbeResult()


@pytest.mark.asyncio
async def test_probe_timeout_degrades_to_unknown():
    provider = PixeldrainProvider()
    provider.timeout = 0.01

    async def slow_get(*args, **kwargs):
        await asyncio.sleep(1)

    with patch.object(provider.session, "get", side_effect=slow_get):
        result = await provider.probe("https://pixeldrain.com/u/abc")
    assert result == ProbeResult(quality="unknown", size="unknown", mime_type="video/mp4")


@pytest.mark.asyncio
async def test_probe_exception_degrades_to_unknown():
    provider = PixeldrainProvider()
    with patch.object(
        provider.session, "get", new_callable=AsyncMock, side_effect=ConnectionError("boom")
    ):
        result = await provider.probe("https://pixeldrain.com/u/abc")
    assert result == ProbeResult()


@pytest.mark.asyncio
async def test_pixeldrain_probe():
    provider = PixeldrainProvider()
    data = {"size": 650 * MB, "mime_type": "video/mp4"}
    with patch.object(
        provider.session, "get", new_callable=AsyncMock, return_value=_response(data)
    ) as mock_get:
        result = await provider.probe("https://pixeldrain.com/u/Ab12Cd")

    assert result.quality == "720p"
    assert result.size == "650.00 MB"
    assert mock_get.call_args.args[0] == "https://pixeldrain.com/api/file/Ab12Cd/info"


def test_registry_keys_by_provider_type():
    drive = GoogleDriveProvider()
    pixeldrain = PixeldrainProvider()
    saved = ProviderRegistry.as_mapping()
    try:
        ProviderRegistry.clear()
        ProviderRegistry.register(drive)
        ProviderRegistry.register(pixeldrain)
        assert ProviderRegistry.get(drive.provider_type) is drive
        assert ProviderRegistry.names() == ["GoogleDrive", "Pixeldrain"]
    finally:
        ProviderRegistry.clear()
        for provider in saved.values():
            ProviderRegistry.register(provider)
