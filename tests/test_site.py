import asyncio
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import AsyncMock, MagicMock, patch

import brotli
import niquests
import pytest

from hashseries.core.config import Settings
from hashseries.core.cookies import SessionCookie
from hashseries.core.result import Err, ErrorKind, Ok
from hashseries.services.extractor import extract_imdb_link
from hashseries.services.site import SiteClient, unwrap_download_payload

LISTING_HTML = """
<html><body>
  <a class="btn" data-lity href="https://www.imdb.com/title/tt0944947/">IMDb</a>
</body></html>
"""

AJAX_URL = "https://cineru.lk/wp-admin/admin-ajax.php"
EPISODE_URL = "https://cineru.lk/episodes/game-of-thrones-s01e01/"


def _settings(**overrides):
    return Settings(tmdb_api_key="k", **overrides)


def _response(text="", ok=True, status_code=200):
    response = MagicMock()
    response.ok = ok
    response.status_code = status_code
    response.text = text
    return response


@pytest.fixture
def brotli_server():
    """Serve the listing page Brotli-compressed when the client accepts it."""

    class Handler(BaseHTTPRequestHandler):
        def do_GET(self):
            body = LISTING_HTML.encode()
            encoding = None
            if "br" in self.headers.get("Accept-Encoding", ""):
                body = brotli.compress(body)
                encoding = "br"
            self.send_response(200)
            self.send_header("Content-Type", "text/html; charset=utf-8")
            if encoding:
                self.send_header("Content-Encoding", encoding)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format, *args):
            pass

    server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}/tvshows/game-of-thrones/"
    server.shutdown()
    server.server_close()


@pytest.mark.asyncio
async def test_fetch_listing_decodes_brotli(brotli_server):
    site = SiteClient([], _settings())
    site.session.trust_env = False
    try:
        result = await site.fetch_listing(brotli_server)
    finally:
        await site.aclose()

    assert isinstance(result, Ok)
    assert extract_imdb_link(result.value) == "https://www.imdb.com/title/tt0944947/"


@pytest.mark.asyncio
async def test_fetch_listing_non_2xx():
    site = SiteClient([], _settings())
    with patch.object(
        site.session, "get", new_callable=AsyncMock,
        return_value=_response(ok=False, status_code=503),
    ):
        result = await site.fetch_listing("https://cineru.lk/tvshows/x/")

    assert result == Err(
        ErrorKind.UPSTREAM_FAILURE, "Failed to fetch series page: 503", status_code=503
    )


@pytest.mark.asyncio
async def test_fetch_listing_sends_browser_headers_and_cookies():
    site = SiteClient([SessionCookie(name="wp", value="abc")], _settings())
    with patch.object(
        site.session, "get", new_callable=AsyncMock, return_value=_response("<html/>")
    ) as mock_get:
        result = await site.fetch_listing("https://cineru.lk/tvshows/x/")

    assert result == Ok("<html/>")
    headers = mock_get.call_args.kwargs["headers"]
    assert headers["Cookie"] == "wp=abc"
    assert headers["User-Agent"].startswith("Mozilla/5.0")


@pytest.mark.asyncio
async def test_fetch_episode_page_deadline():
    async def slow(*args, **kwargs):
        await asyncio.sleep(1)

    site = SiteClient([], _settings(episode_page_timeout=0.05))
    with patch.object(site.session, "get", new_callable=AsyncMock, side_effect=slow):
        result = await site.fetch_episode_page(EPISODE_URL)

    assert result == Err(ErrorKind.EPISODE_FAILURE, "Episode page fetch timeout")


@pytest.mark.asyncio
async def test_fetch_episode_page_transport_timeout():
    site = SiteClient([], _settings())
    with patch.object(
        site.session, "get", new_callable=AsyncMock,
        side_effect=niquests.exceptions.Timeout("read timed out"),
    ):
        result = await site.fetch_episode_page(EPISODE_URL)

    assert result == Err(ErrorKind.EPISODE_FAILURE, "Episode page fetch timeout")


@pytest.mark.asyncio
async def test_fetch_episode_page_non_2xx():
    site = SiteClient([], _settings())
    with patch.object(
        site.session, "get", new_callable=AsyncMock,
        return_value=_response(ok=False, status_code=404),
    ):
        result = await site.fetch_episode_page(EPISODE_URL)

    assert result.kind == ErrorKind.EPISODE_FAILURE
    assert result.message == "Failed to fetch episode page: 404"


@pytest.mark.asyncio
async def test_fetch_download_fragment_posts_form():
    site = SiteClient([SessionCookie(name="wp", value="abc")], _settings())
    payload = '{"data": "<div id=\\"hc_panel\\"></div>"}'
    with patch.object(
        site.session, "post", new_callable=AsyncMock, return_value=_response(payload)
    ) as mock_post:
        result = await site.fetch_download_fragment(AJAX_URL, "4242", EPISODE_URL)

    assert result == Ok('<div id="hc_panel"></div>')
    args, kwargs = mock_post.call_args
    assert args == (AJAX_URL,)
    assert kwargs["data"] == {"action": "cs_download_data", "post_id": "4242"}
    assert kwargs["headers"]["Referer"] == EPISODE_URL
    assert kwargs["headers"]["X-Requested-With"] == "XMLHttpRequest"
    assert kwargs["headers"]["Cookie"] == "wp=abc"


@pytest.mark.asyncio
async def test_fetch_download_fragment_non_2xx():
    site = SiteClient([], _settings())
    with patch.object(
        site.session, "post", new_callable=AsyncMock,
        return_value=_response(ok=False, status_code=403),
    ):
        result = await site.fetch_download_fragment(AJAX_URL, "4242", EPISODE_URL)

    assert isinstance(result, Err)
    assert result.status_code == 403


@pytest.mark.asyncio
async def test_fetch_download_fragment_timeout():
    async def slow(*args, **kwargs):
        await asyncio.sleep(1)

    site = SiteClient([], _settings(ajax_timeout=0.05))
    with patch.object(site.session, "post", new_callable=AsyncMock, side_effect=slow):
        result = await site.fetch_download_fragment(AJAX_URL, "4242", EPISODE_URL)

    assert result == Err(ErrorKind.EPISODE_FAILURE, "Download links fetch timeout")


def test_unwrap_download_payload():
    assert unwrap_download_payload('{"data": "<b>x</b>"}') == "<b>x</b>"
    assert unwrap_download_payload("<div>raw</div>") == "<div>raw</div>"
    assert unwrap_download_payload('{"success": false}') is None
    assert unwrap_download_payload('{"data": ""}') is None
