import base64
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from hashseries.api.routes_api import decode_target_url, get_pipeline
from hashseries.core.result import Err, ErrorKind, Ok
from hashseries.main import app
from hashseries.models.media import SeriesDocument, SeriesMetadata

client = TestClient(app)

TARGET_URL = "https://cineru.lk/tvshows/game-of-thrones/"
ENCODED = base64.b64encode(TARGET_URL.encode()).decode()


@pytest.fixture
def pipeline():
    """Override the pipeline dependency for the test and drop it after."""
    mock = MagicMock()
    mock.run = AsyncMock()
    app.dependency_overrides[get_pipeline] = lambda: mock
    yield mock
    app.dependency_overrides.pop(get_pipeline, None)


def _document():
    return SeriesDocument(
        metadata=SeriesMetadata(
            tv_id=1399,
            imdb_id="tt0944947",
            imdb_url="https://www.imdb.com/title/tt0944947/",
            tmdb_url="https://www.themoviedb.org/tv/1399",
        )
    )


def test_decode_target_url_variants():
    assert decode_target_url(ENCODED) == Ok(TARGET_URL)
    urlsafe = base64.urlsafe_b64encode(TARGET_URL.encode()).decode().rstrip("=")
    assert decode_target_url(urlsafe) == Ok(TARGET_URL)
    assert isinstance(decode_target_url("not base64!!"), Err)
    not_a_url = base64.b64encode(b"just text").decode()
    assert isinstance(decode_target_url(not_a_url), Err)


def test_success_response(pipeline):
    pipeline.run.return_value = Ok(_document())

    response = client.get(f"/hash/{ENCODED}")

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    body = response.json()
    assert body["success"] is True
    assert body["data"]["metadata"]["tvShowId"] == 1399
    pipeline.run.assert_awaited_once_with(TARGET_URL)


def test_invalid_base64_is_400(pipeline):
    response = client.get("/hash/not-base64!!")
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid base64 encoded URL"}
    pipeline.run.assert_not_called()


def test_not_found_without_success_flag(pipeline):
    pipeline.run.return_value = Err(ErrorKind.NOT_FOUND, "Could not find TV show on TMDB")
    response = client.get(f"/hash/{ENCODED}")
    assert response.status_code == 404
    assert response.json() == {"error": "Could not find TV show on TMDB"}


def test_no_usable_links_is_flagged_404(pipeline):
    pipeline.run.return_value = Err(
        ErrorKind.NOT_FOUND,
        "No valid download links found for any episode in any season",
        flagged=True,
    )
    response = client.get(f"/hash/{ENCODED}")
    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert "data" not in body


def test_upstream_failure_is_500(pipeline):
    pipeline.run.return_value = Err(
        ErrorKind.UPSTREAM_FAILURE, "Failed to fetch series page: 503", status_code=503
    )
    response = client.get(f"/hash/{ENCODED}")
    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "Failed to fetch series page: 503",
    }


def test_pipeline_exception_is_500(pipeline):
    pipeline.run.side_effect = RuntimeError("unexpected")
    response = client.get(f"/hash/{ENCODED}")
    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "unexpected"}


def test_post_not_allowed(pipeline):
    response = client.post(f"/hash/{ENCODED}")
    assert response.status_code == 405
    assert response.json() == {"error": "Method not allowed"}


def test_unknown_route_is_404():
    response = client.get("/nope")
    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}
    assert response.headers["access-control-allow-origin"] == "*"


def test_options_preflight():
    response = client.options("/anything")
    assert response.status_code == 200
    assert response.content == b""
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"


def test_health_check():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_upstream_status_is_logged(pipeline, caplog):
    pipeline.run.return_value = Err(
        ErrorKind.UPSTREAM_FAILURE, "Failed to fetch series page: 503", status_code=503
    )
    with caplog.at_level("WARNING", logger="hashseries.api.routes_api"):
        client.get(f"/hash/{ENCODED}")
    assert "upstream status 503" in caplog.text


def test_health_body():
    assert client.get("/health").json() == {"status": "ok", "service": "hashseries"}
