"""API routes returning JSON for the series web client."""

import base64
import binascii
import logging
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from hashseries.core.result import Err, ErrorKind, Ok, Result
from hashseries.services.pipeline import SeriesPipeline

logger = logging.getLogger(__name__)

router = APIRouter()


def decode_target_url(encoded: str) -> Result[str]:
    """Decode a standard or URL-safe base64 string into an http(s) URL."""
    normalized = encoded.strip().replace("-", "+").replace("_", "/")
    normalized += "=" * (-len(normalized) % 4)
    try:
        target = base64.b64decode(normalized, validate=True).decode("utf-8")
    except (binascii.Error, ValueError):
        return Err(ErrorKind.INPUT_INVALID, "Invalid base64 encoded URL")

    parsed = urlparse(target)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return Err(ErrorKind.INPUT_INVALID, "Invalid base64 encoded URL")
    return Ok(target)


def error_response(err: Err) -> JSONResponse:
    """Render a pipeline failure.

    Client errors and listing-level misses carry only ``error``; upstream
    failures and the "no usable links" miss also carry ``success: false``.
    """
    body = {"error": err.message, **err.extra}
    if err.flagged or err.kind == ErrorKind.UPSTREAM_FAILURE:
        body = {"success": False, **body}
    return JSONResponse(body, status_code=err.kind.http_status)


def get_pipeline(request: Request) -> SeriesPipeline:
    return request.app.state.pipeline


@router.get("/hash/{encoded:path}")
async def series_by_hash(
    encoded: str, pipeline: SeriesPipeline = Depends(get_pipeline)
):
    """Aggregate a series from its base64-encoded listing page URL."""
    target = decode_target_url(encoded)
    if isinstance(target, Err):
        return error_response(target)

    try:
        result = await pipeline.run(target.value)
    except Exception as e:
        logger.error(f"Pipeline failed for {target.value}: {e}", exc_info=e)
        return JSONResponse({"success": False, "error": str(e)}, status_code=500)

    if isinstance(result, Err):
        if result.status_code is not None:
            logger.warning(
                f"Series request for {target.value} failed: {result.message} "
                f"(upstream status {result.status_code})"
            )
        else:
            logger.info(f"Series request for {target.value} failed: {result.message}")
        return error_response(result)

    return {"success": True, "data": result.value.to_wire()}


@router.api_route("/hash/{encoded:path}", methods=["POST", "PUT", "PATCH", "DELETE"])
async def series_by_hash_not_allowed(encoded: str):
    return JSONResponse({"error": "Method not allowed"}, status_code=405)


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "service": "hashseries"}
