import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from hashseries.api.routes_api import router as api_router
from hashseries.core.config import get_settings
from hashseries.core.cookies import load_cookies
from hashseries.core.cors import ALLOW_ORIGIN, PermissiveCORSMiddleware
from hashseries.core.log_config import configure_logging
from hashseries.providers import ProviderRegistry, register_provider
from hashseries.providers.google_drive_provider import GoogleDriveProvider
from hashseries.providers.pixeldrain_provider import PixeldrainProvider
from hashseries.services.pipeline import SeriesPipeline
from hashseries.services.site import SiteClient

load_dotenv()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    """Application lifespan context manager."""
    settings = get_settings()
    configure_logging(settings)

    cookies = load_cookies(settings)
    logger.info(f"Loaded {len(cookies)} session cookies")
    site = SiteClient(cookies, settings)
    app.state.pipeline = SeriesPipeline(site, ProviderRegistry.as_mapping(), settings)
    try:
        yield
    finally:
        # Teardown HTTP sessions
        await site.aclose()
        for provider in ProviderRegistry.all():
            try:
                await provider.aclose()
            except Exception as e:
                logger.error(f"Error closing provider {provider.name}: {e}")


app = FastAPI(
    title="hashseries",
    description="Aggregates TV series episodes, TMDB metadata and download mirrors",
    version="0.1.0",
    lifespan=app_lifespan,
)

app.add_middleware(PermissiveCORSMiddleware)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        {"error": exc.detail}, status_code=exc.status_code, headers=exc.headers
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        {"success": False, "error": str(exc)}, status_code=500, headers=ALLOW_ORIGIN
    )


# Register providers
register_provider(GoogleDriveProvider())
register_provider(PixeldrainProvider())

# Include routers
app.include_router(api_router)
