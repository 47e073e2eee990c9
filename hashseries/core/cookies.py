"""Session cookies for the content site.

The site gates episode pages behind a browser session, so the cookies of a
logged-in session are provisioned externally (``COOKIE_DATA`` or a JSON file)
and replayed on every page and AJAX request.
"""

import json
import logging
from typing import List

from pydantic import BaseModel, TypeAdapter, ValidationError

from hashseries.core.config import Settings

logger = logging.getLogger(__name__)


class SessionCookie(BaseModel):
    """A single name/value session cookie."""

    name: str
    value: str


_cookie_list = TypeAdapter(List[SessionCookie])


def parse_cookies(raw: str) -> List[SessionCookie]:
    """Parse a JSON list of cookies, returning an empty list on bad input."""
    try:
        data = json.loads(raw or "[]")
    except json.JSONDecodeError as exc:
        logger.error("Error parsing cookie data: %s", exc)
        return []

    if not isinstance(data, list):
        logger.warning("No valid cookie data found, expected a JSON list")
        return []

    try:
        return _cookie_list.validate_python(data)
    except ValidationError as exc:
        logger.error("Invalid cookie entries: %s", exc)
        return []


def load_cookies(settings: Settings) -> List[SessionCookie]:
    """Load cookies from the configured file, falling back to the env value."""
    if settings.cookie_file is not None:
        try:
            raw = settings.cookie_file.read_text(encoding="utf-8")
        except OSError as exc:
            logger.error(
                "Error reading cookie file %s: %s", settings.cookie_file, exc
            )
            return []
        return parse_cookies(raw)

    return parse_cookies(settings.cookie_data)


def cookie_header(cookies: List[SessionCookie]) -> str:
    """Render cookies as a ``Cookie`` header value."""
    return "; ".join(f"{cookie.name}={cookie.value}" for cookie in cookies)
