"""Logging setup."""

import logging

from hashseries.core.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(settings: Settings) -> None:
    level = logging.DEBUG if settings.debug else settings.log_level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # Per-request connection chatter
    logging.getLogger("urllib3").setLevel(logging.WARNING)
