"""Logging setup for the API and scripts."""
import logging
from typing import Optional

from .settings import get_settings


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None):
    """Configure root logging once, using the settings level by default."""
    level = (level or get_settings().log_level).upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
    logging.getLogger("cabinet_pricing").setLevel(level)
