"""Route lifecycle and live-tracking core of the EV delivery fleet console."""

from __future__ import annotations

import logging

from .config import settings

__version__ = "0.1.0"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
