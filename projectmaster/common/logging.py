"""Logging setup shared by the app, the store and the integrations."""

from __future__ import annotations

import logging
import sys

ROOT_LOGGER = "projectmaster"
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(level: str | None = None) -> None:
    from projectmaster.config import settings

    level_name = (level or settings.LOG_LEVEL).upper()
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, level_name, logging.INFO))

    if not any(getattr(h, "_projectmaster", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._projectmaster = True  # type: ignore[attr-defined]
        root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
