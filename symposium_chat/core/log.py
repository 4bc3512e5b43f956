"""Package logger and logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger("symposium_chat")

_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level: str = "INFO", file: Path | None = None) -> None:
    """Attach a stderr handler (and optionally a file handler) to the root logger.

    Unknown level names fall back to INFO.
    """
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if file is not None:
        file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(file, encoding="utf-8"))

    logging.basicConfig(level=numeric, format=_FORMAT, handlers=handlers, force=True)
    logger.setLevel(numeric)
