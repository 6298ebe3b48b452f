from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once per process from ``LOG_LEVEL``.

    Production defaults to WARNING, everything else to DEBUG.
    """
    env = os.getenv("ENV", "development")
    default = "WARNING" if env == "production" else "DEBUG"
    level = (level or os.getenv("LOG_LEVEL", default)).upper()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT, datefmt=DATE_FORMAT)
    root.setLevel(level)
    # uvicorn's access log duplicates the request logger
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
