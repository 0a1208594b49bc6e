from __future__ import annotations

import logging
import os
from typing import Literal

import coloredlogs  # type: ignore[import]

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]

LEVEL_ENV_VAR = "LOGLEVEL"
DEFAULT_LEVEL = "INFO"

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(message)s"
DEBUG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
DATE_FORMAT = "%H:%M:%S"

# httpx logs every request at INFO
HTTP_LOGGERS = ("httpx", "httpcore")


def setup_logging(level: LogLevel | str | None = None) -> None:
    resolved = (level or os.environ.get(LEVEL_ENV_VAR) or DEFAULT_LEVEL).upper()
    debug = resolved == "DEBUG"

    coloredlogs.install(
        level=resolved,
        fmt=DEBUG_FORMAT if debug else DEFAULT_FORMAT,
        datefmt=DATE_FORMAT,
    )

    http_level = logging.INFO if debug else logging.WARNING
    for name in HTTP_LOGGERS:
        logging.getLogger(name).setLevel(http_level)
