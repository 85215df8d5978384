"""Package logger helpers.

Modules log through get_logger(__name__) and never configure handlers. Scripts
such as examples/render_composites_demo.py call configure_logging() to send
soundcircles output to stderr; the level defaults to $SOUNDCIRCLES_LOG_LEVEL.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Union

DEFAULT_FMT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d:%(funcName)s: %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"

LOG_LEVEL_ENV = "SOUNDCIRCLES_LOG_LEVEL"


def configure_logging(
    level: Optional[Union[str, int]] = None,
    *,
    fmt: Optional[str] = None,
    datefmt: Optional[str] = None,
    force: bool = False,
) -> None:
    """Attach one stderr handler to the "soundcircles" logger.

    level falls back to $SOUNDCIRCLES_LOG_LEVEL, then INFO. A second call is a
    no-op unless force=True, which replaces the existing handlers.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, "INFO")
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger("soundcircles")
    logger.setLevel(level)

    formatter = logging.Formatter(fmt=fmt or DEFAULT_FMT, datefmt=datefmt or DEFAULT_DATEFMT)

    if force:
        for h in logger.handlers[:]:
            h.close()
            logger.removeHandler(h)
    else:
        for h in logger.handlers:
            if isinstance(h, logging.StreamHandler) and h.stream is sys.stderr:
                return

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(formatter)
    logger.addHandler(console)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return logging.getLogger(name), or the package logger when name is None."""
    if name is None:
        name = "soundcircles"
    return logging.getLogger(name)
