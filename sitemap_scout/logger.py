# === FILE: sitemap_scout/logger.py ===
"""Logging setup for **SitemapScout**.

* Everything logs below the ``SitemapScout`` logger; modules take a child via
  :func:`get_logger` (``SitemapScout.fetcher``, ``SitemapScout.frontier`` ...).
* Console output goes to *stderr*: stdout is reserved for reports and
  ``--stream`` JSON lines so that they can be piped.
* Optional rotating log file.
* Chatty third-party loggers (aiohttp, asyncio) are held at WARNING unless
  the project itself runs at DEBUG.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Iterable, TextIO, Union

_DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_LOGGER_NAME: Final[str] = "SitemapScout"
_NOISY_LIBRARIES: Final[tuple[str, ...]] = ("aiohttp.client", "aiohttp.internal", "asyncio")

_LevelT = Union[int, str]


def _console_handler(fmt: str, stream: TextIO | None = None) -> logging.StreamHandler:
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _file_handler(file: Path | str, fmt: str) -> RotatingFileHandler:
    path = Path(file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _tame(libraries: Iterable[str], project_level: int) -> None:
    level = logging.DEBUG if project_level <= logging.DEBUG else logging.WARNING
    for name in libraries:
        logging.getLogger(name).setLevel(level)


def get_logger(component: str | None = None) -> logging.Logger:
    """Return the project logger or its ``SitemapScout.<component>`` child."""
    if component:
        return logging.getLogger(f"{_LOGGER_NAME}.{component}")
    return logging.getLogger(_LOGGER_NAME)


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """(Re)configure the project logger.

    Parameters
    ----------
    level
        Numeric or textual level (``"DEBUG"``, ``logging.INFO`` ...).
    log_file
        Rotating log file next to the console output; *None* disables it.
    log_format
        Format string shared by all handlers.
    replace_handlers
        Drop previously installed handlers first (the CLI reconfigures on every call).
    """
    lg = logging.getLogger(_LOGGER_NAME)
    lg.setLevel(level)

    if replace_handlers:
        for handler in list(lg.handlers):
            lg.removeHandler(handler)
            handler.close()

    lg.addHandler(_console_handler(log_format))
    if log_file is not None:
        lg.addHandler(_file_handler(log_file, log_format))

    lg.propagate = False
    _tame(_NOISY_LIBRARIES, lg.level)
    return lg


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
) -> logging.Logger:
    """CLI entry: console (+ optional file) logging at *level*."""
    return configure(level=level, log_file=log_file, log_format=log_format, replace_handlers=True)


logger: logging.Logger = init_logging()

__all__ = ["logger", "configure", "init_logging", "get_logger"]
