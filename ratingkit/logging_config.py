from __future__ import annotations

import logging
import sys
from typing import Any, Optional

from loguru import logger


LIBRARY_NAME = "ratingkit"

_configured = False
_host_level = "INFO"
_library_level: Optional[str] = None


class _InterceptHandler(logging.Handler):
    """
    Route stdlib ``logging`` records into loguru.

    The stdlib logger name is kept in ``extra["logger_name"]`` so records from
    ``logging.getLogger("ratingkit.*")`` obey the library level as well.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.bind(logger_name=record.name).opt(
            depth=depth, exception=record.exc_info
        ).log(level, record.getMessage())


def is_library_record(record: dict) -> bool:
    name = record["extra"].get("logger_name") or record["name"] or ""
    return name == LIBRARY_NAME or name.startswith(LIBRARY_NAME + ".")


def _level_no(level: str) -> int:
    return logger.level(level.upper()).no


def _filter(record: dict) -> bool:
    if is_library_record(record):
        return record["level"].no >= _level_no(_library_level or _host_level)
    return record["level"].no >= _level_no(_host_level)


def set_library_level(level: Optional[str]) -> None:
    """
    Change the threshold for ratingkit's own records at runtime.

    ``None`` falls back to the host level. Use ``"CRITICAL"`` to keep the
    library quiet inside a chatty host.
    """
    global _library_level
    if level is not None:
        _level_no(level)
    _library_level = level.upper() if level else None


def setup_logging(
    *,
    level: str = "INFO",
    library_level: Optional[str] = None,
    force: bool = False,
    sink: Any = None,
    fmt: Optional[str] = None,
) -> None:
    """
    Configure a single global loguru sink for ratingkit and its host.

    Parameters:
    - level: minimum level for host records (anything outside ``ratingkit``).
    - library_level: minimum level for ``ratingkit.*`` records; defaults to ``level``.
    - force: reconfigure even if already configured.
    - sink: loguru sink; defaults to the current ``sys.stderr``.
    - fmt: optional custom format.
    """
    global _configured, _host_level

    if _configured and not force:
        return

    _level_no(level)
    _host_level = level.upper()
    set_library_level(library_level)

    if sink is None:
        sink = sys.stderr

    logger.remove()
    logger.add(
        sink,
        level=0,
        colorize=sink is sys.__stderr__,
        filter=_filter,
        format=(
            fmt
            or "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
               "<level>{level: <8}</level> | "
               "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
               "<level>{message}</level>"
        ),
    )

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)
    _configured = True
