"""Root logging setup for the ``local-registry`` command."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATEFMT = "%H:%M:%S"
LOG_FILE_MAX_BYTES = 1024 * 1024
LOG_FILE_BACKUPS = 2


def configure_logging(
    level: Union[int, str] = logging.INFO,
    *,
    force: bool = False,
    log_file: Optional[Union[str, Path]] = None,
) -> None:
    """Log to stderr and, when ``log_file`` is given, to a rotating file.

    stdout is reserved for the registry URL and the wrapped command.
    """
    if isinstance(level, str):
        numeric = logging.getLevelName(level.upper())
        if not isinstance(numeric, int):
            raise ValueError(f"Unknown log level: {level}")
        level = numeric

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            log_path,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        ))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        handlers=handlers,
        force=force,
    )
    # asyncio reports every slow callback at DEBUG
    logging.getLogger("asyncio").setLevel(logging.WARNING)


__all__ = ["configure_logging", "LOG_FORMAT"]
