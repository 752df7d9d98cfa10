"""Component-prefixed loggers under the ``local_registry`` namespace."""

from __future__ import annotations

import logging
from typing import Optional, Union

LOGGER_NAMESPACE = "local_registry"


class StructuredLogger:
    """Prefixes every message with ``[Component]``.

    Formatting stays lazy: arguments are handed to the wrapped logger as-is.
    """

    def __init__(self, logger: logging.Logger, component: Optional[str] = None) -> None:
        self.logger = logger
        self.component = component or logger.name.rsplit(".", 1)[-1]

    def _log(self, level: int, message: object, args: tuple, kwargs: dict) -> None:
        if self.logger.isEnabledFor(level):
            kwargs.setdefault("stacklevel", 3)
            self.logger.log(level, f"[{self.component}] {message}", *args, **kwargs)

    def debug(self, message: object, *args, **kwargs) -> None:
        self._log(logging.DEBUG, message, args, kwargs)

    def info(self, message: object, *args, **kwargs) -> None:
        self._log(logging.INFO, message, args, kwargs)

    def warning(self, message: object, *args, **kwargs) -> None:
        self._log(logging.WARNING, message, args, kwargs)

    def error(self, message: object, *args, **kwargs) -> None:
        self._log(logging.ERROR, message, args, kwargs)


LoggerLike = Union[StructuredLogger, logging.Logger, None]


def ensure_structured_logger(logger: LoggerLike, *, fallback_name: Optional[str] = None) -> StructuredLogger:
    if isinstance(logger, StructuredLogger):
        return logger
    if isinstance(logger, logging.Logger):
        return StructuredLogger(logger)
    return get_module_logger(fallback_name)


def get_module_logger(name: Optional[str] = None) -> StructuredLogger:
    """Return ``local_registry.<name>`` wrapped so messages carry ``[<name>]``."""
    if not name or name == LOGGER_NAMESPACE:
        return StructuredLogger(logging.getLogger(LOGGER_NAMESPACE), component="Registry")
    if name.startswith(LOGGER_NAMESPACE + "."):
        name = name[len(LOGGER_NAMESPACE) + 1:]
    return StructuredLogger(logging.getLogger(f"{LOGGER_NAMESPACE}.{name}"), component=name)


__all__ = ["LoggerLike", "StructuredLogger", "ensure_structured_logger", "get_module_logger"]
