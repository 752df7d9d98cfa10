"""Ephemeral local package registry for end-to-end test suites."""

from __future__ import annotations

import asyncio
import sys
from importlib import metadata
from typing import Optional, Sequence

from .core import (
    ConfigWriteError,
    LocalRegistryError,
    PrematureExitError,
    RegistrySession,
    SpawnError,
    StartupTimeoutError,
    TeardownWarning,
    UsageError,
    start_local_registry,
    start_local_registry_sync,
    stop_local_registry,
)

try:
    __version__ = metadata.version("local-registry")
except metadata.PackageNotFoundError:  # pragma: no cover - local dev
    __version__ = "0.0.0"


def run(argv: Optional[Sequence[str]] = None) -> None:
    """Console-script wrapper around the async CLI entry point."""
    from .app.runner import main

    sys.exit(asyncio.run(main(list(argv) if argv is not None else None)))


__all__ = [
    "__version__",
    "run",
    "start_local_registry",
    "start_local_registry_sync",
    "stop_local_registry",
    "RegistrySession",
    "LocalRegistryError",
    "UsageError",
    "SpawnError",
    "PrematureExitError",
    "StartupTimeoutError",
    "ConfigWriteError",
    "TeardownWarning",
]
