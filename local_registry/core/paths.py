"""Centralized path constants for the local registry harness."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

# Settings file looked up relative to the working directory of the test run
CONFIG_ENV_VAR = "LOCAL_REGISTRY_CONFIG"
DEFAULT_CONFIG_NAME = "local-registry.txt"

# Registry storage used when a hook does not pass one explicitly
DEFAULT_STORAGE_DIR = Path("tmp") / "local-registry" / "storage"


def resolve_config_path(cwd: Optional[Path] = None) -> Optional[Path]:
    """Return the settings file to read, or None when there is none."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()

    candidate = (cwd or Path.cwd()) / DEFAULT_CONFIG_NAME
    if candidate.exists():
        return candidate
    return None


__all__ = [
    'CONFIG_ENV_VAR',
    'DEFAULT_CONFIG_NAME',
    'DEFAULT_STORAGE_DIR',
    'resolve_config_path',
]
