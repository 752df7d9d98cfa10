"""Runtime settings for the registry lifecycle.

Values come from an optional ``key = value`` settings file (see
:mod:`local_registry.core.paths`) and are overridden by ``LOCAL_REGISTRY_<KEY>``
environment variables.
"""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from .config_manager import get_config_manager
from .errors import UsageError
from .logging_utils import get_module_logger
from .paths import resolve_config_path

logger = get_module_logger("Settings")

ENV_PREFIX = "LOCAL_REGISTRY_"
DEFAULT_LAUNCHER = "npx nx"
DEFAULT_AUTH_TOKEN = "secretVerdaccioToken"
DEFAULT_STARTUP_TIMEOUT = 120.0
DEFAULT_STREAM_LIMIT = 1024 * 1024
CONFIG_STORES = ("npm", "file")

SETTING_KEYS = (
    "launcher",
    "auth_token",
    "startup_timeout",
    "config_store",
    "npm_executable",
    "npm_userconfig",
    "stream_limit",
    "terminate_tree",
)


@dataclass
class RegistrySettings:
    launcher: List[str] = field(default_factory=lambda: shlex.split(DEFAULT_LAUNCHER))
    auth_token: str = DEFAULT_AUTH_TOKEN
    startup_timeout: Optional[float] = DEFAULT_STARTUP_TIMEOUT
    config_store: str = "npm"
    npm_executable: str = "npm"
    npm_userconfig: Optional[Path] = None
    stream_limit: int = DEFAULT_STREAM_LIMIT
    terminate_tree: bool = True

    def __post_init__(self) -> None:
        if not self.launcher:
            raise UsageError("launcher must name a command")
        if self.config_store not in CONFIG_STORES:
            raise UsageError(
                f"config_store must be one of {', '.join(CONFIG_STORES)}, got {self.config_store!r}"
            )
        if self.config_store == "file" and self.npm_userconfig is None:
            raise UsageError("config_store 'file' requires npm_userconfig")
        if self.startup_timeout is not None and self.startup_timeout <= 0:
            self.startup_timeout = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "RegistrySettings":
        """Build settings from raw string values, ignoring unknown keys."""
        cm = get_config_manager()
        config = dict(values)

        launcher = cm.get_str(config, "launcher", DEFAULT_LAUNCHER)
        userconfig = cm.get_str(config, "npm_userconfig")
        timeout = cm.get_float(config, "startup_timeout", DEFAULT_STARTUP_TIMEOUT)

        return cls(
            launcher=shlex.split(launcher),
            auth_token=cm.get_str(config, "auth_token", DEFAULT_AUTH_TOKEN),
            startup_timeout=timeout if timeout > 0 else None,
            config_store=cm.get_str(config, "config_store", "npm").strip().lower(),
            npm_executable=cm.get_str(config, "npm_executable", "npm"),
            npm_userconfig=Path(userconfig).expanduser() if userconfig else None,
            stream_limit=cm.get_int(config, "stream_limit", DEFAULT_STREAM_LIMIT),
            terminate_tree=cm.get_bool(config, "terminate_tree", True),
        )


def _env_overrides(environ: Mapping[str, str]) -> Dict[str, str]:
    overrides = {}
    for key in SETTING_KEYS:
        value = environ.get(ENV_PREFIX + key.upper())
        if value is not None:
            overrides[key] = value
    return overrides


def load_settings(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> RegistrySettings:
    path = config_path or resolve_config_path()
    values: Dict[str, str] = {}
    if path is not None:
        values.update(get_config_manager().read_config(path))
        logger.debug("Loaded settings from %s", path)
    values.update(_env_overrides(os.environ if environ is None else environ))
    return RegistrySettings.from_mapping(values)


async def load_settings_async(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> RegistrySettings:
    path = config_path or resolve_config_path()
    values: Dict[str, str] = {}
    if path is not None:
        values.update(await get_config_manager().read_config_async(path))
        logger.debug("Loaded settings from %s", path)
    values.update(_env_overrides(os.environ if environ is None else environ))
    return RegistrySettings.from_mapping(values)


__all__ = [
    "RegistrySettings",
    "load_settings",
    "load_settings_async",
    "DEFAULT_AUTH_TOKEN",
    "DEFAULT_LAUNCHER",
    "DEFAULT_STARTUP_TIMEOUT",
]
