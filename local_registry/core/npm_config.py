"""Point npm and yarn at the local registry and install its auth token.

Two kinds of state are touched:

* process environment (``npm_config_registry`` / ``YARN_REGISTRY``), read by
  package-manager commands launched from this process tree;
* one persistent ``//localhost:<port>/:_authToken`` entry in the npm user
  config, written through a store.

Every ``apply`` must be paired with a ``revert`` for the same port.
"""

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import MutableMapping, Optional, Protocol

from .config_manager import get_config_manager
from .errors import ConfigWriteError
from .logging_utils import get_module_logger
from .settings import RegistrySettings

REGISTRY_HOST = "localhost"
REGISTRY_ENV_VARS = ("npm_config_registry", "YARN_REGISTRY")


def registry_url(port: int) -> str:
    return f"http://{REGISTRY_HOST}:{port}"


def auth_token_key(port: int) -> str:
    return f"//{REGISTRY_HOST}:{port}/:_authToken"


class ConfigStore(Protocol):
    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class NpmCliConfigStore:
    """Edits npm user config through the ``npm config`` command."""

    def __init__(self, npm_executable: str = "npm", userconfig: Optional[Path] = None):
        self.npm_executable = npm_executable
        self.userconfig = userconfig
        self.logger = get_module_logger("NpmCliConfigStore")

    def _run(self, *args: str) -> None:
        cmd = [self.npm_executable, "config", *args]
        if self.userconfig is not None:
            cmd.extend(["--userconfig", str(self.userconfig)])

        # Token values stay out of the log
        self.logger.debug("Running: %s %s", self.npm_executable, " ".join(args[:2]))
        try:
            subprocess.run(cmd, check=True, capture_output=True, text=True)
        except subprocess.CalledProcessError as exc:
            raise ConfigWriteError(
                f"`npm config {args[0]}` exited with code {exc.returncode}",
                command=cmd[:3],
                stderr=exc.stderr or "",
            ) from exc
        except OSError as exc:
            raise ConfigWriteError(
                f"could not run {self.npm_executable}: {exc}", command=cmd[:3]
            ) from exc

    def set(self, key: str, value: str) -> None:
        self._run("set", key, value)

    def delete(self, key: str) -> None:
        self._run("delete", key)


class NpmrcFileStore:
    """Edits an ``.npmrc`` file directly."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.logger = get_module_logger("NpmrcFileStore")

    def set(self, key: str, value: str) -> None:
        try:
            get_config_manager().write_config(self.path, {key: value})
        except (OSError, ValueError) as exc:
            # ValueError covers an existing file that is not valid UTF-8
            raise ConfigWriteError(f"could not write {self.path}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            get_config_manager().remove_keys(self.path, [key])
        except (OSError, ValueError) as exc:
            raise ConfigWriteError(f"could not update {self.path}: {exc}") from exc

    def get(self, key: str) -> Optional[str]:
        return get_config_manager().read_config(self.path).get(key)


class RegistryConfigWriter:

    def __init__(self, store: ConfigStore, environ: Optional[MutableMapping[str, str]] = None):
        self.store = store
        self.environ = os.environ if environ is None else environ
        self.logger = get_module_logger("RegistryConfigWriter")

    def apply(self, port: int, token: str) -> str:
        """Install the token entry, then export the registry URL. Returns the URL.

        The persistent entry is written first so a failure leaves the
        environment untouched.
        """
        url = registry_url(port)
        self.store.set(auth_token_key(port), token)
        for name in REGISTRY_ENV_VARS:
            self.environ[name] = url
        self.logger.info("Set npm and yarn config registry to %s", url)
        return url

    def revert(self, port: int) -> None:
        """Remove the token entry for ``port``. Environment variables are left as-is."""
        self.store.delete(auth_token_key(port))
        self.logger.info("Removed auth token for %s", auth_token_key(port))


def build_config_writer(
    settings: RegistrySettings,
    environ: Optional[MutableMapping[str, str]] = None,
) -> RegistryConfigWriter:
    if settings.config_store == "file":
        store: ConfigStore = NpmrcFileStore(settings.npm_userconfig)
    else:
        store = NpmCliConfigStore(settings.npm_executable, settings.npm_userconfig)
    return RegistryConfigWriter(store, environ=environ)


__all__ = [
    "REGISTRY_ENV_VARS",
    "ConfigStore",
    "NpmCliConfigStore",
    "NpmrcFileStore",
    "RegistryConfigWriter",
    "auth_token_key",
    "build_config_writer",
    "registry_url",
]
