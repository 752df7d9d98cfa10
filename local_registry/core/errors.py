"""Error taxonomy for the registry lifecycle.

Every startup failure carries a ``phase`` so harnesses can tell a registry
that never came up apart from one that came up but could not be wired in.
Teardown problems never raise; they surface as :class:`TeardownWarning`.
"""

from __future__ import annotations

from typing import Optional


class LocalRegistryError(Exception):
    """Base class for registry lifecycle failures."""

    phase = "registry"

    def describe(self) -> str:
        return f"local registry {self.phase} failure: {self}"


class UsageError(LocalRegistryError, ValueError):
    """The caller broke a precondition (empty target, second session, bad setting)."""

    phase = "usage"


class SpawnError(LocalRegistryError):
    """The registry process could not be created or failed before it was ready."""

    phase = "spawn"


class PrematureExitError(SpawnError):
    """The registry process exited before announcing readiness."""

    phase = "ready-signal"

    def __init__(self, returncode: Optional[int], target: str = ""):
        self.returncode = returncode
        self.target = target
        where = f" ({target})" if target else ""
        super().__init__(f"registry process{where} exited with code {returncode} before it was ready")


class StartupTimeoutError(SpawnError):
    """No ready signal arrived within the startup timeout."""

    phase = "ready-signal"

    def __init__(self, timeout: float, target: str = ""):
        self.timeout = timeout
        self.target = target
        where = f" ({target})" if target else ""
        super().__init__(f"registry process{where} did not announce a port within {timeout:g}s")


class ConfigWriteError(LocalRegistryError):
    """Package-manager configuration could not be written or removed."""

    phase = "configuration"

    def __init__(self, message: str, command: Optional[list] = None, stderr: str = ""):
        self.command = command
        self.stderr = stderr
        detail = f": {stderr.strip()}" if stderr and stderr.strip() else ""
        super().__init__(f"{message}{detail}")


class TeardownWarning(UserWarning):
    """Registry teardown did not complete cleanly."""


__all__ = [
    "LocalRegistryError",
    "UsageError",
    "SpawnError",
    "PrematureExitError",
    "StartupTimeoutError",
    "ConfigWriteError",
    "TeardownWarning",
]
