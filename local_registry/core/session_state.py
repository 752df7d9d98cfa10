"""
Session State - the active registry session for this process.

Setup and teardown hooks run from unrelated call stacks within one test run,
so the session produced by setup is parked here until teardown collects it.
The holder owns the session's process handle; clearing the slot does not
terminate anything (that is the teardown coordinator's job).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from local_registry.core.logging_utils import get_module_logger

from .npm_config import RegistryConfigWriter, registry_url

if TYPE_CHECKING:
    from .async_bridge import AsyncBridge
    from .registry_process import RegistryProcess


@dataclass
class RegistrySession:
    """One running registry: its process handle, port and credential."""
    process: "RegistryProcess"
    port: int
    auth_token: str
    config_writer: RegistryConfigWriter
    bridge: Optional["AsyncBridge"] = None

    @property
    def registry_url(self) -> str:
        return registry_url(self.port)


class SessionStateHolder:

    def __init__(self):
        self.logger = get_module_logger("SessionState")
        self._session: Optional[RegistrySession] = None

    def set(self, session: RegistrySession) -> None:
        if self._session is not None and self._session is not session:
            self.logger.warning(
                "Replacing active registry session on port %d with port %d",
                self._session.port,
                session.port,
            )
        self._session = session
        self.logger.debug("Registry session recorded (port %d)", session.port)

    def get(self) -> Optional[RegistrySession]:
        return self._session

    def clear(self) -> None:
        self._session = None

    def is_active(self) -> bool:
        return self._session is not None


_session_holder = SessionStateHolder()


def get_session_holder() -> SessionStateHolder:
    return _session_holder


__all__ = ["RegistrySession", "SessionStateHolder", "get_session_holder"]
