"""
Teardown Coordinator - undo a successful registry startup.

Terminating the process, removing the auth token and stopping the
background loop are independent releases. Each one runs even if an
earlier one failed, and failures are reported as warnings only, so a
flaky teardown never replaces the test run's own result.
"""

from __future__ import annotations

import warnings
from typing import Optional

from local_registry.core.logging_utils import get_module_logger

from .errors import TeardownWarning
from .session_state import SessionStateHolder, get_session_holder

logger = get_module_logger("TeardownCoordinator")


class TeardownCoordinator:

    def __init__(self, holder: Optional[SessionStateHolder] = None):
        self.holder = holder if holder is not None else get_session_holder()

    def _warn(self, action: str, error: BaseException) -> None:
        message = f"local registry teardown: {action} failed: {error}"
        logger.warning("%s", message)
        warnings.warn(TeardownWarning(message), stacklevel=3)

    def stop(self) -> bool:
        """Tear down the active session. Returns False when there was none."""
        session = self.holder.get()
        if session is None:
            logger.debug("No active registry session; nothing to tear down")
            return False

        logger.info("Stopping local registry on port %d", session.port)
        try:
            try:
                session.process.terminate()
            except Exception as e:
                self._warn("terminating the registry process", e)

            try:
                session.config_writer.revert(session.port)
            except Exception as e:
                self._warn(f"removing the auth token for port {session.port}", e)

            if session.bridge is not None:
                try:
                    session.bridge.stop()
                except Exception as e:
                    self._warn("stopping the registry event loop", e)
        finally:
            self.holder.clear()

        return True


__all__ = ["TeardownCoordinator"]
