"""
Lifecycle hooks for end-to-end test suites.

``start_local_registry`` belongs in the suite's global setup and
``stop_local_registry`` in its global teardown::

    session = await start_local_registry("workspace:local-registry",
                                         storage="./tmp/local-registry/storage")
    ...
    stop_local_registry()

Synchronous harnesses use ``start_local_registry_sync``, which keeps the
registry's event loop alive on a background thread until teardown.
"""

from __future__ import annotations

from pathlib import Path
from typing import MutableMapping, Optional, Union

from local_registry.core.logging_utils import get_module_logger

from .async_bridge import AsyncBridge
from .errors import UsageError
from .npm_config import build_config_writer
from .registry_process import RegistryProcess
from .session_state import RegistrySession, SessionStateHolder, get_session_holder
from .settings import RegistrySettings, load_settings_async
from .teardown import TeardownCoordinator

logger = get_module_logger("Lifecycle")

PathLike = Union[str, Path]


def _check_can_start(target: str, holder: SessionStateHolder) -> None:
    if not target or not target.strip():
        raise UsageError("local registry target is required")

    active = holder.get()
    if active is not None:
        raise UsageError(
            f"a local registry is already running on port {active.port}; stop it first"
        )


async def start_local_registry(
    target: str,
    storage: Optional[PathLike] = None,
    verbose: bool = False,
    *,
    settings: Optional[RegistrySettings] = None,
    holder: Optional[SessionStateHolder] = None,
    environ: Optional[MutableMapping[str, str]] = None,
) -> RegistrySession:
    """Start the registry and point npm/yarn at it.

    Args:
        target: What the launcher should run, e.g. ``workspace:local-registry``.
        storage: Optional storage directory handed to the registry.
        verbose: Echo the registry's stdout.
        settings: Settings to use instead of loading them from file/env.
        holder: Session slot to record into (defaults to the process-wide one).
        environ: Environment mapping to export registry variables into.

    Returns:
        The recorded session, once configuration has been applied.

    Raises:
        UsageError, SpawnError, PrematureExitError, StartupTimeoutError,
        ConfigWriteError
    """
    holder = holder if holder is not None else get_session_holder()
    _check_can_start(target, holder)

    if settings is None:
        settings = await load_settings_async()

    writer = build_config_writer(settings, environ=environ)
    process = RegistryProcess(target, writer, settings=settings, storage=storage, verbose=verbose)
    port = await process.start()

    session = RegistrySession(
        process=process,
        port=port,
        auth_token=settings.auth_token,
        config_writer=writer,
    )
    holder.set(session)
    logger.info("Local registry ready at %s", session.registry_url)
    return session


def start_local_registry_sync(
    target: str,
    storage: Optional[PathLike] = None,
    verbose: bool = False,
    *,
    settings: Optional[RegistrySettings] = None,
    holder: Optional[SessionStateHolder] = None,
    environ: Optional[MutableMapping[str, str]] = None,
) -> RegistrySession:
    """Blocking variant of :func:`start_local_registry` for synchronous hooks."""
    holder = holder if holder is not None else get_session_holder()
    _check_can_start(target, holder)

    bridge = AsyncBridge()
    bridge.start()
    try:
        session = bridge.run(
            start_local_registry(
                target,
                storage,
                verbose,
                settings=settings,
                holder=holder,
                environ=environ,
            )
        )
    except BaseException:
        bridge.stop()
        raise

    session.bridge = bridge
    return session


def stop_local_registry(holder: Optional[SessionStateHolder] = None) -> bool:
    """Tear down the active registry session. Never raises."""
    return TeardownCoordinator(holder).stop()


__all__ = ["start_local_registry", "start_local_registry_sync", "stop_local_registry"]
