"""pytest integration: run a local registry around the whole test session.

Enable it with ``--local-registry-target=<project>:local-registry`` or the
``local_registry_target`` ini option. The registry starts before collection
and is torn down after the last test; the ``local_registry`` fixture exposes
the running session.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import pytest

from local_registry.core.errors import LocalRegistryError, UsageError
from local_registry.core.lifecycle import start_local_registry_sync, stop_local_registry
from local_registry.core.logging_utils import get_module_logger
from local_registry.core.paths import DEFAULT_STORAGE_DIR
from local_registry.core.session_state import RegistrySession, get_session_holder

logger = get_module_logger("PytestPlugin")

_STARTED_KEY = pytest.StashKey[bool]()


def pytest_addoption(parser):
    group = parser.getgroup("local-registry", "ephemeral package registry")
    group.addoption(
        "--local-registry-target",
        dest="local_registry_target",
        default=None,
        help="Launcher target that runs the registry, e.g. workspace:local-registry",
    )
    group.addoption(
        "--local-registry-storage",
        dest="local_registry_storage",
        default=None,
        help=f"Registry storage directory (default: {DEFAULT_STORAGE_DIR})",
    )
    group.addoption(
        "--local-registry-verbose",
        dest="local_registry_verbose",
        action="store_true",
        default=None,
        help="Echo the registry's output",
    )
    parser.addini("local_registry_target", "Launcher target that runs the registry", default="")
    parser.addini("local_registry_storage", "Registry storage directory", default="")
    parser.addini("local_registry_verbose", "Echo the registry's output", type="bool", default=False)


def _resolve_target(config) -> Optional[str]:
    return config.getoption("local_registry_target") or config.getini("local_registry_target") or None


def _resolve_storage(config) -> Path:
    storage = config.getoption("local_registry_storage") or config.getini("local_registry_storage")
    return Path(storage) if storage else DEFAULT_STORAGE_DIR


def _resolve_verbose(config) -> bool:
    verbose = config.getoption("local_registry_verbose")
    if verbose is None:
        verbose = config.getini("local_registry_verbose")
    return bool(verbose)


def _is_xdist_worker(config) -> bool:
    return hasattr(config, "workerinput")


def pytest_sessionstart(session):
    config = session.config
    target = _resolve_target(config)
    if not target or _is_xdist_worker(config):
        return

    try:
        registry = start_local_registry_sync(
            target,
            storage=_resolve_storage(config),
            verbose=_resolve_verbose(config),
        )
    except UsageError as exc:
        pytest.exit(exc.describe(), returncode=pytest.ExitCode.USAGE_ERROR)
    except LocalRegistryError as exc:
        pytest.exit(exc.describe(), returncode=pytest.ExitCode.INTERNAL_ERROR)

    config.stash[_STARTED_KEY] = True
    logger.info("Local registry for %s at %s", target, registry.registry_url)


def pytest_sessionfinish(session, exitstatus):
    if session.config.stash.get(_STARTED_KEY, False):
        stop_local_registry()
        session.config.stash[_STARTED_KEY] = False


def _active_session() -> RegistrySession:
    registry = get_session_holder().get()
    if registry is None:
        pytest.skip("no local registry running (pass --local-registry-target)")
    return registry


@pytest.fixture(scope="session")
def local_registry() -> RegistrySession:
    """The registry session started for this test run."""
    return _active_session()
