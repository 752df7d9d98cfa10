"""Unit test fixtures for isolated, fast test execution.

Unit tests never spawn processes or touch the real npm config:

- config stores are in-memory (MemoryConfigStore)
- environment writes go to a plain dict
- child processes are FakeProcess instances patched into
  ``asyncio.create_subprocess_exec``
"""

from __future__ import annotations

from typing import Dict

import pytest

from local_registry.core.npm_config import RegistryConfigWriter
from local_registry.core.settings import RegistrySettings
from tests.infrastructure.mocks.config_store_mocks import MemoryConfigStore


@pytest.fixture
def memory_store() -> MemoryConfigStore:
    return MemoryConfigStore()


@pytest.fixture
def fake_environ() -> Dict[str, str]:
    return {}


@pytest.fixture
def config_writer(memory_store, fake_environ) -> RegistryConfigWriter:
    return RegistryConfigWriter(memory_store, environ=fake_environ)


@pytest.fixture
def registry_settings() -> RegistrySettings:
    """Settings that never signal real pids and fail fast if nothing is announced."""
    return RegistrySettings(
        launcher=["npx", "nx"],
        auth_token="test-token",
        startup_timeout=5.0,
        terminate_tree=False,
    )
