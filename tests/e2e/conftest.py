"""End-to-end fixtures: real child processes, fake registry.

These tests run the actual supervisor against
``tests/infrastructure/mocks/fake_registry.py`` (launched with the current
interpreter) and write the auth token to a throwaway ``.npmrc`` through the
file store, so neither npm nor a network registry is needed.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict

import pytest

from local_registry.core.settings import RegistrySettings


@pytest.fixture
def npmrc_path(tmp_path) -> Path:
    return tmp_path / ".npmrc"


@pytest.fixture
def registry_environ() -> Dict[str, str]:
    """Receives npm_config_registry / YARN_REGISTRY instead of os.environ."""
    return {}


@pytest.fixture
def fake_registry_settings(fake_registry_script, npmrc_path) -> RegistrySettings:
    return RegistrySettings(
        launcher=[sys.executable, str(fake_registry_script)],
        auth_token="e2e-token",
        startup_timeout=15.0,
        config_store="file",
        npm_userconfig=npmrc_path,
    )


@pytest.fixture
def fake_registry_mode(monkeypatch):
    """Select the fake registry's behaviour (inherited through the environment)."""
    def _set(mode: str, **extra: str) -> None:
        monkeypatch.setenv("FAKE_REGISTRY_MODE", mode)
        for key, value in extra.items():
            monkeypatch.setenv(f"FAKE_REGISTRY_{key.upper()}", value)
    return _set
