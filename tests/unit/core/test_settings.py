"""Unit tests for settings loading."""

from pathlib import Path

import pytest

from local_registry.core.errors import UsageError
from local_registry.core.settings import (
    DEFAULT_AUTH_TOKEN,
    DEFAULT_STARTUP_TIMEOUT,
    RegistrySettings,
    load_settings,
    load_settings_async,
)


@pytest.fixture
def settings_file(tmp_path) -> Path:
    path = tmp_path / "local-registry.txt"
    path.write_text(
        "# local registry settings\n"
        "launcher = pnpm exec nx\n"
        "auth_token = \"abc123\"\n"
        "startup_timeout = 30\n"
        "terminate_tree = false\n"
    )
    return path


class TestDefaults:

    def test_defaults(self):
        settings = RegistrySettings()

        assert settings.launcher == ["npx", "nx"]
        assert settings.auth_token == DEFAULT_AUTH_TOKEN == "secretVerdaccioToken"
        assert settings.startup_timeout == DEFAULT_STARTUP_TIMEOUT
        assert settings.config_store == "npm"
        assert settings.terminate_tree is True

    def test_non_positive_timeout_disables_it(self):
        assert RegistrySettings(startup_timeout=0).startup_timeout is None
        assert RegistrySettings.from_mapping({"startup_timeout": "-1"}).startup_timeout is None

    def test_unknown_config_store(self):
        with pytest.raises(UsageError, match="config_store"):
            RegistrySettings(config_store="yarnrc")

    def test_file_store_needs_path(self):
        with pytest.raises(UsageError, match="npm_userconfig"):
            RegistrySettings(config_store="file")

    def test_empty_launcher(self):
        with pytest.raises(UsageError):
            RegistrySettings.from_mapping({"launcher": "  "})


class TestLoadSettings:

    def test_reads_file(self, settings_file):
        settings = load_settings(settings_file, environ={})

        assert settings.launcher == ["pnpm", "exec", "nx"]
        assert settings.auth_token == "abc123"
        assert settings.startup_timeout == 30.0
        assert settings.terminate_tree is False

    def test_environment_overrides_file(self, settings_file, tmp_path):
        environ = {
            "LOCAL_REGISTRY_AUTH_TOKEN": "from-env",
            "LOCAL_REGISTRY_CONFIG_STORE": "file",
            "LOCAL_REGISTRY_NPM_USERCONFIG": str(tmp_path / ".npmrc"),
        }
        settings = load_settings(settings_file, environ=environ)

        assert settings.auth_token == "from-env"
        assert settings.config_store == "file"
        assert settings.npm_userconfig == tmp_path / ".npmrc"

    def test_config_path_from_environment(self, settings_file, monkeypatch):
        monkeypatch.setenv("LOCAL_REGISTRY_CONFIG", str(settings_file))

        assert load_settings(environ={}).auth_token == "abc123"

    def test_no_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv("LOCAL_REGISTRY_CONFIG", raising=False)
        monkeypatch.chdir(tmp_path)

        assert load_settings(environ={}) == RegistrySettings()

    @pytest.mark.asyncio
    async def test_async_matches_sync(self, settings_file):
        assert await load_settings_async(settings_file, environ={}) == load_settings(settings_file, environ={})
