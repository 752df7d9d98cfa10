"""Unit tests for the start/stop lifecycle hooks."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from local_registry.core.errors import PrematureExitError, UsageError
from local_registry.core.lifecycle import (
    start_local_registry,
    start_local_registry_sync,
    stop_local_registry,
)
from local_registry.core.session_state import RegistrySession
from local_registry.core.settings import RegistrySettings


@pytest.fixture
def file_settings(tmp_path):
    return RegistrySettings(
        auth_token="t",
        config_store="file",
        npm_userconfig=tmp_path / ".npmrc",
        terminate_tree=False,
    )


@pytest.fixture
def mock_process_cls():
    with patch("local_registry.core.lifecycle.RegistryProcess") as cls:
        cls.return_value.start = AsyncMock(return_value=4873)
        yield cls


class TestStartLocalRegistry:

    @pytest.mark.asyncio
    async def test_records_session(self, mock_process_cls, file_settings, session_holder, tmp_path):
        session = await start_local_registry(
            "demo:local-registry",
            storage=tmp_path / "storage",
            settings=file_settings,
            holder=session_holder,
            environ={},
        )

        assert isinstance(session, RegistrySession)
        assert session.port == 4873
        assert session.registry_url == "http://localhost:4873"
        assert session.auth_token == "t"
        assert session_holder.get() is session

        args, kwargs = mock_process_cls.call_args
        assert args[0] == "demo:local-registry"
        assert kwargs["storage"] == tmp_path / "storage"
        assert kwargs["verbose"] is False

    @pytest.mark.asyncio
    async def test_empty_target_fails_before_spawn(self, mock_process_cls, file_settings, session_holder):
        with pytest.raises(UsageError, match="target is required"):
            await start_local_registry("", settings=file_settings, holder=session_holder)

        mock_process_cls.assert_not_called()

    @pytest.mark.asyncio
    async def test_second_session_is_usage_error(self, mock_process_cls, file_settings, session_holder):
        await start_local_registry("demo:local-registry", settings=file_settings,
                                   holder=session_holder, environ={})

        with pytest.raises(UsageError, match="already running on port 4873"):
            await start_local_registry("demo:local-registry", settings=file_settings,
                                       holder=session_holder, environ={})

        assert mock_process_cls.call_count == 1

    @pytest.mark.asyncio
    async def test_startup_failure_records_nothing(self, mock_process_cls, file_settings, session_holder):
        mock_process_cls.return_value.start = AsyncMock(side_effect=PrematureExitError(1))

        with pytest.raises(PrematureExitError):
            await start_local_registry("demo:local-registry", settings=file_settings,
                                       holder=session_holder, environ={})

        assert session_holder.get() is None

    @pytest.mark.asyncio
    async def test_loads_settings_when_not_given(self, mock_process_cls, file_settings, session_holder):
        with patch("local_registry.core.lifecycle.load_settings_async",
                   new=AsyncMock(return_value=file_settings)) as mock_load:
            await start_local_registry("demo:local-registry", holder=session_holder, environ={})

        mock_load.assert_awaited_once_with()


class TestStartLocalRegistrySync:

    def test_session_owns_bridge(self, mock_process_cls, file_settings, session_holder):
        session = start_local_registry_sync(
            "demo:local-registry", settings=file_settings, holder=session_holder, environ={}
        )

        try:
            assert session.port == 4873
            assert session.bridge is not None
            assert session.bridge.is_running
        finally:
            stop_local_registry(session_holder)

        assert session.bridge.is_running is False

    def test_failure_stops_bridge(self, mock_process_cls, file_settings, session_holder):
        def fail(coro, timeout=None):
            coro.close()
            raise PrematureExitError(1)

        with patch("local_registry.core.lifecycle.AsyncBridge") as bridge_cls:
            bridge_cls.return_value.run.side_effect = fail
            with pytest.raises(PrematureExitError):
                start_local_registry_sync("demo:local-registry", settings=file_settings,
                                          holder=session_holder, environ={})

        bridge_cls.return_value.stop.assert_called_once_with()

    def test_empty_target_does_not_start_bridge(self, session_holder):
        with patch("local_registry.core.lifecycle.AsyncBridge") as bridge_cls:
            with pytest.raises(UsageError):
                start_local_registry_sync("", holder=session_holder)

        bridge_cls.assert_not_called()


class TestStopLocalRegistry:

    def test_no_session(self, session_holder):
        assert stop_local_registry(session_holder) is False

    def test_uses_process_wide_holder_by_default(self):
        session = MagicMock()
        session.port = 4873
        session.bridge = None
        from local_registry.core.session_state import get_session_holder
        get_session_holder().set(session)

        assert stop_local_registry() is True
        session.process.terminate.assert_called_once_with()
        assert get_session_holder().get() is None
