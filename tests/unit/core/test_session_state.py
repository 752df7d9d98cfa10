"""Unit tests for the registry session slot."""

from unittest.mock import MagicMock

from local_registry.core.session_state import RegistrySession, SessionStateHolder, get_session_holder


def _session(port: int = 4873) -> RegistrySession:
    return RegistrySession(
        process=MagicMock(),
        port=port,
        auth_token="t",
        config_writer=MagicMock(),
    )


class TestRegistrySession:

    def test_registry_url_follows_port(self):
        session = _session(4873)
        assert session.registry_url == "http://localhost:4873"

        session.port = 5000
        assert session.registry_url == "http://localhost:5000"

    def test_bridge_defaults_to_none(self):
        assert _session().bridge is None


class TestSessionStateHolder:

    def test_empty_by_default(self, session_holder):
        assert session_holder.get() is None
        assert session_holder.is_active() is False

    def test_set_get_clear(self, session_holder):
        session = _session()
        session_holder.set(session)

        assert session_holder.get() is session
        assert session_holder.is_active() is True

        session_holder.clear()
        assert session_holder.get() is None

    def test_clear_does_not_terminate(self, session_holder):
        session = _session()
        session_holder.set(session)
        session_holder.clear()

        session.process.terminate.assert_not_called()

    def test_overwrite_is_allowed(self, session_holder):
        first, second = _session(4873), _session(4874)
        session_holder.set(first)
        session_holder.set(second)

        assert session_holder.get() is second

    def test_process_wide_holder_is_shared(self):
        assert get_session_holder() is get_session_holder()
        assert isinstance(get_session_holder(), SessionStateHolder)
