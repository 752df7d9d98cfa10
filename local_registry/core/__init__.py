
from .errors import (
    ConfigWriteError,
    LocalRegistryError,
    PrematureExitError,
    SpawnError,
    StartupTimeoutError,
    TeardownWarning,
    UsageError,
)
from .lifecycle import start_local_registry, start_local_registry_sync, stop_local_registry
from .npm_config import RegistryConfigWriter, auth_token_key, build_config_writer, registry_url
from .port_discovery import parse_port
from .registry_process import RegistryProcess, RegistryState
from .session_state import RegistrySession, SessionStateHolder, get_session_holder
from .settings import RegistrySettings, load_settings, load_settings_async
from .teardown import TeardownCoordinator

__all__ = [
    'ConfigWriteError',
    'LocalRegistryError',
    'PrematureExitError',
    'SpawnError',
    'StartupTimeoutError',
    'TeardownWarning',
    'UsageError',
    'start_local_registry',
    'start_local_registry_sync',
    'stop_local_registry',
    'RegistryConfigWriter',
    'auth_token_key',
    'build_config_writer',
    'registry_url',
    'parse_port',
    'RegistryProcess',
    'RegistryState',
    'RegistrySession',
    'SessionStateHolder',
    'get_session_holder',
    'RegistrySettings',
    'load_settings',
    'load_settings_async',
    'TeardownCoordinator',
]
