"""Shared pytest configuration and fixtures for the local registry test suite."""

import sys
from pathlib import Path

import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
    config.addinivalue_line(
        "markers", "subprocess: mark test as spawning real child processes"
    )


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def fake_registry_script() -> Path:
    """Return the path of the stand-in registry launcher."""
    return PROJECT_ROOT / "tests" / "infrastructure" / "mocks" / "fake_registry.py"


@pytest.fixture
def session_holder():
    """A fresh session slot, so tests never touch the process-wide one."""
    from local_registry.core.session_state import SessionStateHolder
    return SessionStateHolder()


@pytest.fixture(autouse=True)
def _clear_global_session():
    """Keep the process-wide session slot empty between tests."""
    from local_registry.core.session_state import get_session_holder
    yield
    get_session_holder().clear()
