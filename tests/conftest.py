"""Global test fixtures for snapwatch."""

from __future__ import annotations

from pathlib import Path

import pytest

from snapwatch.core.models.config import (
    NetworkConfig,
    NetworkQueryConfig,
    SupervisorConfig,
    WatchdogConfig,
)
from snapwatch.core.storage.paths import PathManager

# Import pytest plugins
from tests.pytest_plugins.markers import (
    pytest_addoption,
    pytest_collection_modifyitems,
    pytest_configure,
)
from tests.pytest_plugins.mock_services import (
    MockContainerRuntime,
    MockNetworkService,
    collecting_sink,
    make_network_config,
    mock_container_runtime,
    mock_network_service,
)

# Re-export for pytest discovery
__all__ = [
    "MockContainerRuntime",
    "MockNetworkService",
    "collecting_sink",
    "mock_container_runtime",
    "mock_network_service",
    "pytest_addoption",
    "pytest_collection_modifyitems",
    "pytest_configure",
]


# ============================================================================
# CONFIGURATION FIXTURES
# ============================================================================


@pytest.fixture
def network_config() -> NetworkConfig:
    """A complete single-endpoint network definition."""
    return make_network_config()


@pytest.fixture
def query_config() -> NetworkQueryConfig:
    """Default health thresholds with no retry delay."""
    return NetworkQueryConfig(retry_delay=0)


@pytest.fixture
def fast_supervisor_config() -> SupervisorConfig:
    """Supervisor timing short enough for unit tests."""
    return SupervisorConfig(health_check_interval=0.05, stop_timeout=0.5)


@pytest.fixture
def fast_watchdog_config() -> WatchdogConfig:
    """Watchdog timing short enough for unit tests."""
    return WatchdogConfig(poll_interval=0.01, liveness_timeout=5.0, local_node_rest="https://local.test")


@pytest.fixture
def paths(tmp_path: Path) -> PathManager:
    """Work directory rooted in a temporary directory."""
    return PathManager(tmp_path / "work")
