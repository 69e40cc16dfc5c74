"""Pytest plugins for snapwatch testing."""

from tests.pytest_plugins.markers import (
    pytest_addoption,
    pytest_collection_modifyitems,
    pytest_configure,
)
from tests.pytest_plugins.mock_services import (
    MockContainerRuntime,
    MockNetworkService,
)

__all__ = [
    "MockContainerRuntime",
    "MockNetworkService",
    "pytest_addoption",
    "pytest_collection_modifyitems",
    "pytest_configure",
]
