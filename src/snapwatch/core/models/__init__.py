"""Data models for snapwatch."""

from snapwatch.core.models.config import (
    ContainerConfig,
    EndpointWithREST,
    LogConfig,
    NetworkConfig,
    NetworkQueryConfig,
    PostgreSQLCredentials,
    Settings,
    SupervisorConfig,
    WatchdogConfig,
)
from snapwatch.core.models.statistics import RestartSnapshot, StatisticsSnapshot

__all__ = [
    "ContainerConfig",
    "EndpointWithREST",
    "LogConfig",
    "NetworkConfig",
    "NetworkQueryConfig",
    "PostgreSQLCredentials",
    "RestartSnapshot",
    "Settings",
    "StatisticsSnapshot",
    "SupervisorConfig",
    "WatchdogConfig",
]
