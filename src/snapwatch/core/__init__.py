"""Core module - network view, node preparation and component supervision."""

from snapwatch.core.errors import (
    ConfigurationError,
    LaunchError,
    NoHealthyEndpointError,
    NoRestartSnapshotError,
    NoRPCPeersError,
    PersistenceError,
    ResolutionError,
    RuntimeHealthFailure,
    SnapwatchError,
)

__all__ = [
    "ConfigurationError",
    "LaunchError",
    "NoHealthyEndpointError",
    "NoRPCPeersError",
    "NoRestartSnapshotError",
    "PersistenceError",
    "ResolutionError",
    "RuntimeHealthFailure",
    "SnapwatchError",
]
