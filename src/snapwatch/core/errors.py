"""Error taxonomy for snapwatch."""

from __future__ import annotations


class SnapwatchError(Exception):
    """Base class for all snapwatch errors."""


class ConfigurationError(SnapwatchError):
    """Unknown or invalid network definition."""


# ============================================================================
# NETWORK QUERIES
# ============================================================================


class StatisticsError(SnapwatchError):
    """A single REST query against one endpoint failed."""

    def __init__(self, endpoint: str, message: str) -> None:
        super().__init__(f"{endpoint}: {message}")
        self.endpoint = endpoint


class EndpointRequestError(StatisticsError):
    """The HTTP request itself failed (connection, timeout, bad status)."""


class MalformedResponseError(StatisticsError):
    """The response body or one of its fields could not be parsed."""


class ResolutionError(SnapwatchError):
    """The network view could not be resolved from the configured peers."""


class NoHealthyEndpointError(ResolutionError):
    """No endpoint returned a usable (or healthy) statistics response."""


class NoRPCPeersError(ResolutionError):
    """None of the RPC peers has a healthy REST mirror."""


class NoRestartSnapshotError(ResolutionError):
    """No healthy endpoint lists a snapshot inside the restart window."""


class NodeSetupError(SnapwatchError):
    """Downloading, initializing or configuring the local node failed."""


class CommandError(SnapwatchError):
    """An external binary exited with a non-zero status."""

    def __init__(self, command: list[str], returncode: int, output: str) -> None:
        super().__init__(f"{' '.join(command)} exited with status {returncode}: {output.strip()}")
        self.command = command
        self.returncode = returncode
        self.output = output


class ContainerRuntimeError(SnapwatchError):
    """The container engine rejected a request or is unreachable."""


class SnapshotDatabaseMissingError(SnapwatchError):
    """The local node never wrote a snapshot database."""


# ============================================================================
# SUPERVISION
# ============================================================================


class ComponentError(SnapwatchError):
    """Base class for errors raised while supervising components."""

    def __init__(self, component: str, message: str) -> None:
        super().__init__(f"{component}: {message}")
        self.component = component


class CleanupError(ComponentError):
    """A component failed to clean up before the run."""


class LaunchError(ComponentError):
    """A component failed to start. Fatal to the whole process."""


class StopError(ComponentError):
    """A component failed to stop in time. Only ever logged."""


class RuntimeHealthFailure(SnapwatchError):
    """One or more components reported unhealthy during supervision."""

    def __init__(self, unhealthy: dict[str, str]) -> None:
        names = ", ".join(sorted(unhealthy))
        super().__init__(f"one or more test components failed: {names}")
        self.unhealthy = unhealthy


class PersistenceError(SnapwatchError):
    """Results could not be serialized or written."""
